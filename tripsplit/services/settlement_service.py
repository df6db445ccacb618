"""
SettlementPlanner - largest-first greedy matching of debtors to creditors.

Algorithm:
1. Creditors: net > 0.01, debtors: net < -0.01 (within a cent counts as settled)
2. Sort both descending by magnitude (ties keep input order)
3. Match the current largest creditor with the current largest debtor and
   transfer min(creditor remaining, debtor remaining)
4. Advance past whoever is within a cent of zero
5. Stop when either side is exhausted

This usually yields n-1 transfers for n unbalanced participants but is not a
minimum-cardinality solver; downstream callers rely on this exact matching.
"""

from decimal import Decimal
from typing import Dict, Iterable, List, Sequence

from tripsplit.core.logging import get_logger
from tripsplit.models.balance import Balance, SuggestedSettlement
from tripsplit.services.currency_service import CENT, ZERO, round2

logger = get_logger(__name__)


class SettlementService:
    @staticmethod
    def plan(balances: Sequence[Balance]) -> List[SuggestedSettlement]:
        creditors = sorted(
            ([b.participant_id, b.net] for b in balances if b.net > CENT),
            key=lambda entry: entry[1],
            reverse=True,
        )
        debtors = sorted(
            ([b.participant_id, -b.net] for b in balances if b.net < -CENT),
            key=lambda entry: entry[1],
            reverse=True,
        )

        settlements: List[SuggestedSettlement] = []
        i = 0  # creditor index
        j = 0  # debtor index

        while i < len(creditors) and j < len(debtors):
            creditor = creditors[i]
            debtor = debtors[j]

            amount = round2(min(creditor[1], debtor[1]))
            if amount > ZERO:
                settlements.append(
                    SuggestedSettlement(
                        from_participant_id=debtor[0],
                        to_participant_id=creditor[0],
                        amount=amount,
                    )
                )

            creditor[1] -= amount
            debtor[1] -= amount

            if creditor[1] < CENT:
                i += 1
            if debtor[1] < CENT:
                j += 1

        logger.debug(
            "settlements_planned",
            creditors=len(creditors),
            debtors=len(debtors),
            transfers=len(settlements),
        )
        return settlements

    @staticmethod
    def apply_settlements(
        balances: Sequence[Balance],
        settlements: Iterable[SuggestedSettlement],
    ) -> List[Balance]:
        """Return balances as they would be once every transfer has been paid."""
        adjustment: Dict[str, Decimal] = {b.participant_id: ZERO for b in balances}
        for settlement in settlements:
            adjustment[settlement.from_participant_id] += settlement.amount
            adjustment[settlement.to_participant_id] -= settlement.amount

        return [
            b.model_copy(update={"net": round2(b.net + adjustment[b.participant_id])})
            for b in balances
        ]
