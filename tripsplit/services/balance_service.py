"""
BalanceAggregator - folds a trip's expenses into one net balance per participant.

For each participant:
- total_paid = sum of amount_in_base_currency over expenses they paid
- total_owed = sum of their split amounts over all expenses
- net = round2(total_paid - total_owed)

Balances are recomputed from the full expense set on every call; nothing is
cached or mutated. Decimal addition is exact, so expense order never changes
the result.
"""

from decimal import Decimal
from typing import Dict, Iterable, List, Sequence

from tripsplit.core.logging import get_logger
from tripsplit.models.balance import Balance, BalanceSheet
from tripsplit.models.expense import Expense, Participant
from tripsplit.services.currency_service import ZERO, round2
from tripsplit.services.settlement_service import SettlementService
from tripsplit.utils.split_validation import UnknownParticipant

logger = get_logger(__name__)


class BalanceService:
    @staticmethod
    def aggregate(expenses: Iterable[Expense], participants: Sequence[Participant]) -> List[Balance]:
        """
        Compute balances for every participant, in participant order.

        Participants without expenses still appear with zero totals.
        Raises UnknownParticipant when an expense names someone outside the set.
        """
        paid: Dict[str, Decimal] = {p.id: ZERO for p in participants}
        owed: Dict[str, Decimal] = {p.id: ZERO for p in participants}

        for expense in expenses:
            if expense.payer_id not in paid:
                raise UnknownParticipant(expense.payer_id)
            paid[expense.payer_id] += expense.amount_in_base_currency

            for split in expense.splits:
                if split.participant_id not in owed:
                    raise UnknownParticipant(split.participant_id)
                owed[split.participant_id] += split.amount

        return [
            Balance(
                participant_id=p.id,
                total_paid=round2(paid[p.id]),
                total_owed=round2(owed[p.id]),
                net=round2(paid[p.id] - owed[p.id]),
            )
            for p in participants
        ]

    @staticmethod
    def balance_sheet(
        trip_id: str,
        expenses: Iterable[Expense],
        participants: Sequence[Participant],
        currency: str,
    ) -> BalanceSheet:
        """Balances, suggested settlements and total spend for one trip."""
        trip_expenses = [e for e in expenses if e.trip_id == trip_id]
        balances = BalanceService.aggregate(trip_expenses, participants)
        settlements = SettlementService.plan(balances)
        total_spent = sum((e.amount_in_base_currency for e in trip_expenses), ZERO)

        logger.debug(
            "balance_sheet_computed",
            trip_id=trip_id,
            expenses=len(trip_expenses),
            settlements=len(settlements),
        )

        return BalanceSheet(
            trip_id=trip_id,
            balances=balances,
            suggested_settlements=settlements,
            total_spent=round2(total_spent),
            currency=currency,
        )
