"""
SplitCalculator - divides one expense total among participants.

Every policy returns splits that sum exactly to the total (to the cent):
- Equal: each participant gets round2(total / n); the last participant in
  input order absorbs the rounding remainder. Callers wanting fairness across
  repeated equal splits rotate the participant order themselves.
- Unequal: caller amounts are used as-is (rounded to cents) once their sum is
  within one cent of the total.
- Percentage: round2(pct / 100 * total) for all but the last participant,
  who absorbs the remainder.
"""

from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from tripsplit.models.expense import ExpenseSplit, SplitPolicy
from tripsplit.services.currency_service import Number, ZERO, as_decimal, round2
from tripsplit.utils.split_validation import (
    EngineError,
    validate_amount_sum,
    validate_lengths,
    validate_participants,
    validate_percentage_sum,
)


class SplitService:
    @staticmethod
    def equal_split(total: Number, participant_ids: Sequence[str]) -> List[ExpenseSplit]:
        validate_participants(participant_ids)
        total = as_decimal(total)
        count = len(participant_ids)

        base = round2(total / count)
        last = total - base * (count - 1)

        return [
            ExpenseSplit(
                participant_id=participant_id,
                amount=last if index == count - 1 else base,
            )
            for index, participant_id in enumerate(participant_ids)
        ]

    @staticmethod
    def unequal_split(total: Number, shares: Sequence[Tuple[str, Number]]) -> List[ExpenseSplit]:
        validate_participants(shares)
        total = as_decimal(total)
        amounts = [round2(amount) for _, amount in shares]

        validate_amount_sum(amounts, total)

        return [
            ExpenseSplit(participant_id=participant_id, amount=amount)
            for (participant_id, _), amount in zip(shares, amounts)
        ]

    @staticmethod
    def percentage_split(total: Number, shares: Sequence[Tuple[str, Number]]) -> List[ExpenseSplit]:
        validate_participants(shares)
        total = as_decimal(total)
        percentages = [as_decimal(percentage) for _, percentage in shares]

        validate_percentage_sum(percentages)

        allocated = ZERO
        results: List[ExpenseSplit] = []
        last_index = len(shares) - 1

        for index, ((participant_id, _), percentage) in enumerate(zip(shares, percentages)):
            if index == last_index:
                amount = total - allocated
            else:
                amount = round2(percentage / Decimal("100") * total)
                allocated += amount

            results.append(
                ExpenseSplit(
                    participant_id=participant_id,
                    amount=amount,
                    percentage=percentage,
                )
            )

        return results

    @staticmethod
    def split(
        total: Number,
        policy: SplitPolicy,
        participant_ids: Sequence[str],
        amounts: Optional[Sequence[Number]] = None,
        percentages: Optional[Sequence[Number]] = None,
    ) -> List[ExpenseSplit]:
        """Split total under the given policy; array inputs are parallel to participant_ids."""
        try:
            policy = SplitPolicy(policy)
        except ValueError:
            raise EngineError(f"Unknown split type: {policy}")

        validate_participants(participant_ids)

        if policy == SplitPolicy.UNEQUAL:
            validate_lengths("amounts", amounts, len(participant_ids))
            return SplitService.unequal_split(total, list(zip(participant_ids, amounts)))

        if policy == SplitPolicy.PERCENTAGE:
            validate_lengths("percentages", percentages, len(participant_ids))
            return SplitService.percentage_split(total, list(zip(participant_ids, percentages)))

        return SplitService.equal_split(total, participant_ids)
