from typing import Mapping

from tripsplit.models.expense import Expense, ExpenseCommand
from tripsplit.services.currency_service import Number, ZERO
from tripsplit.services.split_service import SplitService
from tripsplit.utils.split_validation import InvalidExpense


class ExpenseService:
    @staticmethod
    def validate_command(command: ExpenseCommand) -> None:
        """
        Validate an expense command before any computation.

        Rules:
        - description must not be blank
        - payer must be given
        - at least one participant must share the expense
        """
        if not command.description.strip():
            raise InvalidExpense("Description is required")
        if not command.payer_id:
            raise InvalidExpense("Payer must be specified")
        if not command.participant_ids:
            raise InvalidExpense("At least one split is required")

    @staticmethod
    def build_expense(
        command: ExpenseCommand,
        rates: Mapping[str, Number],
        base_currency: str,
    ) -> Expense:
        """
        Create an immutable Expense from a caller command.

        The amount is converted to the trip's base currency first; splits are
        computed on the converted amount so they sum exactly to it.
        """
        ExpenseService.validate_command(command)

        in_base = command.amount.to(base_currency, rates).amount
        splits = SplitService.split(
            in_base,
            command.split_policy,
            command.participant_ids,
            amounts=command.amounts,
            percentages=command.percentages,
        )

        # Unequal amounts may be up to a cent off; the last split takes the leftover
        leftover = in_base - sum((s.amount for s in splits), ZERO)
        if leftover:
            last = splits[-1]
            splits[-1] = last.model_copy(update={"amount": last.amount + leftover})

        return Expense(
            id=command.id,
            trip_id=command.trip_id,
            description=command.description.strip(),
            original_amount=command.amount.amount,
            original_currency=command.amount.currency,
            amount_in_base_currency=in_base,
            category=command.category,
            payer_id=command.payer_id,
            split_policy=command.split_policy,
            splits=splits,
            occurred_at=command.occurred_at,
        )
