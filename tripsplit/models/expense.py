"""
Expense model - one shared payment and how it is divided.

Design principles:
- Participants are referenced by id, never embedded
- Splits are computed once at creation and are always in the trip's base currency
- sum(splits.amount) == amount_in_base_currency to the cent
- Only the per-split `settled` flag may change afterwards (via mark_settled)
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from pydantic import Field, model_validator

from tripsplit.models.base import ValueModel, _utcnow
from tripsplit.models.money import Money


class SplitPolicy(str, Enum):
    EQUAL = "equal"
    UNEQUAL = "unequal"
    PERCENTAGE = "percentage"


class ExpenseCategory(str, Enum):
    ACCOMMODATION = "accommodation"
    TRANSPORT = "transport"
    FOOD = "food"
    ACTIVITIES = "activities"
    SHOPPING = "shopping"
    ENTERTAINMENT = "entertainment"
    HEALTH = "health"
    OTHER = "other"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


CATEGORY_LABELS = {
    ExpenseCategory.ACCOMMODATION: "Accommodation",
    ExpenseCategory.TRANSPORT: "Transport",
    ExpenseCategory.FOOD: "Food & Drinks",
    ExpenseCategory.ACTIVITIES: "Activities",
    ExpenseCategory.SHOPPING: "Shopping",
    ExpenseCategory.ENTERTAINMENT: "Entertainment",
    ExpenseCategory.HEALTH: "Health",
    ExpenseCategory.OTHER: "Other",
}


class Participant(ValueModel):
    id: str
    display_name: str


class ExpenseSplit(ValueModel):
    participant_id: str
    amount: Decimal  # base currency
    percentage: Optional[Decimal] = None
    settled: bool = False


class Expense(ValueModel):
    id: str
    trip_id: str
    description: str
    original_amount: Decimal
    original_currency: str
    amount_in_base_currency: Decimal
    category: ExpenseCategory = ExpenseCategory.OTHER
    payer_id: str
    split_policy: SplitPolicy
    splits: Tuple[ExpenseSplit, ...]
    occurred_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def splits_cover_amount(self) -> "Expense":
        split_sum = sum((split.amount for split in self.splits), Decimal("0"))
        if split_sum != self.amount_in_base_currency:
            raise ValueError(
                f"Splits sum to {split_sum} but the expense is {self.amount_in_base_currency}"
            )
        return self

    def mark_settled(self, participant_id: str) -> "Expense":
        """Return a copy with the given participant's split flagged as settled."""
        splits = tuple(
            split.model_copy(update={"settled": True})
            if split.participant_id == participant_id else split
            for split in self.splits
        )
        return self.model_copy(update={"splits": splits})

    def is_fully_settled(self) -> bool:
        return all(split.settled for split in self.splits)


class ExpenseCommand(ValueModel):
    """Caller-supplied request to record one expense. Ids are generated by the caller."""

    id: str
    trip_id: str
    description: str
    amount: Money
    category: ExpenseCategory = ExpenseCategory.OTHER
    payer_id: str
    split_policy: SplitPolicy = SplitPolicy.EQUAL
    participant_ids: Tuple[str, ...]
    amounts: Optional[Tuple[Decimal, ...]] = None  # base currency, unequal policy
    percentages: Optional[Tuple[Decimal, ...]] = None
    occurred_at: datetime = Field(default_factory=_utcnow)
