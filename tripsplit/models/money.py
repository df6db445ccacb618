from decimal import Decimal
from typing import Mapping

from pydantic import field_validator

from tripsplit.models.base import ValueModel
from tripsplit.services.currency_service import convert
from tripsplit.utils.split_validation import CurrencyMismatch


class Money(ValueModel):
    """An amount that always travels with its currency."""

    amount: Decimal
    currency: str

    @field_validator("currency")
    @classmethod
    def upper_code(cls, value: str) -> str:
        return value.strip().upper()

    def to(self, currency: str, rates: Mapping[str, Decimal]) -> "Money":
        return Money(
            amount=convert(self.amount, self.currency, currency, rates),
            currency=currency,
        )

    def _check_currency(self, other: "Money") -> None:
        if other.currency != self.currency:
            raise CurrencyMismatch(
                f"Cannot combine {self.currency} with {other.currency} without conversion"
            )

    def __add__(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __lt__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.amount < other.amount
