"""Engine error types and input validation helpers."""
from decimal import Decimal
from typing import Optional, Sequence


class EngineError(ValueError):
    """Base class for caller errors raised by the financial engine."""
    pass


class UnknownCurrency(EngineError):
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Unknown currency: {code}")


class CurrencyMismatch(EngineError):
    pass


class EmptyParticipantSet(EngineError):
    def __init__(self, message: str = "Cannot split among zero participants"):
        super().__init__(message)


class SplitLengthMismatch(EngineError):
    def __init__(self, field: str, got: int, expected: int):
        self.field = field
        self.got = got
        self.expected = expected
        super().__init__(
            f"{field.capitalize()} length ({got}) must match participant count ({expected})"
        )


class SplitMismatch(EngineError):
    """Unequal split amounts do not add up to the expense total."""

    def __init__(self, split_sum: Decimal, total: Decimal):
        self.split_sum = split_sum
        self.total = total
        self.difference = total - split_sum
        direction = "short by" if self.difference > 0 else "over by"
        super().__init__(
            f"Split amounts ({split_sum:.2f}) do not match total ({total:.2f}): "
            f"{direction} {abs(self.difference):.2f}"
        )


class PercentageMismatch(EngineError):
    def __init__(self, percentage_sum: Decimal):
        self.percentage_sum = percentage_sum
        super().__init__(f"Percentages ({percentage_sum}%) do not sum to 100%")


class UnknownParticipant(EngineError):
    def __init__(self, participant_id: str):
        self.participant_id = participant_id
        super().__init__(f"Participant '{participant_id}' is not part of this trip")


class InvalidDuration(EngineError):
    def __init__(self, duration_days: int):
        self.duration_days = duration_days
        super().__init__(f"Duration must be positive, got {duration_days} days")


class InvalidBudget(EngineError):
    pass


class InvalidExpense(EngineError):
    pass


SPLIT_AMOUNT_TOLERANCE = Decimal("0.01")
PERCENTAGE_TOLERANCE = Decimal("0.1")


def validate_participants(participant_ids: Sequence[str]) -> None:
    if len(participant_ids) == 0:
        raise EmptyParticipantSet()


def validate_lengths(field: str, values: Optional[Sequence], participant_count: int) -> None:
    """Array inputs must line up one-to-one with the participants."""
    if values is None or len(values) != participant_count:
        raise SplitLengthMismatch(field, 0 if values is None else len(values), participant_count)


def validate_amount_sum(amounts: Sequence[Decimal], total: Decimal) -> None:
    """
    Validate unequal split amounts.

    Rules:
    - |sum(amounts) - total| must be within one cent
    """
    split_sum = sum(amounts, Decimal("0"))
    if abs(split_sum - total) > SPLIT_AMOUNT_TOLERANCE:
        raise SplitMismatch(split_sum, total)


def validate_percentage_sum(percentages: Sequence[Decimal]) -> None:
    """
    Validate percentage split inputs.

    Rules:
    - |sum(percentages) - 100| must be within 0.1
    """
    percentage_sum = sum(percentages, Decimal("0"))
    if abs(percentage_sum - Decimal("100")) > PERCENTAGE_TOLERANCE:
        raise PercentageMismatch(percentage_sum)


def validate_duration(duration_days: int) -> None:
    if duration_days <= 0:
        raise InvalidDuration(duration_days)
