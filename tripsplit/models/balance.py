from decimal import Decimal
from typing import Tuple

from tripsplit.models.base import ValueModel


class Balance(ValueModel):
    """
    Derived per-participant position, recomputed from the full expense set.

    net > 0: the group owes this participant
    net < 0: this participant owes the group
    """
    participant_id: str
    total_paid: Decimal
    total_owed: Decimal
    net: Decimal


class SuggestedSettlement(ValueModel):
    """Advisory transfer; never a ledger entry by itself."""
    from_participant_id: str
    to_participant_id: str
    amount: Decimal


class BalanceSheet(ValueModel):
    trip_id: str
    balances: Tuple[Balance, ...]
    suggested_settlements: Tuple[SuggestedSettlement, ...]
    total_spent: Decimal
    currency: str
