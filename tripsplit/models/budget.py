"""
Budget models - category allocations, tracked spending and alerts.

Invariants:
- sum(category_allocations.allocated_amount) == total_budget to the cent
- category_spending and alerts are derived from expenses; recomputing them
  from the same expenses yields an equal plan
"""

from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from tripsplit.models.base import ValueModel
from tripsplit.models.expense import ExpenseCategory


class AlertLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"


class BudgetAlert(ValueModel):
    id: str
    level: AlertLevel
    message: str
    category: Optional[ExpenseCategory] = None


class CategoryAllocation(ValueModel):
    category: ExpenseCategory
    allocated_amount: Decimal
    percentage: Decimal


class CategorySpending(ValueModel):
    category: ExpenseCategory
    allocated: Decimal
    spent: Decimal
    remaining: Decimal
    percent_used: Decimal


class BudgetPlan(ValueModel):
    trip_id: str
    total_budget: Decimal
    base_currency: str
    duration_days: int
    daily_budget: Decimal
    category_allocations: Tuple[CategoryAllocation, ...]
    category_spending: Tuple[CategorySpending, ...]
    alerts: Tuple[BudgetAlert, ...] = ()


class AdHocCategory(ValueModel):
    """Free-form category input: a raw amount, a percentage, or neither."""
    name: str
    amount: Optional[Decimal] = None
    percent: Optional[Decimal] = None


class AdHocAllocation(ValueModel):
    name: str
    amount: Decimal


class AdHocPlan(ValueModel):
    total_budget: Decimal
    days: int
    per_day_budget: Decimal
    categories: Tuple[AdHocAllocation, ...]
    allocated_sum: Decimal
    difference: Decimal
    alerts: Tuple[str, ...] = ()
