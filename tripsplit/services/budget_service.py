"""
BudgetAllocator - category allocation, spend tracking and threshold alerts.

Three entry points:
- create_plan: weighted allocation over the fixed category set
- update_spending: pure recomputation of spend, remaining and alerts
- plan_adhoc: free-form categories given as percentages or raw amounts

Alert thresholds are inclusive: 80% used is a warning, 100% is danger.
Overall and per-category alerts may coexist and are never deduplicated.
"""

import math
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from tripsplit.core.logging import get_logger
from tripsplit.models.budget import (
    AdHocAllocation,
    AdHocCategory,
    AdHocPlan,
    AlertLevel,
    BudgetAlert,
    BudgetPlan,
    CategoryAllocation,
    CategorySpending,
)
from tripsplit.models.expense import Expense, ExpenseCategory
from tripsplit.services.currency_service import CENT, Number, ZERO, as_decimal, round2
from tripsplit.utils.split_validation import InvalidBudget, validate_duration

logger = get_logger(__name__)

HUNDRED = Decimal("100")
WARNING_THRESHOLD = Decimal("80")
DANGER_THRESHOLD = Decimal("100")
PERCENT_TOLERANCE = Decimal("0.5")

DEFAULT_CATEGORY_WEIGHTS: Dict[ExpenseCategory, Decimal] = {
    ExpenseCategory.ACCOMMODATION: Decimal("35"),
    ExpenseCategory.TRANSPORT: Decimal("20"),
    ExpenseCategory.FOOD: Decimal("20"),
    ExpenseCategory.ACTIVITIES: Decimal("10"),
    ExpenseCategory.SHOPPING: Decimal("5"),
    ExpenseCategory.ENTERTAINMENT: Decimal("5"),
    ExpenseCategory.HEALTH: Decimal("2"),
    ExpenseCategory.OTHER: Decimal("3"),
}

OVER_ALLOCATED_NOTE = "Allocated categories exceed total budget"
UNALLOCATED_NOTE = "Some budget unallocated"


def _check_budget(total: Decimal) -> None:
    if total < ZERO:
        raise InvalidBudget(f"Total budget must not be negative, got {total}")


def _trip_spend(plan: BudgetPlan, expenses: Iterable[Expense]) -> List[Expense]:
    return [e for e in expenses if e.trip_id == plan.trip_id]


def _overall_alerts(plan: BudgetPlan, total_spent: Decimal) -> List[BudgetAlert]:
    if plan.total_budget > ZERO:
        percent_used = total_spent / plan.total_budget * HUNDRED
    else:
        percent_used = DANGER_THRESHOLD if total_spent > ZERO else ZERO

    if percent_used >= DANGER_THRESHOLD:
        return [BudgetAlert(
            id="alert-over-budget",
            level=AlertLevel.DANGER,
            message=(
                f"You've exceeded your total budget by "
                f"{round2(total_spent - plan.total_budget)} {plan.base_currency}!"
            ),
        )]
    if percent_used >= WARNING_THRESHOLD:
        return [BudgetAlert(
            id="alert-budget-warning",
            level=AlertLevel.WARNING,
            message=f"You've used {round2(percent_used)}% of your total budget.",
        )]
    return []


def _category_alerts(plan: BudgetPlan, spending: Sequence[CategorySpending]) -> List[BudgetAlert]:
    alerts = []
    for entry in spending:
        if entry.percent_used >= DANGER_THRESHOLD:
            alerts.append(BudgetAlert(
                id=f"alert-cat-over-{entry.category.value}",
                level=AlertLevel.DANGER,
                message=(
                    f"{entry.category.label} budget exceeded by "
                    f"{abs(entry.remaining)} {plan.base_currency}"
                ),
                category=entry.category,
            ))
        elif entry.percent_used >= WARNING_THRESHOLD:
            alerts.append(BudgetAlert(
                id=f"alert-cat-warn-{entry.category.value}",
                level=AlertLevel.WARNING,
                message=f"{entry.category.label} is at {entry.percent_used}% of budget",
                category=entry.category,
            ))
    return alerts


def _from_percentages(total: Decimal, categories: Sequence[AdHocCategory]) -> List[Decimal]:
    percents = [c.percent if c.percent is not None else ZERO for c in categories]
    percent_sum = sum(percents, ZERO)

    if abs(percent_sum - HUNDRED) < PERCENT_TOLERANCE:
        return [round2(total * p / HUNDRED) for p in percents]

    divisor = percent_sum or Decimal("1")
    return [round2(total * (p / divisor)) for p in percents]


def _from_amounts(total: Decimal, categories: Sequence[AdHocCategory]) -> List[Decimal]:
    amounts = [c.amount if c.amount is not None else ZERO for c in categories]
    amount_sum = sum(amounts, ZERO)

    if abs(amount_sum - total) > CENT and amount_sum > ZERO:
        factor = total / amount_sum
        return [round2(a * factor) for a in amounts]
    return [round2(a) for a in amounts]


def _as_datetime(value: Union[None, str, date, datetime]) -> Optional[datetime]:
    """Parse a date or timestamp; values without an offset are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class BudgetService:
    @staticmethod
    def create_plan(
        trip_id: str,
        total_budget: Number,
        duration_days: int,
        base_currency: str,
        category_weights: Optional[Mapping[Union[ExpenseCategory, str], Number]] = None,
    ) -> BudgetPlan:
        """
        Allocate total_budget across the fixed categories.

        category_weights override the default weights per category and need not
        sum to 100; they are normalized. The last category with a positive weight
        absorbs the rounding remainder so allocations sum exactly to the budget.
        """
        validate_duration(duration_days)
        total = as_decimal(total_budget)
        _check_budget(total)

        weights = dict(DEFAULT_CATEGORY_WEIGHTS)
        for category, weight in (category_weights or {}).items():
            weights[ExpenseCategory(category)] = as_decimal(weight)

        if any(weight < ZERO for weight in weights.values()):
            raise InvalidBudget("Category weights must not be negative")
        weight_sum = sum(weights.values(), ZERO)
        if weight_sum <= ZERO:
            raise InvalidBudget("At least one category weight must be positive")

        categories = list(ExpenseCategory)
        absorbing = max(i for i, cat in enumerate(categories) if weights[cat] > ZERO)

        amounts: Dict[ExpenseCategory, Decimal] = {}
        allocated = ZERO
        for index, category in enumerate(categories):
            if index == absorbing:
                continue
            amount = round2(weights[category] / weight_sum * total)
            amounts[category] = amount
            allocated += amount
        amounts[categories[absorbing]] = total - allocated

        allocations = tuple(
            CategoryAllocation(
                category=category,
                allocated_amount=amounts[category],
                percentage=round2(weights[category] / weight_sum * HUNDRED),
            )
            for category in categories
        )

        return BudgetPlan(
            trip_id=trip_id,
            total_budget=total,
            base_currency=base_currency,
            duration_days=duration_days,
            daily_budget=round2(total / duration_days),
            category_allocations=allocations,
            category_spending=tuple(
                CategorySpending(
                    category=a.category,
                    allocated=a.allocated_amount,
                    spent=ZERO,
                    remaining=a.allocated_amount,
                    percent_used=ZERO,
                )
                for a in allocations
            ),
        )

    @staticmethod
    def update_spending(plan: BudgetPlan, expenses: Iterable[Expense]) -> BudgetPlan:
        """Return a new plan with spending and alerts recomputed from expenses."""
        trip_expenses = _trip_spend(plan, expenses)

        by_category: Dict[ExpenseCategory, Decimal] = {cat: ZERO for cat in ExpenseCategory}
        for expense in trip_expenses:
            by_category[expense.category] += expense.amount_in_base_currency

        spending = []
        for allocation in plan.category_allocations:
            allocated = allocation.allocated_amount
            spent = round2(by_category[allocation.category])
            percent_used = round2(spent / allocated * HUNDRED) if allocated > ZERO else ZERO
            spending.append(
                CategorySpending(
                    category=allocation.category,
                    allocated=allocated,
                    spent=spent,
                    remaining=round2(allocated - spent),
                    percent_used=percent_used,
                )
            )

        total_spent = sum((e.amount_in_base_currency for e in trip_expenses), ZERO)
        alerts = _overall_alerts(plan, total_spent) + _category_alerts(plan, spending)

        return plan.model_copy(
            update={"category_spending": tuple(spending), "alerts": tuple(alerts)}
        )

    @staticmethod
    def remaining_daily_budget(
        plan: BudgetPlan,
        expenses: Iterable[Expense],
        days_remaining: int,
    ) -> Decimal:
        """What can still be spent per day for the rest of the trip."""
        if days_remaining <= 0:
            return ZERO
        total_spent = sum((e.amount_in_base_currency for e in _trip_spend(plan, expenses)), ZERO)
        return round2((plan.total_budget - total_spent) / days_remaining)

    @staticmethod
    def budget_insights(plan: BudgetPlan, expenses: Iterable[Expense]) -> List[str]:
        expenses = list(expenses)
        insights: List[str] = []
        updated = BudgetService.update_spending(plan, expenses)

        by_spend = sorted(updated.category_spending, key=lambda s: s.spent, reverse=True)
        if by_spend and by_spend[0].spent > ZERO:
            top = by_spend[0]
            insights.append(
                f"Highest spending: {top.category.label} ({top.spent} {plan.base_currency})"
            )

        room = [s for s in updated.category_spending if s.percent_used < 50 and s.allocated > ZERO]
        if room:
            insights.append(
                "Categories with room to spend: " + ", ".join(s.category.label for s in room)
            )

        if plan.daily_budget > ZERO:
            total_spent = sum((e.amount_in_base_currency for e in _trip_spend(plan, expenses)), ZERO)
            pace = (total_spent / plan.duration_days) / plan.daily_budget
            if pace > Decimal("1.2"):
                insights.append(f"Spending {round2((pace - 1) * HUNDRED)}% above daily budget pace")
            elif pace < Decimal("0.8"):
                insights.append(f"Spending {round2((1 - pace) * HUNDRED)}% below daily budget pace")

        return insights

    @staticmethod
    def distribute_evenly(total: Number, count: int) -> List[Decimal]:
        """
        Split total into count parts in whole cents.

        The first (total_cents % count) parts receive one extra cent, so the parts
        always sum exactly to the total.
        """
        total_cents = int(round2(total) * 100)
        base = total_cents // count
        remainder = total_cents - base * count
        return [Decimal(base + (1 if i < remainder else 0)).scaleb(-2) for i in range(count)]

    @staticmethod
    def plan_adhoc(
        total_budget: Number,
        categories: Sequence[AdHocCategory],
        days: int = 1,
    ) -> AdHocPlan:
        """
        Allocate a budget over free-form categories.

        - any percent given: use percents directly when they sum to ~100,
          otherwise normalize them
        - otherwise raw amounts, rescaled proportionally when their sum is off
          the budget by more than a cent
        - everything ~0: distribute the budget evenly in whole cents
        """
        validate_duration(days)
        total = as_decimal(total_budget)
        _check_budget(total)

        if any(c.percent is not None for c in categories):
            amounts = _from_percentages(total, categories)
        else:
            amounts = _from_amounts(total, categories)

        allocated_sum = sum(amounts, ZERO)
        if categories and abs(allocated_sum) < CENT:
            logger.debug("adhoc_even_fallback", categories=len(categories), total=str(total))
            amounts = BudgetService.distribute_evenly(total, len(categories))
            allocated_sum = sum(amounts, ZERO)

        difference = round2(total - allocated_sum)
        alerts = []
        if difference < -CENT:
            alerts.append(OVER_ALLOCATED_NOTE)
        if difference > CENT:
            alerts.append(UNALLOCATED_NOTE)

        return AdHocPlan(
            total_budget=total,
            days=days,
            per_day_budget=round2(total / days),
            categories=tuple(
                AdHocAllocation(name=c.name or "category", amount=amount)
                for c, amount in zip(categories, amounts)
            ),
            allocated_sum=allocated_sum,
            difference=difference,
            alerts=tuple(alerts),
        )

    @staticmethod
    def trip_days(
        start: Union[None, str, date, datetime],
        end: Union[None, str, date, datetime],
    ) -> int:
        """Inclusive day span ceil((end - start) / 1 day) + 1; 1 when unknown or reversed."""
        start_at = _as_datetime(start)
        end_at = _as_datetime(end)
        if start_at is None or end_at is None:
            return 1
        seconds = (end_at - start_at).total_seconds()
        days = math.ceil(seconds / 86400) + 1
        return days if days > 0 else 1
