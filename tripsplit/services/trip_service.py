from decimal import Decimal
from typing import List, Optional

from fastapi.concurrency import run_in_threadpool

from tripsplit.models.budget import AdHocCategory
from tripsplit.models.expense import Expense, Participant, SplitPolicy
from tripsplit.models.trip import Trip
from tripsplit.schemas.trip import (
    PersonAllocation,
    PersonSummary,
    PlanCategoryOut,
    PlanRequest,
    PlanResponse,
    SettlementSuggestion,
    SplitData,
    SplitResponse,
    SummaryResponse,
)
from tripsplit.services.balance_service import BalanceService
from tripsplit.services.budget_service import BudgetService
from tripsplit.services.currency_service import as_decimal, round2
from tripsplit.services.narrative_service import NarrativeService
from tripsplit.services.settlement_service import SettlementService
from tripsplit.services.split_service import SplitService
from tripsplit.utils.split_validation import EmptyParticipantSet, EngineError, InvalidBudget


def _people(trip: Trip) -> List[str]:
    """Trip member names in order, without duplicates."""
    return list(dict.fromkeys(p.name for p in trip.people))


def _optional_decimal(value: Optional[float]) -> Optional[Decimal]:
    return None if value is None else as_decimal(value)


class TripService:
    @staticmethod
    def split_budget(trip: Trip, split_type: str, data: Optional[SplitData] = None) -> SplitResponse:
        """Divide the trip budget among its people under the requested policy."""
        people = _people(trip)
        if not people:
            raise EmptyParticipantSet("No people to split among")

        try:
            policy = SplitPolicy(split_type)
        except ValueError:
            raise EngineError(f"Unknown split type: {split_type}")

        data = data or SplitData()
        budget = as_decimal(trip.budget)
        splits = SplitService.split(budget, policy, people, amounts=data.amounts, percentages=data.percentages)

        allocations = [
            PersonAllocation(person=s.participant_id, amount=float(s.amount))
            for s in splits
        ]
        if policy == SplitPolicy.UNEQUAL:
            allocated = sum((s.amount for s in splits), Decimal("0"))
            return SplitResponse(
                allocations=allocations,
                difference=float(round2(budget - allocated)),
            )
        return SplitResponse(allocations=allocations)

    @staticmethod
    def trip_expenses(trip: Trip, people: List[str]) -> List[Expense]:
        """
        Stored trip expenses as engine expenses.

        Stored expenses carry no split data, so each one is shared equally by
        every member. Expenses paid by non-members are skipped.
        """
        expenses = []
        for index, stored in enumerate(trip.expenses):
            if stored.payer not in people:
                continue
            amount = as_decimal(stored.amount)
            expenses.append(
                Expense(
                    id=f"{trip.id}-{index}",
                    trip_id=str(trip.id),
                    description=stored.description or "",
                    original_amount=amount,
                    original_currency=trip.currency,
                    amount_in_base_currency=amount,
                    payer_id=stored.payer,
                    split_policy=SplitPolicy.EQUAL,
                    splits=SplitService.equal_split(amount, people),
                    occurred_at=stored.created_at,
                )
            )
        return expenses

    @staticmethod
    def summarize(trip: Trip) -> SummaryResponse:
        """Balance sheet and suggested settlements for a trip."""
        people = _people(trip)
        if not people:
            raise EmptyParticipantSet("No people in trip")

        participants = [Participant(id=name, display_name=name) for name in people]
        balances = BalanceService.aggregate(TripService.trip_expenses(trip, people), participants)
        settlements = SettlementService.plan(balances)

        return SummaryResponse(
            people=[
                PersonSummary(
                    name=b.participant_id,
                    paid=float(b.total_paid),
                    owed=float(b.total_owed),
                    net=float(b.net),
                )
                for b in balances
            ],
            settlements=[
                SettlementSuggestion(
                    from_=s.from_participant_id,
                    to=s.to_participant_id,
                    amount=float(s.amount),
                )
                for s in settlements
            ],
        )

    @staticmethod
    async def plan_budget(
        trip: Trip,
        plan_in: PlanRequest,
        narrative: NarrativeService,
    ) -> PlanResponse:
        """Ad-hoc budget plan plus a narrative summary of it."""
        budget = as_decimal(plan_in.totalBudget or trip.budget or 0)
        if budget <= 0:
            raise InvalidBudget("Invalid totalBudget")

        days = BudgetService.trip_days(plan_in.startDate, plan_in.endDate)
        categories = [
            AdHocCategory(
                name=c.name,
                amount=_optional_decimal(c.amount),
                percent=_optional_decimal(c.percent),
            )
            for c in plan_in.categories
        ]
        plan = BudgetService.plan_adhoc(budget, categories, days)

        context = {"trip_name": trip.name}
        if plan_in.startDate and plan_in.endDate:
            context["start_date"] = plan_in.startDate[:10]
            context["end_date"] = plan_in.endDate[:10]

        # The remote provider call is blocking; keep it off the event loop
        suggestion = await run_in_threadpool(narrative.suggest, plan, context)

        return PlanResponse(
            perDayBudget=float(plan.per_day_budget),
            days=plan.days,
            categories=[PlanCategoryOut(name=c.name, amount=float(c.amount)) for c in plan.categories],
            allocatedSum=float(plan.allocated_sum),
            difference=float(plan.difference),
            alerts=list(plan.alerts),
            aiSuggestion=suggestion,
        )
