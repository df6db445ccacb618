from unittest.mock import MagicMock

import pytest
from bson import ObjectId

from tripsplit.models.trip import Person, Trip, TripExpense
from tripsplit.schemas.trip import PlanCategoryIn, PlanRequest, SplitData
from tripsplit.services.trip_service import TripService
from tripsplit.utils.split_validation import (
    EmptyParticipantSet,
    EngineError,
    InvalidBudget,
    PercentageMismatch,
    SplitLengthMismatch,
    SplitMismatch,
)


def _trip(people=("Ana", "Ben", "Cleo"), budget=100.0, expenses=()):
    return Trip(
        id=ObjectId("507f1f77bcf86cd799439011"),
        name="Lisbon",
        currency="EUR",
        budget=budget,
        people=[Person(name=name) for name in people],
        expenses=[TripExpense(payer=payer, amount=amount) for payer, amount in expenses],
    )


def _allocations(response):
    return [(a.person, a.amount) for a in response.allocations]


class TestSplitBudget:
    def test_equal_split_gives_remainder_to_last_person(self):
        response = TripService.split_budget(_trip(), "equal")

        assert _allocations(response) == [("Ana", 33.33), ("Ben", 33.33), ("Cleo", 33.34)]
        assert response.difference is None

    def test_percentage_split(self):
        response = TripService.split_budget(
            _trip(budget=1000.0), "percentage", SplitData(percentages=[50, 30, 20])
        )

        assert _allocations(response) == [("Ana", 500.0), ("Ben", 300.0), ("Cleo", 200.0)]

    def test_unequal_split_reports_difference(self):
        response = TripService.split_budget(
            _trip(budget=1000.0), "unequal", SplitData(amounts=[300, 300, 399.99])
        )

        assert _allocations(response) == [("Ana", 300.0), ("Ben", 300.0), ("Cleo", 399.99)]
        assert response.difference == 0.01

    def test_unequal_split_rejects_shortfall(self):
        with pytest.raises(SplitMismatch) as exc:
            TripService.split_budget(_trip(), "unequal", SplitData(amounts=[40, 40, 10]))
        assert "short by 10.00" in str(exc.value)

    def test_percentages_must_sum_to_hundred(self):
        with pytest.raises(PercentageMismatch):
            TripService.split_budget(_trip(), "percentage", SplitData(percentages=[50, 30, 10]))

    def test_percentages_must_match_people(self):
        with pytest.raises(SplitLengthMismatch):
            TripService.split_budget(_trip(), "percentage", SplitData(percentages=[50, 50]))

    def test_missing_amounts_are_rejected(self):
        with pytest.raises(SplitLengthMismatch):
            TripService.split_budget(_trip(), "unequal")

    def test_unknown_type(self):
        with pytest.raises(EngineError, match="Unknown split type"):
            TripService.split_budget(_trip(), "random")

    def test_no_people(self):
        with pytest.raises(EmptyParticipantSet, match="No people to split among"):
            TripService.split_budget(_trip(people=()), "equal")

    def test_duplicate_names_count_once(self):
        response = TripService.split_budget(_trip(people=("Ana", "Ben", "Ana")), "equal")
        assert _allocations(response) == [("Ana", 50.0), ("Ben", 50.0)]


class TestSummarize:
    def test_single_payer_is_repaid_by_the_others(self):
        trip = _trip(expenses=[("Ana", 300.0)])

        summary = TripService.summarize(trip)

        assert [(p.name, p.paid, p.owed, p.net) for p in summary.people] == [
            ("Ana", 300.0, 100.0, 200.0),
            ("Ben", 0.0, 100.0, -100.0),
            ("Cleo", 0.0, 100.0, -100.0),
        ]
        assert [(s.from_, s.to, s.amount) for s in summary.settlements] == [
            ("Ben", "Ana", 100.0),
            ("Cleo", "Ana", 100.0),
        ]

    def test_non_member_payer_is_skipped(self):
        trip = _trip(expenses=[("Ana", 90.0), ("Zed", 500.0)])

        summary = TripService.summarize(trip)

        assert sum(p.paid for p in summary.people) == 90.0
        assert [s.amount for s in summary.settlements] == [30.0, 30.0]

    def test_nets_sum_to_zero_with_rounding(self):
        trip = _trip(expenses=[("Ana", 10.0), ("Ben", 20.0), ("Cleo", 0.01)])

        summary = TripService.summarize(trip)

        assert abs(sum(p.net for p in summary.people)) < 0.011

    def test_no_expenses_means_no_settlements(self):
        summary = TripService.summarize(_trip())

        assert all(p.net == 0 for p in summary.people)
        assert summary.settlements == []

    def test_no_people(self):
        with pytest.raises(EmptyParticipantSet, match="No people in trip"):
            TripService.summarize(_trip(people=()))


@pytest.mark.asyncio
class TestPlanBudget:
    async def test_plan_with_percent_categories(self):
        narrative = MagicMock()
        narrative.suggest.return_value = "Keep it cheap."
        plan_in = PlanRequest(
            totalBudget=1000,
            startDate="2024-06-01T00:00:00Z",
            endDate="2024-06-04T00:00:00Z",
            categories=[PlanCategoryIn(name="Food", percent=40), PlanCategoryIn(name="Stay", percent=60)],
        )

        response = await TripService.plan_budget(_trip(), plan_in, narrative)

        assert response.days == 4
        assert response.perDayBudget == 250.0
        assert [(c.name, c.amount) for c in response.categories] == [("Food", 400.0), ("Stay", 600.0)]
        assert response.allocatedSum == 1000.0
        assert response.difference == 0.0
        assert response.alerts == []
        assert response.aiSuggestion == "Keep it cheap."

        _, context = narrative.suggest.call_args.args
        assert context == {"trip_name": "Lisbon", "start_date": "2024-06-01", "end_date": "2024-06-04"}

    async def test_plan_falls_back_to_trip_budget(self):
        narrative = MagicMock()
        narrative.suggest.return_value = ""
        plan_in = PlanRequest(categories=[PlanCategoryIn(name="Food"), PlanCategoryIn()])

        response = await TripService.plan_budget(_trip(budget=100.0), plan_in, narrative)

        assert response.days == 1
        assert [(c.name, c.amount) for c in response.categories] == [("Food", 50.0), ("category", 50.0)]

    async def test_plan_reports_unallocated_budget(self):
        narrative = MagicMock()
        narrative.suggest.return_value = "text"
        plan_in = PlanRequest(
            totalBudget=500,
            categories=[PlanCategoryIn(name="Food", percent=30), PlanCategoryIn(name="Fun", percent=69.6)],
        )

        response = await TripService.plan_budget(_trip(), plan_in, narrative)

        assert response.difference == 2.0
        assert response.alerts == ["Some budget unallocated"]

    @pytest.mark.parametrize("budget", [0, -10])
    async def test_plan_rejects_non_positive_budget(self, budget):
        plan_in = PlanRequest(totalBudget=budget)
        with pytest.raises(InvalidBudget, match="Invalid totalBudget"):
            await TripService.plan_budget(_trip(budget=0.0), plan_in, MagicMock())
