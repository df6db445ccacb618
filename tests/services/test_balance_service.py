import itertools
from decimal import Decimal

import pytest

from tripsplit.models.expense import SplitPolicy
from tripsplit.services.balance_service import BalanceService
from tripsplit.utils.split_validation import UnknownParticipant

IDS = ["alice", "bob", "carol"]


def _nets(balances):
    return {b.participant_id: b.net for b in balances}


def test_aggregate_single_payer(participants, make_expense):
    expense = make_expense("300.00", "alice", IDS)

    balances = BalanceService.aggregate([expense], participants)

    assert _nets(balances) == {
        "alice": Decimal("200.00"),
        "bob": Decimal("-100.00"),
        "carol": Decimal("-100.00"),
    }
    alice = balances[0]
    assert alice.total_paid == Decimal("300.00")
    assert alice.total_owed == Decimal("100.00")


def test_participants_without_expenses_still_appear(participants, make_expense):
    expense = make_expense("50.00", "alice", ["alice", "bob"])

    balances = BalanceService.aggregate([expense], participants)

    assert [b.participant_id for b in balances] == IDS
    carol = balances[2]
    assert carol.total_paid == Decimal("0")
    assert carol.total_owed == Decimal("0")
    assert carol.net == Decimal("0")


def test_no_expenses_gives_all_zero(participants):
    balances = BalanceService.aggregate([], participants)
    assert all(b.net == 0 for b in balances)


def test_nets_sum_to_zero(participants, make_expense):
    expenses = [
        make_expense("100.00", "alice", IDS),
        make_expense("33.33", "bob", IDS),
        make_expense("250.00", "carol", IDS, policy=SplitPolicy.PERCENTAGE, percentages=[40, 30, 30]),
        make_expense("10.01", "alice", ["bob", "carol"]),
        make_expense("75.00", "bob", IDS, policy=SplitPolicy.UNEQUAL, amounts=[25, 25, 25]),
    ]

    balances = BalanceService.aggregate(expenses, participants)

    assert abs(sum(b.net for b in balances)) <= Decimal("0.01")


def test_aggregation_is_order_independent(participants, make_expense):
    expenses = [
        make_expense("100.00", "alice", IDS),
        make_expense("17.35", "bob", ["alice", "bob"]),
        make_expense("64.20", "carol", IDS),
        make_expense("-12.00", "alice", IDS),
    ]

    expected = BalanceService.aggregate(expenses, participants)
    for ordering in itertools.permutations(expenses):
        assert BalanceService.aggregate(list(ordering), participants) == expected


def test_aggregate_does_not_mutate_expenses(participants, make_expense):
    expense = make_expense("30.00", "alice", IDS)
    before = expense.model_dump()

    BalanceService.aggregate([expense], participants)

    assert expense.model_dump() == before


def test_unknown_payer_is_rejected(participants, make_expense):
    expense = make_expense("30.00", "mallory", IDS)
    with pytest.raises(UnknownParticipant) as exc:
        BalanceService.aggregate([expense], participants)
    assert exc.value.participant_id == "mallory"


def test_unknown_split_participant_is_rejected(participants, make_expense):
    expense = make_expense("30.00", "alice", ["alice", "dave"])
    with pytest.raises(UnknownParticipant):
        BalanceService.aggregate([expense], participants)


def test_balance_sheet_filters_to_trip(participants, make_expense):
    expenses = [
        make_expense("300.00", "alice", IDS),
        make_expense("999.00", "bob", IDS, trip_id="other-trip"),
    ]

    sheet = BalanceService.balance_sheet("trip-1", expenses, participants, "USD")

    assert sheet.total_spent == Decimal("300.00")
    assert sheet.currency == "USD"
    assert _nets(sheet.balances)["alice"] == Decimal("200.00")
    assert [(s.from_participant_id, s.to_participant_id, s.amount) for s in sheet.suggested_settlements] == [
        ("bob", "alice", Decimal("100.00")),
        ("carol", "alice", Decimal("100.00")),
    ]
