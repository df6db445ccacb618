from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from tripsplit.main import app
from tripsplit.models.expense import Expense, ExpenseCategory, Participant, SplitPolicy
from tripsplit.services.split_service import SplitService


@pytest.fixture
def client():
    """Fixture for FastAPI test client (no lifespan, so no MongoDB connection)."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def mock_db():
    """MagicMock database whose collections expose async motor methods."""
    db = MagicMock()
    db.trips.find_one = AsyncMock()
    return db


@pytest.fixture
def participants():
    return [
        Participant(id="alice", display_name="Alice"),
        Participant(id="bob", display_name="Bob"),
        Participant(id="carol", display_name="Carol"),
    ]


@pytest.fixture
def make_expense():
    """Factory for engine expenses already expressed in the base currency."""
    counter = {"n": 0}

    def _make(
        amount,
        payer_id,
        participant_ids,
        policy=SplitPolicy.EQUAL,
        category=ExpenseCategory.OTHER,
        trip_id="trip-1",
        amounts=None,
        percentages=None,
    ):
        counter["n"] += 1
        amount = Decimal(amount)
        return Expense(
            id=f"exp-{counter['n']}",
            trip_id=trip_id,
            description=f"Expense {counter['n']}",
            original_amount=amount,
            original_currency="USD",
            amount_in_base_currency=amount,
            category=category,
            payer_id=payer_id,
            split_policy=policy,
            splits=SplitService.split(amount, policy, participant_ids, amounts=amounts, percentages=percentages),
            occurred_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
        )

    return _make
