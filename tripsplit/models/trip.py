"""
Trip document as stored by the trip CRUD layer.

The engine only reads these; people are identified by name and stored
expenses carry no split information (they are shared equally).
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from tripsplit.models.base import MongoModel, _utcnow


# Embedded documents don't need MongoModel (no separate _id)
class Person(BaseModel):
    name: str


class TripExpense(BaseModel):
    payer: str
    amount: float
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")

    model_config = {"populate_by_name": True}


class Trip(MongoModel):
    name: str
    currency: str
    budget: float
    people: List[Person] = []
    expenses: List[TripExpense] = []
