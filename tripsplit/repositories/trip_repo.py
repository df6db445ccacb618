"""
TripRepository - read-only access to trip documents.

Trips are created and edited by the CRUD layer; the engine only needs a
snapshot of one trip at a time.
"""

from typing import Optional
from motor.motor_asyncio import AsyncIOMotorDatabase
from bson import ObjectId

from tripsplit.models.trip import Trip


class TripRepository:
    """Repository for trip documents."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db.trips

    async def get_trip(self, trip_id: str) -> Optional[Trip]:
        """Get a trip by id, or None when the id is unknown or malformed."""
        if not ObjectId.is_valid(trip_id):
            return None

        doc = await self.collection.find_one({"_id": ObjectId(trip_id)})
        if not doc:
            return None
        return Trip(**doc)
