from fastapi import APIRouter, HTTPException, Depends
from tripsplit.db.mongo import get_db
from tripsplit.models.trip import Trip
from tripsplit.repositories.trip_repo import TripRepository
from tripsplit.schemas.trip import (
    PlanRequest,
    PlanResponse,
    SplitRequest,
    SplitResponse,
    SummaryResponse,
)
from tripsplit.services.narrative_service import NarrativeService
from tripsplit.services.trip_service import TripService

router = APIRouter()

def get_trip_repository(db = Depends(get_db)) -> TripRepository:
    return TripRepository(db)

def get_narrative_service() -> NarrativeService:
    return NarrativeService.from_settings()

async def get_trip_or_404(
    trip_id: str,
    repo: TripRepository = Depends(get_trip_repository)
) -> Trip:
    trip = await repo.get_trip(trip_id)
    if not trip:
        raise HTTPException(status_code=404, detail="Trip not found")
    return trip

@router.post("/{trip_id}/split", response_model=SplitResponse, response_model_exclude_none=True)
async def split_trip(
    split_in: SplitRequest,
    trip: Trip = Depends(get_trip_or_404)
):
    """Split the trip budget among its people"""
    return TripService.split_budget(trip, split_in.type, split_in.data)

@router.get("/{trip_id}/summary", response_model=SummaryResponse)
async def trip_summary(trip: Trip = Depends(get_trip_or_404)):
    """Balance sheet and suggested settlements"""
    return TripService.summarize(trip)

@router.post("/{trip_id}/plan", response_model=PlanResponse)
async def plan_trip_budget(
    plan_in: PlanRequest,
    trip: Trip = Depends(get_trip_or_404),
    narrative: NarrativeService = Depends(get_narrative_service)
):
    """Allocate a budget over categories and describe the plan"""
    return await TripService.plan_budget(trip, plan_in, narrative)
