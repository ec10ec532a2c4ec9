from datetime import date
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger

from core.config import SLOT_INTERVAL_MINUTES
from dependencies.store import get_data_store
from schemas.availability_schema import Resolution, ResolvedDate, Slot
from schemas.enum import BookingMode, ResolutionState
from services.calendar_loader import resolve_calendar, resolve_day_slots
from services.data_store import DataStore

router = APIRouter(prefix="/availability", tags=["Availability"])

@router.get(
    "/{master_id}/dates",
    response_model=Resolution[List[ResolvedDate]]
)
async def get_bookable_dates(
    master_id: uuid.UUID,
    mode: BookingMode = Query(BookingMode.CLIENT, description="client: 30 weekdays, master: 90 days incl. weekends"),
    days: Optional[int] = Query(None, ge=1, le=366, description="override the mode's horizon"),
    store: DataStore = Depends(get_data_store)
):
    resolution = await resolve_calendar(store, master_id, mode, horizon_days=days)

    if resolution.state == ResolutionState.FAILED:
        logger.warning(f"Date resolution unavailable for master {master_id}: {resolution.error}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Availability could not be loaded"
        )

    return resolution

@router.get(
    "/{master_id}/slots",
    response_model=Resolution[List[Slot]]
)
async def get_day_slots(
    master_id: uuid.UUID,
    date: date,
    mode: BookingMode = Query(BookingMode.CLIENT),
    interval_minutes: int = Query(SLOT_INTERVAL_MINUTES, ge=5, le=240),
    store: DataStore = Depends(get_data_store)
):
    resolution = await resolve_day_slots(
        store,
        master_id,
        date,
        mode,
        interval_minutes=interval_minutes
    )

    if resolution.state == ResolutionState.FAILED:
        logger.warning(f"Slot resolution unavailable for master {master_id} on {date}: {resolution.error}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Time slots could not be loaded"
        )

    return resolution
