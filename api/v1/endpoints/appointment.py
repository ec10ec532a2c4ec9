from datetime import datetime, timezone
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, Query, status

from dependencies.store import get_data_store
from schemas.availability_schema import AppointmentDTO, BookingRequestDTO
from schemas.enum import AppointmentStatus, BookingMode
from services.booking_service import BookingValidationError, book_appointment
from services.data_store import DataStore, DataStoreError, SlotAlreadyTakenError

router = APIRouter(
    prefix='/appointments',
    tags=["appointments"]
    )

@router.post("", response_model=AppointmentDTO, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    payload: BookingRequestDTO,
    mode: BookingMode = Query(BookingMode.CLIENT),
    appointment_status: Optional[AppointmentStatus] = Query(None, alias="status"),
    store: DataStore = Depends(get_data_store)
):
    try:
        return await book_appointment(store, payload, mode=mode, status=appointment_status)

    except BookingValidationError as e:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(e))

    except SlotAlreadyTakenError:
        raise HTTPException(status.HTTP_409_CONFLICT, "Slot already booked")

    except DataStoreError:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Booking could not be saved")

@router.get("/{master_id}/upcoming", response_model=List[AppointmentDTO])
async def list_upcoming_appointments(
    master_id: uuid.UUID,
    limit: Optional[int] = Query(None, ge=1, le=100),
    store: DataStore = Depends(get_data_store)
):
    try:
        return await store.fetch_upcoming_appointments(
            master_id,
            datetime.now(timezone.utc),
            limit=limit
        )
    except DataStoreError:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Appointments could not be loaded")
