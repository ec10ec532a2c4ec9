from pydantic import BaseModel, Field, computed_field
from datetime import date, time, datetime
from typing import Generic, Optional, TypeVar
import uuid

from schemas.enum import AppointmentStatus, ResolutionState

T = TypeVar("T")

class RecurringRule(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0=Sun, 1=Mon, ..., 6=Sat")
    start_time: str
    end_time: str

    class Config:
        from_attributes = True

class ExceptionRule(BaseModel):
    exception_date: date
    is_available: bool = False
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    class Config:
        from_attributes = True

class AppointmentDTO(BaseModel):
    id: uuid.UUID
    master_id: uuid.UUID
    client_id: Optional[uuid.UUID] = None
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus = AppointmentStatus.PENDING
    notes: Optional[str] = None

    class Config:
        from_attributes = True

class ResolvedDate(BaseModel):
    date: date
    is_bookable: bool
    has_existing_appointment: bool

class ServiceWindow(BaseModel):
    start: time
    end: time

class Slot(BaseModel):
    start_time: datetime
    end_time: datetime
    is_booked: bool
    is_past: bool

    @computed_field
    @property
    def is_selectable(self) -> bool:
        return not self.is_booked and not self.is_past

class Resolution(BaseModel, Generic[T]):
    """Outcome of a resolution cycle.

    LOADING while the joined fetch is in flight, FAILED when any fetch raised,
    EMPTY when resolution succeeded with nothing bookable, READY otherwise.
    """
    state: ResolutionState
    data: Optional[T] = None
    error: Optional[str] = None

class BookingRequestDTO(BaseModel):
    master_id: uuid.UUID
    client_id: Optional[uuid.UUID] = None
    start_time: datetime
    end_time: datetime
    notes: Optional[str] = Field(default=None, max_length=1000)
