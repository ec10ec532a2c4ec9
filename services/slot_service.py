from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional
import uuid
import pytz

from core.config import SLOT_INTERVAL_MINUTES
from schemas.availability_schema import AppointmentDTO, ServiceWindow, Slot
from schemas.enum import AppointmentStatus
from services.availability_service import default_window
from services.time_utils import business_tz, combine_local, local_date, local_hhmm

def booked_start_times(
    target_date: date,
    appointments: Iterable[AppointmentDTO],
    tz: pytz.BaseTzInfo,
    master_id: Optional[uuid.UUID] = None
) -> set[str]:
    booked = set()
    for appt in appointments:
        if appt.status == AppointmentStatus.CANCELLED:
            continue
        if master_id is not None and appt.master_id != master_id:
            continue
        if local_date(appt.start_time, tz) != target_date:
            continue
        booked.add(local_hhmm(appt.start_time, tz))
    return booked

def generate_slots(
    target_date: date,
    existing_appointments: Iterable[AppointmentDTO] = (),
    *,
    master_id: Optional[uuid.UUID] = None,
    window: Optional[ServiceWindow] = None,
    interval_minutes: int = SLOT_INTERVAL_MINUTES,
    now: Optional[datetime] = None,
    tz: Optional[pytz.BaseTzInfo] = None,
) -> List[Slot]:
    """
    Fixed-length slots from window.start, stepped by interval_minutes.
    A slot is only emitted when it ends inside the window, so 10:00-16:00
    at 60 minutes gives 10:00 .. 15:00 and never 16:00.
    """
    if interval_minutes <= 0:
        raise ValueError("interval_minutes must be positive")

    tz = tz or business_tz()
    window = window or default_window()
    now = now or datetime.now(timezone.utc)
    step = timedelta(minutes=interval_minutes)

    booked = booked_start_times(target_date, existing_appointments, tz, master_id)

    cursor = combine_local(target_date, window.start, tz)
    window_end = combine_local(target_date, window.end, tz)

    slots = []
    while cursor + step <= window_end:
        slots.append(
            Slot(
                start_time=cursor,
                end_time=tz.normalize(cursor + step),
                is_booked=local_hhmm(cursor, tz) in booked,
                is_past=cursor < now,
            )
        )
        # normalize keeps the offset right across DST changes
        cursor = tz.normalize(cursor + step)

    return slots

def find_slot(slots: Iterable[Slot], start_time: datetime) -> Optional[Slot]:
    for slot in slots:
        if slot.start_time == start_time:
            return slot
    return None
