"""
Booking write path.

The slot check here is check-then-act: another client can take the same slot
between the check and the insert. The partial unique index on
appointments(master_id, start_time) is what guarantees one live booking per
slot; its violation comes back as SlotAlreadyTakenError.
"""
from datetime import datetime, timezone
from typing import Iterable, Optional

from loguru import logger

from core.config import SLOT_INTERVAL_MINUTES
from schemas.availability_schema import AppointmentDTO, BookingRequestDTO
from schemas.enum import AppointmentStatus, BookingMode, ResolutionState
from services.calendar_loader import day_loader, policy_for, slots_for_day
from services.data_store import DataStore, DataStoreError, SlotAlreadyTakenError
from services.slot_service import find_slot
from services.time_utils import business_tz, local_date, overlaps, to_local


class BookingValidationError(Exception):
    """The requested interval is not a currently selectable slot."""


def overlapping(
    appointments: Iterable[AppointmentDTO],
    start: datetime,
    end: datetime
) -> list[AppointmentDTO]:
    return [
        appt for appt in appointments
        if appt.status != AppointmentStatus.CANCELLED
        and overlaps(appt.start_time, appt.end_time, start, end)
    ]


async def book_appointment(
    store: DataStore,
    request: BookingRequestDTO,
    mode: BookingMode = BookingMode.CLIENT,
    status: Optional[AppointmentStatus] = None,
    now: Optional[datetime] = None,
    interval_minutes: int = SLOT_INTERVAL_MINUTES,
) -> AppointmentDTO:
    tz = business_tz()
    now = now or datetime.now(timezone.utc)
    policy = policy_for(mode)

    start = to_local(request.start_time, tz)
    end = to_local(request.end_time, tz)
    if end <= start:
        raise BookingValidationError("end_time must be after start_time")

    target_date = local_date(start, tz)
    loader = day_loader(store, request.master_id, target_date, now, tz)
    await loader.wait()

    resolution = loader.resolve(
        lambda inputs: (
            slots_for_day(inputs, request.master_id, target_date, policy, now, interval_minutes, tz),
            inputs.appointments,
        ),
        lambda _: False,
    )
    if resolution.state == ResolutionState.FAILED:
        raise DataStoreError(f"Could not load calendar: {resolution.error}")

    slots, appointments = resolution.data
    slot = find_slot(slots, start)
    if slot is None or slot.end_time != end:
        raise BookingValidationError("Requested time is not an offered slot")
    if slot.is_booked:
        raise SlotAlreadyTakenError(request.master_id, start)
    if slot.is_past:
        raise BookingValidationError("Requested slot is in the past")
    if overlapping(appointments, start, end):
        raise SlotAlreadyTakenError(request.master_id, start)

    # clients always start as pending, masters may set the status directly
    if mode == BookingMode.CLIENT or status is None:
        status = AppointmentStatus.PENDING

    appointment = await store.create_appointment(
        request.model_copy(update={"start_time": start, "end_time": end}),
        status=status,
    )
    logger.info(
        f"Booked appointment {appointment.id} for master {appointment.master_id} "
        f"at {appointment.start_time.isoformat()}"
    )
    return appointment
