"""Pytest configuration and fixtures."""

import asyncio
from datetime import date, datetime, timedelta
from typing import List, Optional
import uuid

import pytest

from schemas.availability_schema import (
    AppointmentDTO,
    BookingRequestDTO,
    ExceptionRule,
    RecurringRule,
)
from schemas.enum import AppointmentStatus
from services.data_store import DataStore, DataStoreError, SlotAlreadyTakenError
from services.time_utils import business_tz

MASTER_ID = uuid.UUID("6f1c2a7e-3b9d-4c55-9a0e-1d2b3c4d5e6f")
OTHER_MASTER_ID = uuid.UUID("0a0b0c0d-0e0f-4a1b-8c2d-3e4f5a6b7c8d")
CLIENT_ID = uuid.UUID("11111111-2222-4333-8444-555555555555")

# 2026-10-18 is a Sunday
SUNDAY = date(2026, 10, 18)
MONDAY = date(2026, 10, 19)


def canonical_rule(day_of_week: int) -> RecurringRule:
    return RecurringRule(day_of_week=day_of_week, start_time="10:00:00", end_time="16:00:00")


def make_appointment(
    day: date,
    hour: int,
    minute: int = 0,
    minutes: int = 60,
    status: AppointmentStatus = AppointmentStatus.CONFIRMED,
    master_id: uuid.UUID = MASTER_ID,
) -> AppointmentDTO:
    tz = business_tz()
    start = tz.localize(datetime(day.year, day.month, day.day, hour, minute))
    return AppointmentDTO(
        id=uuid.uuid4(),
        master_id=master_id,
        client_id=CLIENT_ID,
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
        status=status,
    )


def local_dt(day: date, hour: int, minute: int = 0) -> datetime:
    return business_tz().localize(datetime(day.year, day.month, day.day, hour, minute))


class InMemoryDataStore(DataStore):
    """Single-master store that records how many reads overlap in time."""

    def __init__(
        self,
        rules: Optional[List[RecurringRule]] = None,
        exceptions: Optional[List[ExceptionRule]] = None,
        appointments: Optional[List[AppointmentDTO]] = None,
        master_id: uuid.UUID = MASTER_ID,
        delay: float = 0.01,
    ):
        self.master_id = master_id
        self.rules = list(rules or [])
        self.exceptions = list(exceptions or [])
        self.appointments = list(appointments or [])
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0
        self.calls: list[str] = []
        self.exceptions_from: Optional[date] = None

    async def _read(self, name: str):
        self.calls.append(name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1

    async def fetch_recurring_rules(self, master_id):
        await self._read("rules")
        return list(self.rules) if master_id == self.master_id else []

    async def fetch_exceptions(self, master_id, from_date):
        self.exceptions_from = from_date
        await self._read("exceptions")
        if master_id != self.master_id:
            return []
        return [e for e in self.exceptions if e.exception_date >= from_date]

    async def fetch_appointments(self, master_id, start, end):
        await self._read("appointments")
        return [
            a for a in self.appointments
            if a.master_id == master_id and start <= a.start_time <= end
        ]

    async def fetch_upcoming_appointments(self, master_id, now, limit=None):
        await self._read("upcoming")
        upcoming = sorted(
            (
                a for a in self.appointments
                if a.master_id == master_id
                and a.start_time >= now
                and a.status != AppointmentStatus.CANCELLED
            ),
            key=lambda a: a.start_time,
        )
        return upcoming[:limit] if limit else upcoming

    async def create_appointment(
        self,
        request: BookingRequestDTO,
        status: AppointmentStatus = AppointmentStatus.PENDING
    ) -> AppointmentDTO:
        for existing in self.appointments:
            if (
                existing.master_id == request.master_id
                and existing.start_time == request.start_time
                and existing.status != AppointmentStatus.CANCELLED
            ):
                raise SlotAlreadyTakenError(request.master_id, request.start_time)

        appointment = AppointmentDTO(
            id=uuid.uuid4(),
            master_id=request.master_id,
            client_id=request.client_id,
            start_time=request.start_time,
            end_time=request.end_time,
            status=status,
            notes=request.notes,
        )
        self.appointments.append(appointment)
        return appointment


class FailingDataStore(InMemoryDataStore):
    """Appointments read always fails."""

    async def fetch_appointments(self, master_id, start, end):
        await self._read("appointments")
        raise DataStoreError("appointments query failed")

    async def fetch_upcoming_appointments(self, master_id, now, limit=None):
        raise DataStoreError("appointments query failed")


@pytest.fixture
def tz():
    return business_tz()


@pytest.fixture
def weekday_rules() -> List[RecurringRule]:
    """Canonical 10:00-16:00 window Monday to Friday."""
    return [canonical_rule(d) for d in range(1, 6)]


@pytest.fixture
def everyday_rules() -> List[RecurringRule]:
    return [canonical_rule(d) for d in range(0, 7)]
