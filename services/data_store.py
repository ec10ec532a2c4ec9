"""
Data store boundary.

The resolver and slot generator never talk to the database; they receive
already-fetched rules, exceptions and appointments. DataStore is the read/write
collaborator that supplies them, SqlDataStore its async SQLAlchemy rendition.
Every query opens its own session so the three reads of a resolution cycle can
run concurrently.
"""
import abc
from datetime import date, datetime, time
from typing import List, Optional
import uuid

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from schemas.availability_schema import (
    AppointmentDTO,
    BookingRequestDTO,
    ExceptionRule,
    RecurringRule,
)
from schemas.enum import AppointmentStatus
from schemas.schemas import Appointment, MasterAvailability, MasterException
from services.time_utils import format_time


class DataStoreError(Exception):
    """A read or write against the data store failed."""


class SlotAlreadyTakenError(DataStoreError):
    """The store refused a booking because the start time is already held."""

    def __init__(self, master_id: uuid.UUID, start_time: datetime):
        self.master_id = master_id
        self.start_time = start_time
        super().__init__(f"Slot {start_time.isoformat()} already taken for master {master_id}")


class DataStore(abc.ABC):

    @abc.abstractmethod
    async def fetch_recurring_rules(self, master_id: uuid.UUID) -> List[RecurringRule]:
        ...

    @abc.abstractmethod
    async def fetch_exceptions(self, master_id: uuid.UUID, from_date: date) -> List[ExceptionRule]:
        """Exceptions dated on or after from_date."""

    @abc.abstractmethod
    async def fetch_appointments(
        self,
        master_id: uuid.UUID,
        start: datetime,
        end: datetime
    ) -> List[AppointmentDTO]:
        """Appointments whose start_time lies in [start, end], any status."""

    @abc.abstractmethod
    async def fetch_upcoming_appointments(
        self,
        master_id: uuid.UUID,
        now: datetime,
        limit: Optional[int] = None
    ) -> List[AppointmentDTO]:
        ...

    @abc.abstractmethod
    async def create_appointment(
        self,
        request: BookingRequestDTO,
        status: AppointmentStatus = AppointmentStatus.PENDING
    ) -> AppointmentDTO:
        """Persist a booking. Raises SlotAlreadyTakenError on a uniqueness violation."""


def _time_str(value: Optional[time]) -> Optional[str]:
    return format_time(value) if value is not None else None


class SqlDataStore(DataStore):

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def _scalars(self, stmt, what: str) -> list:
        try:
            async with self.session_factory() as session:
                return list((await session.execute(stmt)).scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch {what}: {e}")
            raise DataStoreError(f"Failed to fetch {what}") from e

    async def fetch_recurring_rules(self, master_id: uuid.UUID) -> List[RecurringRule]:
        stmt = (
            select(MasterAvailability)
            .where(MasterAvailability.master_id == master_id)
            .order_by(MasterAvailability.day_of_week, MasterAvailability.start_time)
        )
        rows = await self._scalars(stmt, "recurring availability")
        return [
            RecurringRule(
                day_of_week=row.day_of_week,
                start_time=format_time(row.start_time),
                end_time=format_time(row.end_time),
            )
            for row in rows
        ]

    async def fetch_exceptions(self, master_id: uuid.UUID, from_date: date) -> List[ExceptionRule]:
        stmt = (
            select(MasterException)
            .where(
                MasterException.master_id == master_id,
                MasterException.exception_date >= from_date
            )
            .order_by(MasterException.exception_date)
        )
        rows = await self._scalars(stmt, "availability exceptions")
        return [
            ExceptionRule(
                exception_date=row.exception_date,
                is_available=bool(row.is_available),
                start_time=_time_str(row.start_time),
                end_time=_time_str(row.end_time),
            )
            for row in rows
        ]

    async def fetch_appointments(
        self,
        master_id: uuid.UUID,
        start: datetime,
        end: datetime
    ) -> List[AppointmentDTO]:
        stmt = (
            select(Appointment)
            .where(
                Appointment.master_id == master_id,
                Appointment.start_time >= start,
                Appointment.start_time <= end
            )
            .order_by(Appointment.start_time)
        )
        rows = await self._scalars(stmt, "appointments")
        return [AppointmentDTO.model_validate(row) for row in rows]

    async def fetch_upcoming_appointments(
        self,
        master_id: uuid.UUID,
        now: datetime,
        limit: Optional[int] = None
    ) -> List[AppointmentDTO]:
        stmt = (
            select(Appointment)
            .where(
                Appointment.master_id == master_id,
                Appointment.start_time >= now,
                Appointment.status != AppointmentStatus.CANCELLED
            )
            .order_by(Appointment.start_time)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        rows = await self._scalars(stmt, "upcoming appointments")
        return [AppointmentDTO.model_validate(row) for row in rows]

    async def create_appointment(
        self,
        request: BookingRequestDTO,
        status: AppointmentStatus = AppointmentStatus.PENDING
    ) -> AppointmentDTO:
        appointment = Appointment(
            master_id=request.master_id,
            client_id=request.client_id,
            start_time=request.start_time,
            end_time=request.end_time,
            status=status,
            notes=request.notes,
        )

        async with self.session_factory() as session:
            try:
                session.add(appointment)
                await session.commit()
                await session.refresh(appointment)
            except IntegrityError as e:
                await session.rollback()
                logger.warning(
                    f"Booking conflict for master {request.master_id} at {request.start_time}"
                )
                raise SlotAlreadyTakenError(request.master_id, request.start_time) from e
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Failed to create appointment: {e}")
                raise DataStoreError("Failed to create appointment") from e

        return AppointmentDTO.model_validate(appointment)
