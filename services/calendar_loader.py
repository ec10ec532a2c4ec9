"""
Resolution cycles.

A cycle issues the three independent reads (recurring rules, exceptions,
appointments) concurrently, waits for all of them, then runs the pure resolver
or slot generator over the result. The outcome is always a Resolution whose
state tells "loading", "resolved but empty" and "fetch failed" apart.
"""
import asyncio
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, List, Optional, TypeVar
import uuid

from loguru import logger

from core.config import CLIENT_HORIZON_DAYS, MASTER_HORIZON_DAYS, SLOT_INTERVAL_MINUTES
from schemas.availability_schema import (
    AppointmentDTO,
    ExceptionRule,
    RecurringRule,
    Resolution,
    ResolvedDate,
    Slot,
)
from schemas.enum import BookingMode, ResolutionState
from services.availability_service import bookable_dates, resolve_dates, window_for_date
from services.data_store import DataStore
from services.slot_service import generate_slots
from services.time_utils import business_tz, combine_local, today_local

T = TypeVar("T")


@dataclass(frozen=True)
class CalendarInputs:
    recurring_rules: List[RecurringRule]
    exceptions: List[ExceptionRule]
    appointments: List[AppointmentDTO]


@dataclass(frozen=True)
class ModePolicy:
    horizon_days: int
    allow_weekends: bool
    block_past_dates: bool


def policy_for(mode: BookingMode) -> ModePolicy:
    if mode == BookingMode.MASTER:
        return ModePolicy(horizon_days=MASTER_HORIZON_DAYS, allow_weekends=True, block_past_dates=False)
    return ModePolicy(horizon_days=CLIENT_HORIZON_DAYS, allow_weekends=False, block_past_dates=True)


class CalendarLoader:
    """Runs one fetch cycle as a single task and reports where it stands."""

    def __init__(
        self,
        store: DataStore,
        master_id: uuid.UUID,
        exceptions_from: date,
        appointments_from: datetime,
        appointments_to: datetime,
    ):
        self.store = store
        self.master_id = master_id
        self.exceptions_from = exceptions_from
        self.appointments_from = appointments_from
        self.appointments_to = appointments_to
        self._task: Optional[asyncio.Task] = None

    async def _fetch(self) -> CalendarInputs:
        rules, exceptions, appointments = await asyncio.gather(
            self.store.fetch_recurring_rules(self.master_id),
            self.store.fetch_exceptions(self.master_id, self.exceptions_from),
            self.store.fetch_appointments(self.master_id, self.appointments_from, self.appointments_to),
        )
        return CalendarInputs(
            recurring_rules=list(rules),
            exceptions=list(exceptions),
            appointments=list(appointments),
        )

    def start(self) -> "CalendarLoader":
        if self._task is None:
            self._task = asyncio.create_task(self._fetch())
        return self

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        self.start()
        try:
            # asyncio.wait leaves the task's own exception for resolve()
            await asyncio.wait([self._task])
        except asyncio.CancelledError:
            self.cancel()
            raise

    def resolve(
        self,
        compute: Callable[[CalendarInputs], T],
        is_empty: Callable[[T], bool],
    ) -> Resolution[T]:
        task = self._task
        if task is None or not task.done():
            return Resolution(state=ResolutionState.LOADING)

        if task.cancelled():
            return Resolution(state=ResolutionState.FAILED, error="cancelled")

        error = task.exception()
        if error is not None:
            logger.error(f"Calendar fetch failed for master {self.master_id}: {error}")
            return Resolution(state=ResolutionState.FAILED, error=str(error) or type(error).__name__)

        data = compute(task.result())
        state = ResolutionState.EMPTY if is_empty(data) else ResolutionState.READY
        return Resolution(state=state, data=data)


def _day_bounds(d: date, tz) -> tuple[datetime, datetime]:
    start = combine_local(d, time.min, tz)
    end = combine_local(d, time.max, tz)
    return start, end


async def resolve_calendar(
    store: DataStore,
    master_id: uuid.UUID,
    mode: BookingMode = BookingMode.CLIENT,
    now: Optional[datetime] = None,
    horizon_days: Optional[int] = None,
) -> Resolution[List[ResolvedDate]]:
    tz = business_tz()
    now = now or datetime.now(timezone.utc)
    policy = policy_for(mode)
    days = horizon_days if horizon_days is not None else policy.horizon_days
    today = today_local(now, tz)

    first, _ = _day_bounds(today, tz)
    _, last = _day_bounds(today + timedelta(days=max(days - 1, 0)), tz)

    loader = CalendarLoader(store, master_id, today, first, last)
    await loader.wait()

    return loader.resolve(
        lambda inputs: resolve_dates(
            master_id,
            today,
            days,
            inputs.recurring_rules,
            inputs.exceptions,
            inputs.appointments,
            allow_weekends=policy.allow_weekends,
            not_before=today if policy.block_past_dates else None,
            tz=tz,
        ),
        lambda resolved: not bookable_dates(resolved),
    )


def slots_for_day(
    inputs: CalendarInputs,
    master_id: uuid.UUID,
    target_date: date,
    policy: ModePolicy,
    now: datetime,
    interval_minutes: int,
    tz,
) -> List[Slot]:
    if policy.block_past_dates and target_date < today_local(now, tz):
        return []
    window = window_for_date(
        target_date,
        inputs.recurring_rules,
        inputs.exceptions,
        allow_weekends=policy.allow_weekends,
    )
    if window is None:
        return []
    return generate_slots(
        target_date,
        inputs.appointments,
        master_id=master_id,
        window=window,
        interval_minutes=interval_minutes,
        now=now,
        tz=tz,
    )


def day_loader(
    store: DataStore,
    master_id: uuid.UUID,
    target_date: date,
    now: datetime,
    tz,
) -> CalendarLoader:
    day_start, day_end = _day_bounds(target_date, tz)
    return CalendarLoader(store, master_id, today_local(now, tz), day_start, day_end)


async def resolve_day_slots(
    store: DataStore,
    master_id: uuid.UUID,
    target_date: date,
    mode: BookingMode = BookingMode.CLIENT,
    now: Optional[datetime] = None,
    interval_minutes: int = SLOT_INTERVAL_MINUTES,
) -> Resolution[List[Slot]]:
    tz = business_tz()
    now = now or datetime.now(timezone.utc)
    policy = policy_for(mode)

    loader = day_loader(store, master_id, target_date, now, tz)
    await loader.wait()

    return loader.resolve(
        lambda inputs: slots_for_day(inputs, master_id, target_date, policy, now, interval_minutes, tz),
        lambda slots: not any(s.is_selectable for s in slots),
    )
