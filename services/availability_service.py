"""
Availability resolution.

Combines a master's weekly recurring rules with date-specific exceptions to
decide which calendar days of a horizon are bookable. Everything here is a pure
function of its arguments; fetching the inputs is the data store's job.
"""
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence
import uuid
import pytz
from loguru import logger

from core.config import (
    RECURRING_MATCH_MODE,
    SERVICE_WINDOW_END,
    SERVICE_WINDOW_START,
)
from schemas.availability_schema import (
    AppointmentDTO,
    ExceptionRule,
    RecurringRule,
    ResolvedDate,
    ServiceWindow,
)
from schemas.enum import RecurringMatchMode
from services.time_utils import (
    business_tz,
    contains,
    day_of_week,
    format_time,
    horizon_dates,
    is_weekend,
    local_date,
    parse_time,
)

def default_window() -> ServiceWindow:
    start = parse_time(SERVICE_WINDOW_START)
    end = parse_time(SERVICE_WINDOW_END)
    if start is None or end is None or start >= end:
        raise ValueError(
            f"Invalid service window {SERVICE_WINDOW_START!r}-{SERVICE_WINDOW_END!r}"
        )
    return ServiceWindow(start=start, end=end)

def default_match_mode() -> RecurringMatchMode:
    try:
        return RecurringMatchMode(RECURRING_MATCH_MODE)
    except ValueError:
        logger.warning(f"Unknown RECURRING_MATCH_MODE {RECURRING_MATCH_MODE!r}, using exact")
        return RecurringMatchMode.EXACT

def rule_matches(
    rule: RecurringRule,
    window: ServiceWindow,
    match_mode: RecurringMatchMode = RecurringMatchMode.EXACT
) -> bool:
    """
    EXACT: the rule's raw strings equal the window, e.g. "10:00:00"/"16:00:00".
    CONTAINS: the rule interval covers the whole window.
    """
    if match_mode == RecurringMatchMode.EXACT:
        return (
            rule.start_time == format_time(window.start)
            and rule.end_time == format_time(window.end)
        )

    start = parse_time(rule.start_time)
    end = parse_time(rule.end_time)
    if start is None or end is None:
        logger.warning(
            f"Skipping recurring rule with malformed times "
            f"{rule.start_time!r}-{rule.end_time!r} (day {rule.day_of_week})"
        )
        return False
    return contains(start, end, window.start, window.end)

def exception_window(exception: ExceptionRule, fallback: ServiceWindow) -> ServiceWindow:
    """Custom hours of an available exception, or the fallback window."""
    if not exception.start_time or not exception.end_time:
        return fallback

    start = parse_time(exception.start_time)
    end = parse_time(exception.end_time)
    if start is None or end is None or start >= end:
        logger.warning(
            f"Ignoring malformed exception window {exception.start_time!r}-"
            f"{exception.end_time!r} on {exception.exception_date}"
        )
        return fallback
    return ServiceWindow(start=start, end=end)

def index_exceptions(exceptions: Iterable[ExceptionRule]) -> Dict[date, ExceptionRule]:
    indexed: Dict[date, ExceptionRule] = {}
    for exc in exceptions:
        # first entry wins, the store keeps one per date anyway
        indexed.setdefault(exc.exception_date, exc)
    return indexed

def _window_for_day(
    target_date: date,
    recurring_rules: Sequence[RecurringRule],
    exceptions_by_date: Dict[date, ExceptionRule],
    allow_weekends: bool,
    window: ServiceWindow,
    match_mode: RecurringMatchMode,
) -> Optional[ServiceWindow]:
    if not allow_weekends and is_weekend(target_date):
        return None

    exception = exceptions_by_date.get(target_date)
    if exception is not None:
        # an exception fully replaces the recurring rules for its date
        if not exception.is_available:
            return None
        return exception_window(exception, window)

    weekday = day_of_week(target_date)
    for rule in recurring_rules:
        if rule.day_of_week == weekday and rule_matches(rule, window, match_mode):
            return window
    return None

def window_for_date(
    target_date: date,
    recurring_rules: Sequence[RecurringRule],
    exceptions: Iterable[ExceptionRule],
    *,
    allow_weekends: bool = False,
    window: Optional[ServiceWindow] = None,
    match_mode: Optional[RecurringMatchMode] = None,
) -> Optional[ServiceWindow]:
    """Effective service window for a single date, None when it is not bookable."""
    return _window_for_day(
        target_date,
        recurring_rules,
        index_exceptions(exceptions),
        allow_weekends,
        window or default_window(),
        match_mode or default_match_mode(),
    )

def resolve_dates(
    master_id: uuid.UUID,
    start_date: date,
    horizon_days: int,
    recurring_rules: Sequence[RecurringRule],
    exceptions: Iterable[ExceptionRule],
    appointments: Iterable[AppointmentDTO] = (),
    *,
    allow_weekends: bool = False,
    not_before: Optional[date] = None,
    window: Optional[ServiceWindow] = None,
    match_mode: Optional[RecurringMatchMode] = None,
    tz: Optional[pytz.BaseTzInfo] = None,
) -> List[ResolvedDate]:
    """
    Resolve bookability for horizon_days consecutive days from start_date.

    Args:
        master_id: provider whose calendar is resolved
        start_date: first day of the horizon, provider-local
        horizon_days: 30 for client views, 90 for master self-service
        recurring_rules: weekly rules of the master
        exceptions: date overrides, already filtered to >= today
        appointments: any status; only used for has_existing_appointment
        allow_weekends: True only in master self-service mode
        not_before: days earlier than this are never bookable

    Returns:
        one ResolvedDate per day, ascending. With no rules and no
        exceptions every day resolves to not bookable.
    """
    tz = tz or business_tz()
    window = window or default_window()
    match_mode = match_mode or default_match_mode()
    exceptions_by_date = index_exceptions(exceptions)

    appointment_days = {
        local_date(appt.start_time, tz)
        for appt in appointments
        if appt.master_id == master_id
    }

    resolved = []
    for target_date in horizon_dates(start_date, horizon_days):
        if not_before is not None and target_date < not_before:
            bookable = False
        else:
            bookable = _window_for_day(
                target_date,
                recurring_rules,
                exceptions_by_date,
                allow_weekends,
                window,
                match_mode,
            ) is not None

        resolved.append(
            ResolvedDate(
                date=target_date,
                is_bookable=bookable,
                has_existing_appointment=target_date in appointment_days,
            )
        )

    return resolved

def bookable_dates(resolved: Iterable[ResolvedDate]) -> List[date]:
    return [r.date for r in resolved if r.is_bookable]
