"""Service for expanding stored events into the concrete occurrences that fall
inside a date window."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from datetime import date, datetime, time, timedelta

from dateutil.relativedelta import relativedelta

from calendar_app.domain.models import (
    DisplayEvent,
    Event,
    RecurrenceFrequency,
    RecurrenceRule,
)

logger = logging.getLogger(__name__)

# Bounds on the candidate walk.  Hitting either one truncates silently.
MAX_ITERATIONS = 1000
RECURRENCE_HORIZON = relativedelta(years=5)

# A series that starts after the window is abandoned once the walk is this far
# past the window end.
_LATE_START_GRACE = relativedelta(months=1)


def weekday_index(day: date) -> int:
    """Return the weekday of *day* as 0=Sunday..6=Saturday."""
    return day.isoweekday() % 7


def candidate_starts(event: Event, window_end: datetime) -> Iterator[datetime]:
    """Yield the start of every occurrence of a recurring *event*, in order.

    The walk begins at the series' own start and stops at the rule's ``until``
    date, ``window_end + RECURRENCE_HORIZON`` or after ``MAX_ITERATIONS``
    steps, whichever comes first.  Exception dates are skipped.
    """
    rule = event.recurrence_rule
    origin = event.start
    horizon = window_end + RECURRENCE_HORIZON
    exceptions = set(event.exception_dates)

    current = origin
    for _ in range(MAX_ITERATIONS):
        if current >= horizon:
            return
        if rule.until is not None and current.date() > rule.until:
            return
        if origin > window_end and current > window_end + _LATE_START_GRACE:
            return

        if _matches(rule, current, origin) and current.date() not in exceptions:
            yield current

        current = _next_candidate(rule, current)
    else:
        logger.debug(
            "Recurrence walk for event %s stopped after %d steps",
            event.id,
            MAX_ITERATIONS,
        )


def expand(
    events: Iterable[Event],
    window_start: date | datetime,
    window_end: date | datetime,
) -> list[DisplayEvent]:
    """Materialize every occurrence of *events* that intersects the window.

    The window is closed and widened to whole days, so an event anywhere on
    the first or last day is captured.  Results are sorted by start time and
    unique per ``(id, start)``.
    """
    window_start = _as_datetime(window_start)
    window_end = _as_datetime(window_end)

    found: dict[tuple[str, datetime], DisplayEvent] = {}
    for event in events:
        if event.is_recurring:
            duration = event.duration
            for start in candidate_starts(event, window_end):
                end = start + duration
                if _intersects(start, end, window_start, window_end):
                    found[(event.id, start)] = DisplayEvent.from_event(
                        event, start, end, instance_date=start.date(), is_instance=True
                    )
        elif _intersects(event.start, event.end, window_start, window_end):
            found[(event.id, event.start)] = DisplayEvent.from_event(
                event,
                event.start,
                event.end,
                instance_date=event.start.date(),
                is_instance=False,
            )

    return sorted(found.values(), key=lambda occurrence: occurrence.start)


def _matches(rule: RecurrenceRule, current: datetime, origin: datetime) -> bool:
    frequency = rule.frequency
    if frequency == RecurrenceFrequency.DAILY:
        return True
    if frequency == RecurrenceFrequency.WEEKLY:
        return weekday_index(current) in rule.byweekday
    if frequency == RecurrenceFrequency.MONTHLY:
        return rule.bymonthday is not None and current.day == rule.bymonthday
    if frequency == RecurrenceFrequency.CUSTOM:
        unit = rule.custom_unit
        if unit == RecurrenceFrequency.DAILY:
            return True
        if unit == RecurrenceFrequency.WEEKLY:
            return weekday_index(current) == weekday_index(origin)
        if unit == RecurrenceFrequency.MONTHLY:
            return current.day == origin.day
    return False


def _next_candidate(rule: RecurrenceRule, current: datetime) -> datetime:
    # WEEKLY and MONTHLY step one day at a time and ignore the interval; only
    # DAILY and CUSTOM jump by it.
    if rule.frequency == RecurrenceFrequency.DAILY:
        return current + timedelta(days=rule.interval)
    if rule.frequency == RecurrenceFrequency.CUSTOM:
        unit = rule.custom_unit
        if unit == RecurrenceFrequency.DAILY:
            return current + timedelta(days=rule.interval)
        if unit == RecurrenceFrequency.WEEKLY:
            return current + timedelta(weeks=rule.interval)
        if unit == RecurrenceFrequency.MONTHLY:
            return current + relativedelta(months=rule.interval)
    return current + timedelta(days=1)


def _intersects(
    start: datetime, end: datetime, window_start: datetime, window_end: datetime
) -> bool:
    lo = datetime.combine(window_start.date(), time.min)
    hi = datetime.combine(window_end.date(), time.max)
    return (
        lo <= start <= hi
        or lo <= end <= hi
        or (start < window_start and end > window_end)
    )


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return datetime.combine(value, time.min)
