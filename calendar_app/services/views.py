"""Helpers for presenting occurrences on a month grid."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time, timedelta

from dateutil.relativedelta import relativedelta

from calendar_app.domain.models import DisplayEvent
from calendar_app.services.recurrence import weekday_index


def month_view_window(day: date) -> tuple[datetime, datetime]:
    """Return the span of the month grid containing *day*.

    The grid runs in whole weeks starting on Sunday, so it begins on the
    Sunday on or before the 1st and ends on the Saturday on or after the
    last day of the month.
    """
    if isinstance(day, datetime):
        day = day.date()
    first = day.replace(day=1)
    last = first + relativedelta(months=1) - timedelta(days=1)
    grid_start = first - timedelta(days=weekday_index(first))
    grid_end = last + timedelta(days=6 - weekday_index(last))
    return datetime.combine(grid_start, time.min), datetime.combine(grid_end, time.max)


def group_by_day(occurrences: list[DisplayEvent]) -> dict[date, list[DisplayEvent]]:
    """Bucket occurrences by ``instance_date``, keeping their order."""
    buckets: dict[date, list[DisplayEvent]] = defaultdict(list)
    for occurrence in occurrences:
        buckets[occurrence.instance_date].append(occurrence)
    return dict(buckets)
