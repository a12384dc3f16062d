"""Service for detecting scheduling conflicts between events."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import date, datetime

from calendar_app.domain.models import DisplayEvent, Event
from calendar_app.services.recurrence import expand


def overlaps(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """Overlap rule: a_start < b_end AND a_end > b_start.

    Exact boundary touches (end == start) are NOT considered conflicts.
    """
    return a_start < b_end and a_end > b_start


def candidate_occurrences(
    candidate: Event,
    window_start: date | datetime,
    window_end: date | datetime,
) -> list[DisplayEvent]:
    """Return the occurrences a candidate event would occupy.

    A recurring candidate is expanded over the window.  A single event is its
    own sole occurrence whether or not it falls inside the window.
    """
    if candidate.is_recurring:
        return expand([candidate], window_start, window_end)
    return [
        DisplayEvent.from_event(
            candidate,
            candidate.start,
            candidate.end,
            instance_date=candidate.instance_date or candidate.start.date(),
            is_instance=bool(candidate.is_instance),
        )
    ]


def _iter_conflicts(
    candidate: Event,
    existing: Iterable[Event],
    window_start: date | datetime,
    window_end: date | datetime,
) -> Iterator[DisplayEvent]:
    ours = candidate_occurrences(candidate, window_start, window_end)
    if not ours:
        return
    others = expand(
        [e for e in existing if e.id != candidate.id], window_start, window_end
    )
    for other in others:
        if any(overlaps(o.start, o.end, other.start, other.end) for o in ours):
            yield other


def has_conflict(
    candidate: Event,
    existing: Iterable[Event],
    window_start: date | datetime,
    window_end: date | datetime,
) -> bool:
    """Return True if any occurrence of *candidate* overlaps another event's.

    The candidate's own id is excluded from *existing*, so an event being
    edited never conflicts with its stored version.
    """
    conflicts = _iter_conflicts(candidate, existing, window_start, window_end)
    return next(conflicts, None) is not None


def find_conflicts(
    candidate: Event,
    existing: Iterable[Event],
    window_start: date | datetime,
    window_end: date | datetime,
) -> list[DisplayEvent]:
    """Return the existing occurrences that overlap any candidate occurrence."""
    return list(_iter_conflicts(candidate, existing, window_start, window_end))
