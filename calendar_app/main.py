"""FastAPI application — entry point for the calendar service."""

from __future__ import annotations

import logging
from datetime import date, datetime, time

from fastapi import FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder

from calendar_app.config import configure_logging, load_settings
from calendar_app.domain.models import (
    ConflictCheckRequest,
    ConflictCheckResponse,
    DeleteScope,
    DetachOccurrenceRequest,
    DisplayEvent,
    Event,
)
from calendar_app.repos.memory import EventRepository
from calendar_app.services.conflicts import find_conflicts
from calendar_app.services.recurrence import expand
from calendar_app.services.views import group_by_day, month_view_window

settings = load_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)

app = FastAPI(title="Calendar Service")

# ── Singletons (created at import time for simplicity) ────────────────
event_repo = EventRepository(settings.events_file)
event_repo.load()


def _reject_conflicts(event: Event) -> None:
    """Raise 409 if *event* overlaps another stored event in its month view."""
    window_start, window_end = month_view_window(event.start.date())
    conflicts = find_conflicts(event, event_repo.list_all(), window_start, window_end)
    if conflicts:
        logger.info(
            "Event %s conflicts with %s", event.id, sorted({c.id for c in conflicts})
        )
        raise HTTPException(
            status_code=409,
            detail={
                "message": "Event overlaps existing events",
                "conflicts": jsonable_encoder(conflicts),
            },
        )


def _resolve_window(start: date | None, end: date | None) -> tuple[datetime, datetime]:
    """Turn optional query dates into a window, defaulting to a month view."""
    default_start, default_end = month_view_window(start or end or date.today())
    window_start = datetime.combine(start, time.min) if start else default_start
    window_end = datetime.combine(end, time.max) if end else default_end
    if window_end < window_start:
        raise HTTPException(status_code=400, detail="start must not be after end")
    return window_start, window_end


def _get_or_404(event_id: str) -> Event:
    event = event_repo.get(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


# ── Routes ────────────────────────────────────────────────────────────


@app.get("/events", response_model=list[Event])
def list_events() -> list[Event]:
    """Return all stored events."""
    return event_repo.list_all()


@app.get("/events/{event_id}", response_model=Event)
def get_event(event_id: str) -> Event:
    """Return a single event by id."""
    return _get_or_404(event_id)


@app.post("/events", response_model=Event, status_code=201)
def create_event(event: Event, allow_conflicts: bool = False) -> Event:
    """Store a new event, refusing it if it overlaps an existing one."""
    if event_repo.get(event.id) is not None:
        raise HTTPException(status_code=409, detail="Event id already exists")
    if not allow_conflicts:
        _reject_conflicts(event)
    event_repo.add(event)
    event_repo.save()
    logger.info("Created event %s", event.id)
    return event


@app.put("/events/{event_id}", response_model=Event)
def update_event(event_id: str, event: Event, allow_conflicts: bool = False) -> Event:
    """Replace a stored event.  Its previous version never counts as a conflict."""
    _get_or_404(event_id)
    event = event.model_copy(update={"id": event_id})
    if not allow_conflicts:
        _reject_conflicts(event)
    event_repo.add(event)
    event_repo.save()
    return event


@app.delete("/events/{event_id}", status_code=200)
def delete_event(
    event_id: str,
    scope: DeleteScope = DeleteScope.SERIES,
    instance_date: date | None = None,
) -> dict:
    """Delete a whole event or series, or cancel one occurrence of a series."""
    event = _get_or_404(event_id)

    if scope == DeleteScope.INSTANCE:
        if instance_date is None:
            raise HTTPException(
                status_code=400, detail="instance_date is required for scope=instance"
            )
        if not event.is_recurring:
            raise HTTPException(
                status_code=400, detail="Only recurring events have occurrences"
            )
        event_repo.cancel_occurrence(event_id, instance_date)
        event_repo.save()
        return {"status": "cancelled", "instance_date": instance_date.isoformat()}

    detached_ids = event_repo.delete_series(event_id)
    event_repo.save()
    return {"status": "deleted", "detached_ids": detached_ids}


@app.post(
    "/events/{event_id}/occurrences/{instance_date}/detach",
    response_model=Event,
    status_code=201,
)
def detach_occurrence(
    event_id: str, instance_date: date, body: DetachOccurrenceRequest
) -> Event:
    """Move one occurrence of a series into its own standalone event."""
    event = _get_or_404(event_id)
    if not event.is_recurring:
        raise HTTPException(
            status_code=400, detail="Only recurring events have occurrences"
        )
    detached = event_repo.detach_occurrence(
        event_id,
        instance_date,
        start=body.start,
        end=body.end,
        title=body.title,
        description=body.description,
        color=body.color,
        category=body.category,
    )
    event_repo.save()
    return detached


@app.get("/occurrences", response_model=list[DisplayEvent])
def list_occurrences(
    start: date | None = None, end: date | None = None
) -> list[DisplayEvent]:
    """Return every occurrence of the stored events within [start, end].

    Without bounds, the month grid around today is used.
    """
    window_start, window_end = _resolve_window(start, end)
    return expand(event_repo.list_all(), window_start, window_end)


@app.get("/occurrences/by-day", response_model=dict[date, list[DisplayEvent]])
def list_occurrences_by_day(
    start: date | None = None, end: date | None = None
) -> dict[date, list[DisplayEvent]]:
    """Same as /occurrences, bucketed by occurrence date."""
    window_start, window_end = _resolve_window(start, end)
    return group_by_day(expand(event_repo.list_all(), window_start, window_end))


@app.post("/conflicts/check", response_model=ConflictCheckResponse)
def check_conflicts(payload: ConflictCheckRequest) -> ConflictCheckResponse:
    """Report which stored occurrences a candidate event would overlap."""
    conflicts = find_conflicts(
        payload.event, event_repo.list_all(), payload.window_start, payload.window_end
    )
    return ConflictCheckResponse(has_conflict=bool(conflicts), conflicts=conflicts)
