"""In-memory event store, optionally backed by a JSON file."""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path

from pydantic import TypeAdapter

from calendar_app.domain.models import Event

logger = logging.getLogger(__name__)

_EVENT_LIST = TypeAdapter(list[Event])


class EventRepository:
    """Dict-backed store for Event instances, keyed by id.

    Stored events are immutable; every edit replaces the record with a new
    copy.  When *path* is given, ``load`` and ``save`` read and write the whole
    collection as a JSON array.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._store: dict[str, Event] = {}
        self.path = path

    def add(self, event: Event) -> None:
        self._store[event.id] = event

    def get(self, event_id: str) -> Event | None:
        return self._store.get(event_id)

    def list_all(self) -> list[Event]:
        return list(self._store.values())

    def list_detached(self, series_id: str) -> list[Event]:
        """Return standalone events split off from a recurring series."""
        return [
            e for e in self._store.values() if e.original_series_id == series_id
        ]

    def delete(self, event_id: str) -> None:
        self._store.pop(event_id, None)

    def delete_series(self, series_id: str) -> list[str]:
        """Delete a series and every occurrence detached from it (cascade).

        Returns the ids of the detached events that were removed with it.
        """
        detached_ids = [e.id for e in self.list_detached(series_id)]
        for eid in [series_id, *detached_ids]:
            self._store.pop(eid, None)
        return detached_ids

    def cancel_occurrence(self, series_id: str, instance_date: date) -> Event | None:
        """Suppress one occurrence of a series by recording an exception date."""
        series = self._store.get(series_id)
        if series is None:
            return None
        if instance_date in series.exception_dates:
            return series
        updated = series.model_copy(
            update={"exception_dates": [*series.exception_dates, instance_date]}
        )
        self._store[series_id] = updated
        return updated

    def detach_occurrence(
        self,
        series_id: str,
        instance_date: date,
        start: datetime,
        end: datetime,
        **changes,
    ) -> Event | None:
        """Split one occurrence off a series into its own standalone event.

        The series gets an exception date for *instance_date*; the new event
        is non-recurring and points back at the series.
        """
        series = self._store.get(series_id)
        if series is None:
            return None
        data = series.model_dump(exclude={"id"})
        data.update(
            start=start,
            end=end,
            recurrence_rule=None,
            exception_dates=[],
            original_series_id=series_id,
            instance_date=None,
            is_instance=None,
        )
        data.update({k: v for k, v in changes.items() if v is not None})
        detached = Event(**data)

        self.cancel_occurrence(series_id, instance_date)
        self.add(detached)
        return detached

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        if self.path is None or not self.path.exists():
            return
        events = _EVENT_LIST.validate_json(self.path.read_bytes())
        self._store = {e.id: e for e in events}
        logger.info("Loaded %d events from %s", len(events), self.path)

    def save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(_EVENT_LIST.dump_json(self.list_all(), indent=2))
        logger.debug("Saved %d events to %s", len(self._store), self.path)
