"""Domain models for the calendar: recurring events and their occurrences."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RecurrenceFrequency(StrEnum):
    NONE = "NONE"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    CUSTOM = "CUSTOM"


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class RecurrenceRule(BaseModel):
    """How a series repeats.

    ``byweekday`` uses 0=Sunday..6=Saturday.  ``custom_unit`` only matters for
    ``CUSTOM`` rules and picks the unit ``interval`` is counted in.
    """

    model_config = ConfigDict(frozen=True)

    frequency: RecurrenceFrequency = RecurrenceFrequency.NONE
    interval: int = Field(default=1, ge=1)
    byweekday: list[int] = Field(default_factory=list)
    bymonthday: int | None = Field(default=None, ge=1, le=31)
    until: date | None = None
    custom_unit: RecurrenceFrequency | None = None

    @property
    def is_recurring(self) -> bool:
        return self.frequency != RecurrenceFrequency.NONE


class Event(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    title: str = Field(min_length=1)
    start: datetime
    end: datetime
    description: str | None = None
    color: str | None = None
    category: str | None = None
    recurrence_rule: RecurrenceRule | None = None
    exception_dates: list[date] = Field(default_factory=list)
    original_series_id: str | None = None
    instance_date: date | None = None
    is_instance: bool | None = None

    @field_validator("start", "end")
    @classmethod
    def _wall_clock(cls, value: datetime) -> datetime:
        # Times are naive local wall-clock; an offset is dropped, not converted.
        return value.replace(tzinfo=None)

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title is required")
        return value

    @model_validator(mode="after")
    def _end_after_start(self) -> Event:
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_rule is not None and self.recurrence_rule.is_recurring

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


class DisplayEvent(Event):
    """A single materialized occurrence of an Event."""

    instance_date: date
    is_instance: bool

    @classmethod
    def from_event(
        cls,
        event: Event,
        start: datetime,
        end: datetime,
        instance_date: date,
        is_instance: bool,
    ) -> DisplayEvent:
        data = event.model_dump()
        data.update(
            start=start, end=end, instance_date=instance_date, is_instance=is_instance
        )
        return cls(**data)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class DetachOccurrenceRequest(BaseModel):
    start: datetime
    end: datetime
    title: str | None = None
    description: str | None = None
    color: str | None = None
    category: str | None = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("title must not be blank")
        return value

    @model_validator(mode="after")
    def _end_after_start(self) -> DetachOccurrenceRequest:
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self


class ConflictCheckRequest(BaseModel):
    event: Event
    window_start: datetime
    window_end: datetime

    @model_validator(mode="after")
    def _window_ordered(self) -> ConflictCheckRequest:
        if self.window_end < self.window_start:
            raise ValueError("window_end must not be before window_start")
        return self


class ConflictCheckResponse(BaseModel):
    has_conflict: bool
    conflicts: list[DisplayEvent] = Field(default_factory=list)


class DeleteScope(StrEnum):
    SERIES = "series"
    INSTANCE = "instance"
