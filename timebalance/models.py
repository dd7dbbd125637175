"""
Shared value objects for the time-accounting engine.

Events are immutable snapshots supplied by a calendar-fetch collaborator.
Everything else here is produced fresh per computation and discarded once
the caller has consumed it. Nothing in this module touches I/O.
"""

import math
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, rounded half up."""
    return math.floor((end - start).total_seconds() / 60 + 0.5)


def to_jsonable(value: Any) -> Any:
    """Convert dataclass output (already asdict'ed) into JSON-safe values."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    raise ValueError(f"Invalid timestamp: {value!r}")


# =============================================================================
# EVENTS
# =============================================================================


@dataclass(frozen=True)
class Event:
    """A single, already-expanded calendar event instance."""

    id: str
    account: str
    summary: str
    start: datetime
    end: datetime
    duration_minutes: int
    color_id: str = "default"
    is_all_day: bool = False
    is_recurring: bool = False
    recurring_event_id: str | None = None

    # Calendar the event lives on; used by dependency rules
    calendar_id: str = ""
    calendar_name: str = ""
    description: str = ""

    def to_dict(self) -> dict:
        return to_jsonable(asdict(self))

    @classmethod
    def from_dict(cls, data: dict) -> "Event":
        """
        Build an Event from the camelCase shape used by the calendar fetcher.

        All-day events carry no duration: they represent days, not hours.
        """
        start = _parse_timestamp(data.get("start"))
        end = _parse_timestamp(data.get("end"))
        is_all_day = bool(data.get("isAllDay", False))

        duration = data.get("durationMinutes")
        if duration is None:
            duration = 0 if is_all_day else minutes_between(start, end)

        recurring_event_id = data.get("recurringEventId") or None

        return cls(
            id=str(data.get("id") or ""),
            account=str(data.get("account") or ""),
            summary=str(data.get("summary") or "(No title)"),
            start=start,
            end=end,
            duration_minutes=int(duration),
            color_id=str(data.get("colorId") or "default"),
            is_all_day=is_all_day,
            is_recurring=bool(data.get("isRecurring", recurring_event_id is not None)),
            recurring_event_id=recurring_event_id,
            calendar_id=str(data.get("calendarId") or ""),
            calendar_name=str(data.get("calendarName") or ""),
            description=str(data.get("description") or ""),
        )


# =============================================================================
# TIME SPANS
# =============================================================================


@dataclass(frozen=True)
class Interval:
    start: datetime
    end: datetime

    @property
    def duration_minutes(self) -> int:
        return minutes_between(self.start, self.end)


@dataclass(frozen=True)
class TimeGap:
    """Unoccupied span inside an analysis window."""

    start: datetime
    end: datetime
    duration_minutes: int

    def to_dict(self) -> dict:
        return to_jsonable(asdict(self))


@dataclass(frozen=True)
class FlexSlot:
    """Gap inside waking hours that is long enough to hold goal time."""

    start: datetime
    end: datetime
    duration_minutes: int

    def to_dict(self) -> dict:
        return to_jsonable(asdict(self))


@dataclass(frozen=True)
class ProposedEvent:
    """A proposal only; callers decide whether to write it to a calendar."""

    summary: str
    start: datetime
    end: datetime
    duration_minutes: int
    color_id: str
    goal_id: str

    def to_dict(self) -> dict:
        return to_jsonable(asdict(self))


@dataclass
class OverlapGroup:
    """A double-booking cluster: events transitively overlapping in time."""

    id: str
    start: datetime
    end: datetime
    events: list[Event] = field(default_factory=list)
    suggested_attendance: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "time_slot": {"start": self.start.isoformat(), "end": self.end.isoformat()},
            "events": [e.to_dict() for e in self.events],
            "suggested_attendance": list(self.suggested_attendance),
        }
