"""
Goal variants for calendar optimization.

Two independent record types, discriminated by their `type` literal:
- TimeGoal ("time"): a weekly time budget, optionally split into sessions
- OutcomeGoal ("outcome"): a project milestone with an estimated effort

Stored/config shape is camelCase (totalMinutes, preferredTimes.dayPart, ...).
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum
from typing import Any, Literal

from timebalance import config as app_config


class DayPart(StrEnum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


# hour windows: exact match, then "close" (one hour either side)
DAY_PART_WINDOWS: dict[DayPart, tuple[tuple[int, int], tuple[int, int]]] = {
    DayPart.MORNING: ((6, 12), (5, 13)),
    DayPart.AFTERNOON: ((12, 18), (11, 19)),
    DayPart.EVENING: ((18, 22), (17, 23)),
}


def day_part_score(hour: int, day_part: DayPart) -> int:
    """2 for the exact window, 1 for the close window, 0 otherwise."""
    (exact_start, exact_end), (close_start, close_end) = DAY_PART_WINDOWS[DayPart(day_part)]
    if exact_start <= hour < exact_end:
        return 2
    if close_start <= hour < close_end:
        return 1
    return 0


def day_part_match_score(hour: int, day_part: DayPart) -> float:
    """Same windows on a 0-1 scale: 1, 0.5 or 0."""
    return day_part_score(hour, day_part) / 2


@dataclass(frozen=True)
class TimeGoal:
    id: str
    name: str
    total_minutes: int
    min_session_minutes: int | None = None
    max_session_minutes: int | None = None
    sessions_per_week: int | None = None
    day_part: DayPart | None = None
    color_id: str = app_config.DEFAULT_COLOR_ID
    priority: int = app_config.DEFAULT_PRIORITY
    recurring: bool = False
    type: Literal["time"] = "time"


@dataclass(frozen=True)
class OutcomeGoal:
    id: str
    name: str
    description: str
    estimated_minutes: int
    deadline: date | None = None
    color_id: str = app_config.DEFAULT_COLOR_ID
    priority: int = app_config.DEFAULT_PRIORITY
    type: Literal["outcome"] = "outcome"


Goal = TimeGoal | OutcomeGoal


# =============================================================================
# SERIALIZATION
# =============================================================================


def _number(value: float) -> int | float:
    """Keep whole minutes as ints (2.5 hours parses to 150.0)."""
    return int(value) if float(value).is_integer() else value


def goal_to_dict(goal: Goal) -> dict[str, Any]:
    """camelCase dict; optional fields are omitted when unset."""
    if isinstance(goal, OutcomeGoal):
        data: dict[str, Any] = {
            "type": goal.type,
            "id": goal.id,
            "name": goal.name,
            "description": goal.description,
            "estimatedMinutes": goal.estimated_minutes,
            "colorId": goal.color_id,
            "priority": goal.priority,
        }
        if goal.deadline is not None:
            data["deadline"] = goal.deadline.isoformat()
        return data

    data = {
        "type": goal.type,
        "id": goal.id,
        "name": goal.name,
        "totalMinutes": _number(goal.total_minutes),
    }
    if goal.min_session_minutes is not None:
        data["minSessionMinutes"] = goal.min_session_minutes
    if goal.max_session_minutes is not None:
        data["maxSessionMinutes"] = goal.max_session_minutes
    if goal.sessions_per_week is not None:
        data["sessionsPerWeek"] = goal.sessions_per_week
    if goal.day_part is not None:
        data["preferredTimes"] = {"dayPart": goal.day_part.value}
    data["colorId"] = goal.color_id
    data["priority"] = goal.priority
    data["recurring"] = goal.recurring
    return data


def _parse_deadline(value: Any) -> date | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value)).date()


def _optional_int(value: Any) -> int | None:
    return None if value is None else int(value)


def goal_from_dict(data: dict[str, Any]) -> Goal:
    """
    Build a goal from its camelCase dict. A missing `type` means "time".

    Raises ValueError/TypeError/KeyError for malformed entries.
    """
    goal_type = data.get("type", "time")

    if goal_type == "outcome":
        return OutcomeGoal(
            id=str(data["id"]),
            name=str(data["name"]),
            description=str(data.get("description", "")),
            estimated_minutes=int(data.get("estimatedMinutes", 0)),
            deadline=_parse_deadline(data.get("deadline")),
            color_id=str(data.get("colorId", app_config.DEFAULT_COLOR_ID)),
            priority=int(data.get("priority", app_config.DEFAULT_PRIORITY)),
        )

    if goal_type != "time":
        raise ValueError(f"Unknown goal type: {goal_type!r}")

    preferred = data.get("preferredTimes") or {}
    day_part = preferred.get("dayPart") or data.get("dayPart")

    return TimeGoal(
        id=str(data["id"]),
        name=str(data["name"]),
        total_minutes=_number(data["totalMinutes"]),
        min_session_minutes=_optional_int(data.get("minSessionMinutes")),
        max_session_minutes=_optional_int(data.get("maxSessionMinutes")),
        sessions_per_week=_optional_int(data.get("sessionsPerWeek")),
        day_part=DayPart(day_part) if day_part else None,
        color_id=str(data.get("colorId", app_config.DEFAULT_COLOR_ID)),
        priority=int(data.get("priority", app_config.DEFAULT_PRIORITY)),
        recurring=bool(data.get("recurring", False)),
    )
