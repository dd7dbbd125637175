"""
Calendar Filter - how each calendar affects time tracking.

Calendar types:
- active: counts toward time tracking, fills gaps, blocks scheduling
- availability: context only (e.g. on-call), not time spent
- reference: FYI only (vacations, company calendars)
- blocking: blocks time without counting it (personal holds)

Configuration lives in config/calendars.json. Falls back to defaults
(everything active) if the file is missing or invalid.
"""

import json
import logging
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from timebalance import paths

logger = logging.getLogger(__name__)

EXCLUDED = "excluded"


class CalendarType(StrEnum):
    ACTIVE = "active"
    AVAILABILITY = "availability"
    REFERENCE = "reference"
    BLOCKING = "blocking"


@dataclass(frozen=True)
class CalendarTypeBehavior:
    counts_for_time_tracking: bool
    fills_gaps: bool
    blocks_scheduling: bool


TYPE_BEHAVIORS: dict[CalendarType, CalendarTypeBehavior] = {
    CalendarType.ACTIVE: CalendarTypeBehavior(True, True, True),
    CalendarType.AVAILABILITY: CalendarTypeBehavior(False, False, False),
    CalendarType.REFERENCE: CalendarTypeBehavior(False, False, False),
    CalendarType.BLOCKING: CalendarTypeBehavior(False, True, True),
}


def get_calendar_type_behavior(calendar_type: CalendarType) -> CalendarTypeBehavior:
    return TYPE_BEHAVIORS[CalendarType(calendar_type)]


# =============================================================================
# CONFIG
# =============================================================================


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DefaultTypes(_CamelModel):
    primary: CalendarType = CalendarType.ACTIVE
    owner: CalendarType = CalendarType.ACTIVE
    shared: CalendarType = CalendarType.ACTIVE


class FilteringLists(_CamelModel):
    deny_list: list[str] = Field(default_factory=list)
    allow_list: list[str] = Field(default_factory=list)


class CalendarFilterConfig(_CamelModel):
    calendar_types: dict[str, CalendarType] = Field(default_factory=dict)
    default_type: DefaultTypes = Field(default_factory=DefaultTypes)
    filtering: FilteringLists = Field(default_factory=FilteringLists)


@dataclass(frozen=True)
class CalendarInfo:
    """Calendar list entry as exposed by the calendar provider."""

    id: str
    summary: str
    access_role: str = "reader"
    primary: bool = False


def load_calendar_filter_config(config_path: Path | None = None) -> CalendarFilterConfig:
    """Load calendar filter config, return defaults on failure."""
    if config_path is None:
        config_path = paths.calendars_path()

    if not config_path.exists():
        return CalendarFilterConfig()

    try:
        data = paths.read_config_file(config_path) or {}
        return CalendarFilterConfig.model_validate(data)
    except (OSError, yaml.YAMLError, ValidationError, ValueError, TypeError) as exc:
        logger.warning("Failed to load calendar filter config %s: %s", config_path, exc)
        return CalendarFilterConfig()


def save_calendar_filter_config(
    config: CalendarFilterConfig, config_path: Path | None = None
) -> None:
    if config_path is None:
        config_path = paths.calendars_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        json.dump(config.model_dump(mode="json", by_alias=True), f, indent=2)


# =============================================================================
# TYPE RESOLUTION
# =============================================================================


def matches_calendar(pattern: str, calendar: CalendarInfo) -> bool:
    """Exact id match, or case-insensitive name match."""
    return pattern == calendar.id or pattern.lower() == calendar.summary.lower()


def get_calendar_type(
    calendar: CalendarInfo, config: CalendarFilterConfig
) -> CalendarType | Literal["excluded"]:
    """
    Resolve a calendar's type.

    Priority:
    1. deny list -> "excluded"
    2. explicit calendarTypes entry
    3. allow list -> active
    4. default for primary / owner / shared calendars
    """
    if any(matches_calendar(p, calendar) for p in config.filtering.deny_list):
        return EXCLUDED

    for pattern, calendar_type in config.calendar_types.items():
        if matches_calendar(pattern, calendar):
            return calendar_type

    if any(matches_calendar(p, calendar) for p in config.filtering.allow_list):
        return CalendarType.ACTIVE

    if calendar.primary:
        return config.default_type.primary
    if calendar.access_role == "owner":
        return config.default_type.owner
    # writer, reader, freeBusyReader
    return config.default_type.shared


def has_explicit_type(calendar: CalendarInfo, config: CalendarFilterConfig) -> bool:
    return any(matches_calendar(p, calendar) for p in config.calendar_types)


# =============================================================================
# EVENT FILTERING
# =============================================================================


def is_user_involved_in_event(event: dict[str, Any], user_email: str) -> bool:
    """
    True when the user organizes or attends the event.

    `event` is the provider's raw shape: {organizer: {email, self},
    attendees: [{email, self, responseStatus}]}.
    """
    email = user_email.lower()

    organizer = event.get("organizer") or {}
    if organizer.get("self") is True:
        return True
    if (organizer.get("email") or "").lower() == email:
        return True

    for attendee in event.get("attendees") or []:
        if attendee.get("self") is True:
            return True
        if (attendee.get("email") or "").lower() == email:
            return True

    return False


def should_include_event(
    event: dict[str, Any],
    user_email: str,
    shared_without_explicit_type: bool = False,
) -> bool:
    """
    Typed calendars include every event. Shared calendars without an
    explicit type only include events the user is involved in.
    """
    if not shared_without_explicit_type:
        return True
    return is_user_involved_in_event(event, user_email)


def suggest_calendar_type(calendar_name: str) -> CalendarType | None:
    """Suggest a type from the calendar name, or None."""
    name = calendar_name.lower()

    if any(k in name for k in ("on call", "oncall", "on-call")):
        return CalendarType.AVAILABILITY

    if any(k in name for k in ("vacation", "time off", "pto", "out of office")):
        return CalendarType.REFERENCE

    if (
        "company calendar" in name
        or "social events" in name
        or ("team calendar" in name and "my team" not in name)
    ):
        return CalendarType.REFERENCE

    return None
