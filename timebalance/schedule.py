"""
Weekly Schedule - waking and work hours by day of week.

Knows, for any date:
- whether it is a weekday, weekend or holiday (holidays use the weekend schedule)
- the waking window used for flex time
- the work window used for work goals

Loads configuration from config/schedule.json (JSON or YAML). Falls back to
the default schedule if the file is missing or invalid.
"""

import logging
from datetime import date, datetime, time, timedelta, tzinfo
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from timebalance import paths

logger = logging.getLogger(__name__)

DAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

GoalType = Literal["work", "personal", "any"]


# =============================================================================
# MODELS
# =============================================================================


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimePeriod(_CamelModel):
    """Whole-hour span; end 24 means the following midnight."""

    start: int = Field(ge=0, le=24)
    end: int = Field(ge=0, le=24)

    @model_validator(mode="after")
    def _check_order(self) -> "TimePeriod":
        if self.end < self.start:
            raise ValueError(f"period ends before it starts ({self.start}-{self.end})")
        return self

    def as_tuple(self) -> tuple[int, int]:
        return (self.start, self.end)


class DaySchedule(_CamelModel):
    awake_period: TimePeriod = Field(default_factory=lambda: TimePeriod(start=6, end=22))
    work_period: TimePeriod | None = None


class DayOverride(_CamelModel):
    """
    Partial day schedule.

    An explicit `workPeriod: null` removes work hours; an absent key keeps
    the base schedule's work hours (see model_fields_set).
    """

    awake_period: TimePeriod | None = None
    work_period: TimePeriod | None = None


def _default_weekday() -> DaySchedule:
    return DaySchedule(
        awake_period=TimePeriod(start=6, end=22),
        work_period=TimePeriod(start=9, end=17),
    )


def _default_weekend() -> DaySchedule:
    return DaySchedule(awake_period=TimePeriod(start=6, end=22), work_period=None)


class DefaultSchedule(_CamelModel):
    weekday: DaySchedule = Field(default_factory=_default_weekday)
    weekend: DaySchedule = Field(default_factory=_default_weekend)


class WeeklySchedule(_CamelModel):
    default_schedule: DefaultSchedule = Field(default_factory=DefaultSchedule)
    overrides: dict[str, DayOverride] = Field(default_factory=dict)
    holidays: list[date] = Field(default_factory=list)


def get_default_schedule() -> WeeklySchedule:
    """Weekdays: awake 6-22, work 9-17. Weekends: awake 6-22, no work."""
    return WeeklySchedule()


# =============================================================================
# LOADING
# =============================================================================


def _fill_day(raw: dict, fallback: DaySchedule) -> dict:
    """Fill periods missing from a raw day schedule from the fallback."""
    filled = dict(raw)
    if not filled.get("awakePeriod"):
        filled["awakePeriod"] = fallback.awake_period.model_dump(by_alias=True)
    if "workPeriod" not in filled:
        filled["workPeriod"] = (
            fallback.work_period.model_dump(by_alias=True) if fallback.work_period else None
        )
    return filled


def parse_schedule(data: object) -> WeeklySchedule:
    """
    Validate a raw schedule document.

    Raises ValueError when the weekday/weekend defaults are missing and
    pydantic.ValidationError for malformed periods.
    """
    if not isinstance(data, dict):
        raise ValueError("schedule document must be a mapping")

    default = data.get("defaultSchedule")
    if (
        not isinstance(default, dict)
        or not isinstance(default.get("weekday"), dict)
        or not isinstance(default.get("weekend"), dict)
    ):
        raise ValueError("defaultSchedule.weekday and defaultSchedule.weekend are required")

    overrides = data.get("overrides") or {}
    if isinstance(overrides, dict):
        overrides = {str(k).lower(): v for k, v in overrides.items()}

    return WeeklySchedule.model_validate(
        {
            "defaultSchedule": {
                "weekday": _fill_day(default["weekday"], _default_weekday()),
                "weekend": _fill_day(default["weekend"], _default_weekend()),
            },
            "overrides": overrides,
            "holidays": data.get("holidays") or [],
        }
    )


def load_schedule(config_path: Path | None = None) -> WeeklySchedule:
    """Load the weekly schedule, returning the default on any failure."""
    if config_path is None:
        config_path = paths.schedule_path()

    if not config_path.exists():
        logger.debug("Schedule config not found at %s, using defaults", config_path)
        return get_default_schedule()

    try:
        return parse_schedule(paths.read_config_file(config_path))
    except (OSError, yaml.YAMLError, ValidationError, ValueError, TypeError) as exc:
        logger.warning("Failed to load schedule config %s: %s", config_path, exc)
        return get_default_schedule()


# =============================================================================
# QUERIES
# =============================================================================


def _as_date(d: date | datetime) -> date:
    return d.date() if isinstance(d, datetime) else d


def is_weekend(d: date | datetime) -> bool:
    return _as_date(d).weekday() >= 5


def get_schedule_for_date(
    d: date | datetime, schedule: WeeklySchedule | None = None
) -> DaySchedule:
    """
    Schedule in force on a date.

    Holidays use the weekend schedule and ignore overrides. Otherwise the
    weekday/weekend base applies, patched by the override for that day name.
    """
    if schedule is None:
        schedule = get_default_schedule()
    day = _as_date(d)

    if day in schedule.holidays:
        return schedule.default_schedule.weekend

    base = schedule.default_schedule.weekend if is_weekend(day) else schedule.default_schedule.weekday

    override = schedule.overrides.get(DAY_NAMES[day.weekday()])
    if override is None:
        return base

    return DaySchedule(
        awake_period=override.awake_period or base.awake_period,
        work_period=(
            override.work_period if "work_period" in override.model_fields_set else base.work_period
        ),
    )


def is_work_day(d: date | datetime, schedule: WeeklySchedule | None = None) -> bool:
    return get_schedule_for_date(d, schedule).work_period is not None


def get_work_hours(d: date | datetime, schedule: WeeklySchedule | None = None) -> TimePeriod | None:
    """Work hours for the date, or None on a non-work day."""
    return get_schedule_for_date(d, schedule).work_period


def get_waking_hours(d: date | datetime, schedule: WeeklySchedule | None = None) -> TimePeriod:
    return get_schedule_for_date(d, schedule).awake_period


def get_available_hours(
    d: date | datetime, goal_type: GoalType, schedule: WeeklySchedule | None = None
) -> TimePeriod:
    """Work goals use work hours when the day has them; everything else uses waking hours."""
    day_schedule = get_schedule_for_date(d, schedule)
    if goal_type == "work" and day_schedule.work_period is not None:
        return day_schedule.work_period
    return day_schedule.awake_period


def datetime_at_hour(d: date | datetime, hour: int, tz: tzinfo | None = None) -> datetime:
    """Midnight of the date plus `hour` hours; hour 24 is the next midnight."""
    if isinstance(d, datetime):
        tz = tz if tz is not None else d.tzinfo
    midnight = datetime.combine(_as_date(d), time(0), tzinfo=tz)
    return midnight + timedelta(hours=hour)


def get_time_period_datetimes(
    d: date | datetime, period: TimePeriod, tz: tzinfo | None = None
) -> tuple[datetime, datetime]:
    """Boundaries of the period on the given date."""
    return datetime_at_hour(d, period.start, tz), datetime_at_hour(d, period.end, tz)
