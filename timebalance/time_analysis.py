"""
Time Analysis - where the week's time went.

- Totals per color/category (colors carry meaning via colors.json)
- Daily summaries: scheduled vs unstructured time inside work hours
- Weekly summaries across all accounts

Scheduled time uses effective (merged) minutes so overlapping events are
counted once. All-day events are listed but never counted as time.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from pathlib import Path

import yaml

from timebalance import paths
from timebalance.intervals import calculate_effective_scheduled_time, calculate_gaps
from timebalance.models import Event, TimeGap, to_jsonable
from timebalance.observability import AnalysisContext
from timebalance.schedule import datetime_at_hour

logger = logging.getLogger(__name__)

GOOGLE_CALENDAR_COLORS: dict[str, str] = {
    "1": "Lavender",
    "2": "Sage",
    "3": "Grape",
    "4": "Flamingo",
    "5": "Banana",
    "6": "Tangerine",
    "7": "Peacock",
    "8": "Graphite",
    "9": "Blueberry",
    "10": "Basil",
    "11": "Tomato",
}

ColorDefinitions = dict[str, dict[str, str]]


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class ColorSummary:
    color_id: str
    color_name: str
    color_meaning: str
    total_minutes: int = 0
    event_count: int = 0
    events: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "color_id": self.color_id,
            "color_name": self.color_name,
            "color_meaning": self.color_meaning,
            "total_minutes": self.total_minutes,
            "event_count": self.event_count,
            "events": list(self.events),
        }


@dataclass
class DailySummary:
    date: date
    total_scheduled_minutes: int
    total_gap_minutes: int
    events: list[Event]
    all_day_events: list[Event]
    gaps: list[TimeGap]
    by_color: list[ColorSummary]

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "total_scheduled_minutes": self.total_scheduled_minutes,
            "total_gap_minutes": self.total_gap_minutes,
            "events": [e.to_dict() for e in self.events],
            "all_day_events": [e.to_dict() for e in self.all_day_events],
            "gaps": [g.to_dict() for g in self.gaps],
            "by_color": [c.to_dict() for c in self.by_color],
        }


@dataclass
class WeeklySummary:
    week_start: date
    week_end: date
    days: list[DailySummary]
    total_scheduled_minutes: int
    total_gap_minutes: int
    by_color: list[ColorSummary]
    accounts: list[str]

    def to_dict(self) -> dict:
        return to_jsonable(
            {
                "week_start": self.week_start,
                "week_end": self.week_end,
                "days": [d.to_dict() for d in self.days],
                "total_scheduled_minutes": self.total_scheduled_minutes,
                "total_gap_minutes": self.total_gap_minutes,
                "by_color": [c.to_dict() for c in self.by_color],
                "accounts": list(self.accounts),
            }
        )


# =============================================================================
# COLORS
# =============================================================================


def load_color_definitions(config_path: Path | None = None) -> ColorDefinitions:
    """colorId -> {name, meaning}; empty when the file is missing or invalid."""
    if config_path is None:
        config_path = paths.colors_path()
    if not config_path.exists():
        return {}
    try:
        data = paths.read_config_file(config_path) or {}
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.warning("Failed to load color definitions %s: %s", config_path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Color definitions %s are not a mapping, ignoring", config_path)
        return {}
    return {str(k): v for k, v in data.items() if isinstance(v, dict)}


def color_name(color_id: str) -> str:
    if color_id == "default":
        return "Default"
    return GOOGLE_CALENDAR_COLORS.get(color_id, color_id)


def group_by_color(
    events: Iterable[Event], color_definitions: ColorDefinitions | None = None
) -> list[ColorSummary]:
    """Totals per color id, sorted by total minutes descending."""
    definitions = color_definitions or {}
    by_color: dict[str, ColorSummary] = {}

    for event in events:
        summary = by_color.get(event.color_id)
        if summary is None:
            summary = ColorSummary(
                color_id=event.color_id,
                color_name=color_name(event.color_id),
                color_meaning=definitions.get(event.color_id, {}).get("meaning", ""),
            )
            by_color[event.color_id] = summary
        summary.total_minutes += event.duration_minutes
        summary.event_count += 1
        summary.events.append(event.summary)

    return sorted(by_color.values(), key=lambda s: s.total_minutes, reverse=True)


# =============================================================================
# SUMMARIES
# =============================================================================


def summarize_day(
    events: Iterable[Event],
    day: date,
    work_hours: tuple[int, int] = (9, 18),
    color_definitions: ColorDefinitions | None = None,
) -> DailySummary:
    """Summary for the events that start on `day`; gaps are inside work hours."""
    day_events = [e for e in events if e.start.date() == day]
    timed = [e for e in day_events if not e.is_all_day]
    all_day = [e for e in day_events if e.is_all_day]

    tz = timed[0].start.tzinfo if timed else None
    work_start = datetime_at_hour(day, work_hours[0], tz)
    work_end = datetime_at_hour(day, work_hours[1], tz)
    gaps = calculate_gaps(timed, work_start, work_end)

    return DailySummary(
        date=day,
        total_scheduled_minutes=calculate_effective_scheduled_time(day_events),
        total_gap_minutes=sum(g.duration_minutes for g in gaps),
        events=timed,
        all_day_events=all_day,
        gaps=gaps,
        by_color=group_by_color(timed, color_definitions),
    )


def summarize_week(
    events: Iterable[Event],
    week_start: date,
    work_hours: tuple[int, int] = (9, 18),
    color_definitions: ColorDefinitions | None = None,
) -> WeeklySummary:
    """Seven daily summaries from week_start, plus weekly totals."""
    week_end = week_start + timedelta(days=7)
    week_events = [e for e in events if week_start <= e.start.date() < week_end]

    accounts: list[str] = []
    for event in week_events:
        if event.account not in accounts:
            accounts.append(event.account)

    with AnalysisContext("weekly-summary"):
        days = [
            summarize_day(week_events, week_start + timedelta(days=i), work_hours, color_definitions)
            for i in range(7)
        ]

        summary = WeeklySummary(
            week_start=week_start,
            week_end=week_end,
            days=days,
            total_scheduled_minutes=sum(d.total_scheduled_minutes for d in days),
            total_gap_minutes=sum(d.total_gap_minutes for d in days),
            by_color=group_by_color([e for e in week_events if not e.is_all_day], color_definitions),
            accounts=accounts,
        )
        logger.debug(
            "Week summarized",
            extra={"week_start": week_start.isoformat(), "events": len(week_events)},
        )
    return summary


# =============================================================================
# FORMATTING
# =============================================================================


def format_duration(minutes: int) -> str:
    """45 -> '45m', 120 -> '2h', 90 -> '1h 30m'."""
    hours, mins = divmod(int(minutes), 60)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def get_week_start(d: date | datetime) -> date:
    """The Sunday on or before the given date."""
    day = d.date() if isinstance(d, datetime) else d
    # weekday(): Monday=0 .. Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % 7)
