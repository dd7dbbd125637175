"""
Flex Slot Calculator - free time inside waking hours, per day.

For each day that has events (or that the caller asks for explicitly):
1. Build the waking window (config hours, or the weekly schedule)
2. Clip and merge the timed events touching that window
3. Keep the gaps that are at least min_gap_minutes long

All-day events never block flex time.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, tzinfo

from timebalance import config as app_config
from timebalance.intervals import clip_interval, gaps_between, intersects, merge_intervals
from timebalance.models import Event, FlexSlot
from timebalance.schedule import WeeklySchedule, datetime_at_hour, get_waking_hours, is_weekend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlexSlotConfig:
    waking_hours: tuple[int, int] = (app_config.WAKING_START_HOUR, app_config.WAKING_END_HOUR)
    min_gap_minutes: int = app_config.MIN_GAP_MINUTES
    skip_weekends: bool = False

    @classmethod
    def from_dict(cls, data: dict | None) -> "FlexSlotConfig":
        """Build from the camelCase shape: {wakingHours: {start, end}, minGapMinutes, skipWeekends}."""
        if not data:
            return cls()
        defaults = cls()
        waking = data.get("wakingHours") or {}
        return cls(
            waking_hours=(
                int(waking.get("start", defaults.waking_hours[0])),
                int(waking.get("end", defaults.waking_hours[1])),
            ),
            min_gap_minutes=int(data.get("minGapMinutes", defaults.min_gap_minutes)),
            skip_weekends=bool(data.get("skipWeekends", defaults.skip_weekends)),
        )


def _waking_hours_for(
    day: date, config: FlexSlotConfig, schedule: WeeklySchedule | None
) -> tuple[int, int]:
    if schedule is not None:
        return get_waking_hours(day, schedule).as_tuple()
    return config.waking_hours


def calculate_flex_slots(
    events: Iterable[Event],
    config: FlexSlotConfig | None = None,
    *,
    dates: Iterable[date] | None = None,
    schedule: WeeklySchedule | None = None,
    tz: tzinfo | None = None,
) -> list[FlexSlot]:
    """
    Flex slots across every retained date, sorted by start.

    Dates come from the start of each timed event plus any explicit `dates`
    (so event-free days can be included). Waking windows are built in `tz`,
    else in the timezone of the events on that date.
    """
    if config is None:
        config = FlexSlotConfig()

    timed = [e for e in events if not e.is_all_day]

    day_tz: dict[date, tzinfo | None] = {}
    for event in timed:
        day_tz.setdefault(event.start.date(), event.start.tzinfo)

    fallback_tz = tz if tz is not None else (timed[0].start.tzinfo if timed else None)
    for extra in dates or ():
        day_tz.setdefault(extra, fallback_tz)

    slots: list[FlexSlot] = []
    for day in sorted(day_tz):
        if config.skip_weekends and is_weekend(day):
            continue

        start_hour, end_hour = _waking_hours_for(day, config, schedule)
        window_tz = tz if tz is not None else day_tz[day]
        window_start = datetime_at_hour(day, start_hour, window_tz)
        window_end = datetime_at_hour(day, end_hour, window_tz)
        if window_start >= window_end:
            continue

        # Events starting the previous evening can still reach into this window
        clipped = []
        for event in timed:
            if not intersects(event, window_start, window_end):
                continue
            interval = clip_interval(event.start, event.end, window_start, window_end)
            if interval is not None:
                clipped.append(interval)

        for gap in gaps_between(merge_intervals(clipped), window_start, window_end):
            if gap.duration_minutes >= config.min_gap_minutes:
                slots.append(FlexSlot(gap.start, gap.end, gap.duration_minutes))

    slots.sort(key=lambda s: s.start)
    logger.debug(
        "Flex slots calculated",
        extra={"days": len(day_tz), "slots": len(slots)},
    )
    return slots


def total_flex_minutes(slots: Iterable[FlexSlot]) -> int:
    return sum(s.duration_minutes for s in slots)
