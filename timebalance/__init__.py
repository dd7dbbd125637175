# TIMEBALANCE - Calendar time accounting
"""
Exports for report jobs and other consumers.
"""

from .conflicts import (
    build_overlap_groups,
    calculate_overlap_minutes,
    calculate_split_time,
    events_overlap,
)
from .flex_slots import FlexSlotConfig, calculate_flex_slots
from .intervals import calculate_effective_scheduled_time, calculate_gaps, merge_intervals
from .models import Event, FlexSlot, Interval, OverlapGroup, ProposedEvent, TimeGap
from .schedule import WeeklySchedule, load_schedule

__all__ = [
    "Event",
    "Interval",
    "TimeGap",
    "FlexSlot",
    "OverlapGroup",
    "ProposedEvent",
    "merge_intervals",
    "calculate_gaps",
    "calculate_effective_scheduled_time",
    "events_overlap",
    "build_overlap_groups",
    "calculate_overlap_minutes",
    "calculate_split_time",
    "FlexSlotConfig",
    "calculate_flex_slots",
    "WeeklySchedule",
    "load_schedule",
]
