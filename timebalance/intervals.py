"""
Interval & Gap Engine - free/busy algebra over calendar events.

Provides:
- merge_intervals: collapse overlapping or touching spans
- calculate_gaps: free spans inside a bounded window
- calculate_effective_scheduled_time: occupied minutes without double counting

Touching intervals ([9:00, 10:00) and [10:00, 11:00)) MERGE here. Conflict
detection in timebalance.conflicts uses a strict predicate instead; the two
rules are kept apart on purpose.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Protocol

from timebalance.models import Event, Interval, TimeGap, minutes_between


class Span(Protocol):
    start: datetime
    end: datetime


def clip_interval(
    start: datetime, end: datetime, window_start: datetime, window_end: datetime
) -> Interval | None:
    """Clip [start, end) to the window. None when nothing is left."""
    clipped_start = max(start, window_start)
    clipped_end = min(end, window_end)
    if clipped_start >= clipped_end:
        return None
    return Interval(clipped_start, clipped_end)


def intersects(span: Span, window_start: datetime, window_end: datetime) -> bool:
    return span.end > window_start and span.start < window_end


def merge_intervals(intervals: Iterable[Span]) -> list[Interval]:
    """
    Merge overlapping intervals.

    Sorted by start; the current interval is extended while the next start
    is <= the current end, so touching intervals merge.
    """
    ordered = sorted(intervals, key=lambda i: (i.start, i.end))
    if not ordered:
        return []

    merged: list[Interval] = []
    cur_start, cur_end = ordered[0].start, ordered[0].end
    for item in ordered[1:]:
        if item.start <= cur_end:
            cur_end = max(cur_end, item.end)
        else:
            merged.append(Interval(cur_start, cur_end))
            cur_start, cur_end = item.start, item.end
    merged.append(Interval(cur_start, cur_end))
    return merged


def gaps_between(
    occupied: Sequence[Interval], window_start: datetime, window_end: datetime
) -> list[TimeGap]:
    """
    Free spans of the window around already merged, clipped intervals.

    Emits the gap before the first interval, between consecutive intervals
    and after the last one, skipping empty spans.
    """
    if window_start >= window_end:
        return []

    if not occupied:
        return [TimeGap(window_start, window_end, minutes_between(window_start, window_end))]

    gaps: list[TimeGap] = []
    cursor = window_start
    for interval in occupied:
        if interval.start > cursor:
            gaps.append(TimeGap(cursor, interval.start, minutes_between(cursor, interval.start)))
        cursor = max(cursor, interval.end)

    if cursor < window_end:
        gaps.append(TimeGap(cursor, window_end, minutes_between(cursor, window_end)))

    return gaps


def calculate_gaps(
    events: Iterable[Event], window_start: datetime, window_end: datetime
) -> list[TimeGap]:
    """
    Calculate gaps (unscheduled time) inside [window_start, window_end).

    All-day events are ignored: they don't block specific time slots.
    With no timed event touching the window, the whole window is one gap.
    """
    if window_start >= window_end:
        return []

    clipped = []
    for event in events:
        if event.is_all_day or not intersects(event, window_start, window_end):
            continue
        interval = clip_interval(event.start, event.end, window_start, window_end)
        if interval is not None:
            clipped.append(interval)

    return gaps_between(merge_intervals(clipped), window_start, window_end)


def calculate_effective_scheduled_time(events: Iterable[Event]) -> int:
    """
    Scheduled minutes after merging overlapping events.

    Avoids double counting when events overlap (e.g. on-call + meetings).
    """
    timed = [e for e in events if not e.is_all_day]
    if not timed:
        return 0
    return sum(i.duration_minutes for i in merge_intervals(timed))
