"""
Tests for the interval & gap engine.

Touching intervals merge here (conflict detection uses a strict rule).
"""

from timebalance.intervals import (
    calculate_effective_scheduled_time,
    calculate_gaps,
    clip_interval,
    merge_intervals,
)
from timebalance.models import Interval
from tests.fixtures import at, make_all_day, make_event


class TestMergeIntervals:
    def test_empty(self):
        assert merge_intervals([]) == []

    def test_overlapping_intervals_merge(self):
        merged = merge_intervals([Interval(at(9), at(10)), Interval(at(9, 30), at(11))])
        assert merged == [Interval(at(9), at(11))]

    def test_touching_intervals_merge(self):
        merged = merge_intervals([Interval(at(9), at(10)), Interval(at(10), at(11))])
        assert merged == [Interval(at(9), at(11))]

    def test_disjoint_intervals_stay_sorted(self):
        merged = merge_intervals([Interval(at(14), at(15)), Interval(at(9), at(10))])
        assert merged == [Interval(at(9), at(10)), Interval(at(14), at(15))]

    def test_contained_interval_absorbed(self):
        merged = merge_intervals([Interval(at(9), at(12)), Interval(at(10), at(11))])
        assert merged == [Interval(at(9), at(12))]

    def test_accepts_events(self):
        events = [make_event("a", at(9), at(10)), make_event("b", at(9, 30), at(10, 30))]
        assert merge_intervals(events) == [Interval(at(9), at(10, 30))]


class TestClipInterval:
    def test_clips_to_window(self):
        assert clip_interval(at(8), at(10), at(9), at(17)) == Interval(at(9), at(10))

    def test_outside_window_is_none(self):
        assert clip_interval(at(7), at(8), at(9), at(17)) is None

    def test_touching_window_edge_is_none(self):
        assert clip_interval(at(8), at(9), at(9), at(17)) is None


class TestCalculateGaps:
    def test_no_events_whole_window(self):
        gaps = calculate_gaps([], at(9), at(17))
        assert len(gaps) == 1
        assert gaps[0].start == at(9)
        assert gaps[0].end == at(17)
        assert gaps[0].duration_minutes == 480

    def test_gaps_before_between_after(self):
        events = [make_event("a", at(10), at(11)), make_event("b", at(13), at(14))]
        gaps = calculate_gaps(events, at(9), at(17))
        assert [(g.start, g.end, g.duration_minutes) for g in gaps] == [
            (at(9), at(10), 60),
            (at(11), at(13), 120),
            (at(14), at(17), 180),
        ]

    def test_event_filling_window_leaves_no_gap(self):
        gaps = calculate_gaps([make_event("a", at(8), at(18))], at(9), at(17))
        assert gaps == []

    def test_events_are_clipped_to_window(self):
        events = [make_event("early", at(7), at(10)), make_event("late", at(16), at(20))]
        gaps = calculate_gaps(events, at(9), at(17))
        assert [(g.start, g.end) for g in gaps] == [(at(10), at(16))]

    def test_touching_events_leave_no_zero_gap(self):
        events = [make_event("a", at(9), at(10)), make_event("b", at(10), at(11))]
        gaps = calculate_gaps(events, at(9), at(12))
        assert [(g.start, g.end) for g in gaps] == [(at(11), at(12))]

    def test_all_day_events_ignored(self):
        gaps = calculate_gaps([make_all_day("holiday")], at(9), at(17))
        assert len(gaps) == 1
        assert gaps[0].duration_minutes == 480

    def test_events_outside_window_ignored(self):
        gaps = calculate_gaps([make_event("a", at(18), at(19))], at(9), at(17))
        assert len(gaps) == 1

    def test_zero_width_window(self):
        assert calculate_gaps([], at(9), at(9)) == []

    def test_inverted_window(self):
        assert calculate_gaps([make_event("a", at(9), at(10))], at(17), at(9)) == []

    def test_gap_minutes_round_half_up(self):
        # 90.5 minutes rounds to 91
        events = [make_event("a", at(9), at(10))]
        end = at(11, 30).replace(second=30)
        gaps = calculate_gaps(events, at(9), end)
        assert gaps[-1].duration_minutes == 91


class TestEffectiveScheduledTime:
    def test_empty(self):
        assert calculate_effective_scheduled_time([]) == 0

    def test_overlap_counted_once(self):
        events = [make_event("a", at(9), at(10)), make_event("b", at(9, 30), at(10, 30))]
        assert calculate_effective_scheduled_time(events) == 90

    def test_on_call_with_meetings(self):
        events = [
            make_event("oncall", at(9), at(17)),
            make_event("m1", at(10), at(11)),
            make_event("m2", at(16), at(18)),
        ]
        assert calculate_effective_scheduled_time(events) == 540

    def test_all_day_not_counted(self):
        events = [make_all_day("trip"), make_event("a", at(9), at(10))]
        assert calculate_effective_scheduled_time(events) == 60

    def test_ignores_window_bounds(self):
        events = [make_event("late", at(22), at(26))]
        assert calculate_effective_scheduled_time(events) == 240
