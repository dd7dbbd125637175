"""
Property-based tests for core invariants using Hypothesis.

These tests stress the interval, conflict, flex slot and allocation
invariants with random schedules on the fixture day.
"""

from datetime import timedelta

from hypothesis import given, settings
from hypothesis import strategies as st

from timebalance.conflicts import build_overlap_groups, events_overlap
from timebalance.flex_slots import FlexSlotConfig, calculate_flex_slots
from timebalance.intervals import calculate_effective_scheduled_time, calculate_gaps, merge_intervals
from timebalance.models import Interval, minutes_between
from timebalance.optimizer.allocator import find_slots_for_goal, plan_goals
from timebalance.optimizer.goals import DayPart, TimeGoal
from tests.fixtures import at, make_event

# ============================================================================
# Strategies
# ============================================================================

@st.composite
def intervals(draw):
    """(start, end) minutes from the fixture day's midnight, 15 minute resolution."""
    start = draw(st.integers(min_value=0, max_value=23 * 4)) * 15
    length = draw(st.integers(min_value=1, max_value=16)) * 15
    return start, min(start + length, 24 * 60)


@st.composite
def event_lists(draw, max_size=12):
    spans = draw(st.lists(intervals(), max_size=max_size))
    return [
        make_event(f"e{i}", at(0) + timedelta(minutes=s), at(0) + timedelta(minutes=e))
        for i, (s, e) in enumerate(spans)
    ]


goals = st.builds(
    TimeGoal,
    id=st.just("goal"),
    name=st.just("Goal"),
    total_minutes=st.integers(min_value=0, max_value=600),
    min_session_minutes=st.one_of(st.none(), st.sampled_from([15, 30, 45, 60, 90])),
    max_session_minutes=st.one_of(st.none(), st.sampled_from([30, 60, 120])),
    day_part=st.one_of(st.none(), st.sampled_from(list(DayPart))),
)


# ============================================================================
# Intervals
# ============================================================================


@given(event_lists())
def test_merged_intervals_sorted_and_disjoint(events):
    merged = merge_intervals(events)
    for a, b in zip(merged, merged[1:]):
        assert a.end < b.start


@given(event_lists())
@settings(max_examples=50)
def test_gaps_plus_busy_fill_window(events):
    """Within a window, gap minutes + occupied minutes == window minutes."""
    start, end = at(6), at(22)
    gaps = calculate_gaps(events, start, end)
    clipped = [
        Interval(max(e.start, start), min(e.end, end)) for e in events if e.start < end and e.end > start
    ]
    busy = sum(i.duration_minutes for i in merge_intervals(clipped))
    assert sum(g.duration_minutes for g in gaps) + busy == minutes_between(start, end)


@given(event_lists())
def test_gaps_never_overlap_events(events):
    for gap in calculate_gaps(events, at(0), at(24)):
        assert gap.start < gap.end
        for event in events:
            assert not (event.start < gap.end and gap.start < event.end)


def test_empty_window_has_no_gaps():
    assert calculate_gaps([], at(12), at(12)) == []


@given(event_lists())
def test_effective_time_never_exceeds_sum(events):
    effective = calculate_effective_scheduled_time(events)
    assert effective <= sum(e.duration_minutes for e in events)


# ============================================================================
# Conflicts
# ============================================================================


@given(event_lists())
def test_overlap_groups_are_real_conflicts(events):
    grouped_ids = set()
    for group in build_overlap_groups(events):
        assert len(group.events) >= 2
        for event in group.events:
            assert event.id not in grouped_ids
            grouped_ids.add(event.id)
            # every member overlaps at least one other member
            assert any(events_overlap(event, other) for other in group.events if other is not event)


@given(st.lists(st.integers(min_value=1, max_value=8), min_size=2, max_size=8))
def test_back_to_back_events_never_grouped(lengths):
    events = []
    cursor = at(6)
    for i, length in enumerate(lengths):
        end = cursor + timedelta(minutes=15 * length)
        events.append(make_event(f"e{i}", cursor, end))
        cursor = end
    assert build_overlap_groups(events) == []


# ============================================================================
# Flex slots and allocation
# ============================================================================


@given(event_lists(), st.sampled_from([15, 30, 60]))
def test_flex_slots_within_waking_hours(events, min_gap):
    config = FlexSlotConfig(waking_hours=(6, 22), min_gap_minutes=min_gap)
    for slot in calculate_flex_slots(events, config, dates=[at(0).date()]):
        assert at(6) <= slot.start < slot.end <= at(22)
        assert slot.duration_minutes >= min_gap
        for event in events:
            assert not (event.start < slot.end and slot.start < event.end)


@given(goals, event_lists())
@settings(max_examples=75)
def test_allocation_stays_inside_slots(goal, events):
    slots = calculate_flex_slots(events, dates=[at(0).date()])
    proposed = find_slots_for_goal(goal, slots)

    assert sum(p.duration_minutes for p in proposed) <= goal.total_minutes
    for p in proposed:
        assert any(s.start <= p.start and p.end <= s.end for s in slots)
        if goal.min_session_minutes:
            assert p.duration_minutes >= goal.min_session_minutes
        if goal.max_session_minutes:
            assert p.duration_minutes <= goal.max_session_minutes

    # no two sessions overlap
    ordered = sorted(proposed, key=lambda p: p.start)
    for a, b in zip(ordered, ordered[1:]):
        assert a.end <= b.start


@given(goals, event_lists())
@settings(max_examples=50)
def test_allocation_deterministic(goal, events):
    slots = calculate_flex_slots(events, dates=[at(0).date()])
    assert find_slots_for_goal(goal, slots) == find_slots_for_goal(goal, slots)


@given(st.lists(goals, max_size=4), event_lists())
@settings(max_examples=50)
def test_plan_never_double_books(goal_list, events):
    goal_list = [
        TimeGoal(**{**g.__dict__, "id": f"g{i}"}) for i, g in enumerate(goal_list)
    ]
    slots = calculate_flex_slots(events, dates=[at(0).date()])
    plan = plan_goals(goal_list, slots)
    for a, b in zip(plan.proposed, plan.proposed[1:]):
        assert a.end <= b.start
