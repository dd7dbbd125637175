"""
Slot Allocator - greedy placement of goal time into flex slots.

Algorithm (per goal):
1. Drop slots shorter than the minimum session
2. Order slots by day-part preference (stable; no preference keeps input order)
3. Fill each slot with back-to-back sessions of at most max_session minutes
4. Stop when the goal is satisfied or slots run out

Partial satisfaction is a normal outcome: compare allocated vs requested.
Proposals are never written anywhere; callers confirm them.
"""

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import timedelta

from timebalance.intervals import merge_intervals
from timebalance.models import Event, FlexSlot, Interval, ProposedEvent, minutes_between
from timebalance.observability import AnalysisContext
from timebalance.optimizer.goals import TimeGoal, day_part_match_score, day_part_score

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLE GOAL
# =============================================================================


def sort_slots_by_preference(slots: Sequence[FlexSlot], goal: TimeGoal) -> list[FlexSlot]:
    if goal.day_part is None:
        return list(slots)
    return sorted(slots, key=lambda s: day_part_score(s.start.hour, goal.day_part), reverse=True)


def find_slots_for_goal(goal: TimeGoal, slots: Sequence[FlexSlot]) -> list[ProposedEvent]:
    """Proposed sessions for one goal, in allocation order."""
    min_session = goal.min_session_minutes or 0
    max_session = goal.max_session_minutes if goal.max_session_minutes else math.inf

    suitable = [s for s in slots if s.duration_minutes >= min_session]
    if not suitable:
        return []

    proposed: list[ProposedEvent] = []
    goal_remaining = goal.total_minutes

    for slot in sort_slots_by_preference(suitable, goal):
        if goal_remaining <= 0:
            break

        slot_remaining = slot.duration_minutes
        cursor = slot.start
        while goal_remaining > 0 and slot_remaining >= min_session:
            take = min(max_session, slot_remaining, goal_remaining)
            if take < min_session or take <= 0:
                break

            end = cursor + timedelta(minutes=take)
            proposed.append(
                ProposedEvent(
                    summary=goal.name,
                    start=cursor,
                    end=end,
                    duration_minutes=take,
                    color_id=goal.color_id,
                    goal_id=goal.id,
                )
            )
            cursor = end
            slot_remaining -= take
            goal_remaining -= take

    logger.debug(
        "Goal allocated",
        extra={
            "goal_id": goal.id,
            "requested": goal.total_minutes,
            "allocated": goal.total_minutes - max(goal_remaining, 0),
            "sessions": len(proposed),
        },
    )
    return proposed


# =============================================================================
# SCORING
# =============================================================================


@dataclass(frozen=True)
class OptimizationScore:
    goal_achievement: float  # 0-1, share of goal time scheduled
    average_block_minutes: float
    preference_alignment: float  # 0-1, over goals with a day part only

    def to_dict(self) -> dict:
        return {
            "goal_achievement": self.goal_achievement,
            "average_block_minutes": self.average_block_minutes,
            "preference_alignment": self.preference_alignment,
        }


def score_optimization(
    goals: Sequence[TimeGoal], proposed: Sequence[ProposedEvent]
) -> OptimizationScore:
    if not goals:
        return OptimizationScore(0, 0, 0)

    achievements = []
    for goal in goals:
        achieved = sum(p.duration_minutes for p in proposed if p.goal_id == goal.id)
        if goal.total_minutes <= 0:
            achievements.append(0)
            continue
        achievements.append(min(achieved / goal.total_minutes, 1))
    goal_achievement = sum(achievements) / len(goals)

    average_block = sum(p.duration_minutes for p in proposed) / len(proposed) if proposed else 0

    # Goals without a preference don't contribute
    preference_scores = []
    for goal in goals:
        if goal.day_part is None:
            continue
        for p in proposed:
            if p.goal_id == goal.id:
                preference_scores.append(day_part_match_score(p.start.hour, goal.day_part))
    preference_alignment = (
        sum(preference_scores) / len(preference_scores) if preference_scores else 0
    )

    return OptimizationScore(goal_achievement, average_block, preference_alignment)


# =============================================================================
# MULTI-GOAL PLANNING
# =============================================================================


@dataclass
class GoalAllocation:
    goal_id: str
    requested_minutes: int
    allocated_minutes: int

    @property
    def satisfied(self) -> bool:
        return self.allocated_minutes >= self.requested_minutes

    def to_dict(self) -> dict:
        return {
            "goal_id": self.goal_id,
            "requested_minutes": self.requested_minutes,
            "allocated_minutes": self.allocated_minutes,
            "satisfied": self.satisfied,
        }


@dataclass
class AllocationPlan:
    proposed: list[ProposedEvent] = field(default_factory=list)
    allocations: list[GoalAllocation] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "proposed": [p.to_dict() for p in self.proposed],
            "allocations": [a.to_dict() for a in self.allocations],
        }


def subtract_proposals(
    slots: Sequence[FlexSlot], proposed: Iterable[ProposedEvent]
) -> list[FlexSlot]:
    """Slots with the proposed sessions carved out, keeping non-empty remainders."""
    taken = merge_intervals(proposed)
    remaining: list[FlexSlot] = []
    for slot in slots:
        pieces = [Interval(slot.start, slot.end)]
        for busy in taken:
            next_pieces = []
            for piece in pieces:
                if busy.end <= piece.start or busy.start >= piece.end:
                    next_pieces.append(piece)
                    continue
                if busy.start > piece.start:
                    next_pieces.append(Interval(piece.start, busy.start))
                if busy.end < piece.end:
                    next_pieces.append(Interval(busy.end, piece.end))
            pieces = next_pieces
        remaining.extend(FlexSlot(p.start, p.end, minutes_between(p.start, p.end)) for p in pieces)
    return remaining


def plan_goals(goals: Sequence[TimeGoal], slots: Sequence[FlexSlot]) -> AllocationPlan:
    """
    Allocate several goals against the same slots.

    Goals go in ascending priority (ties keep input order); each goal only
    sees what earlier goals left free. Proposals are returned sorted by start.
    """
    plan = AllocationPlan()
    available = list(slots)

    with AnalysisContext("goal-planning"):
        for goal in sorted(goals, key=lambda g: g.priority):
            sessions = find_slots_for_goal(goal, available)
            plan.proposed.extend(sessions)
            plan.allocations.append(
                GoalAllocation(
                    goal_id=goal.id,
                    requested_minutes=goal.total_minutes,
                    allocated_minutes=sum(s.duration_minutes for s in sessions),
                )
            )
            if sessions:
                available = subtract_proposals(available, sessions)

        plan.proposed.sort(key=lambda p: p.start)
        logger.info(
            "Goals planned",
            extra={
                "goals": len(plan.allocations),
                "sessions": len(plan.proposed),
                "unsatisfied": sum(1 for a in plan.allocations if not a.satisfied),
            },
        )
    return plan


# =============================================================================
# MOVABLE EVENTS
# =============================================================================


@dataclass(frozen=True)
class MovableCandidate:
    """Event plus the ownership facts the calendar provider reports."""

    event: Event
    is_organizer: bool
    has_external_attendees: bool


def identify_movable_events(
    candidates: Iterable[MovableCandidate], patterns: Sequence[str]
) -> list[Event]:
    """
    Events the user could reschedule to make room for goals.

    Movable: timed, organized by the user, no external attendees, and the
    summary contains one of the patterns (case-insensitive).
    """
    lowered = [p.lower() for p in patterns]
    if not lowered:
        return []

    movable = []
    for candidate in candidates:
        event = candidate.event
        if event.is_all_day or not candidate.is_organizer or candidate.has_external_attendees:
            continue
        summary = event.summary.lower()
        if any(p in summary for p in lowered):
            movable.append(event)
    return movable
