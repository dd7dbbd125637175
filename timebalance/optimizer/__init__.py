"""
Calendar optimization: goals, goal parsing, recurring goal storage and
greedy allocation of goal time into flex slots.
"""

from .allocator import (
    AllocationPlan,
    GoalAllocation,
    MovableCandidate,
    OptimizationScore,
    find_slots_for_goal,
    identify_movable_events,
    plan_goals,
    score_optimization,
)
from .goal_parser import generate_goal_id, parse_goals_from_text
from .goal_store import (
    GoalConfigError,
    load_recurring_goals,
    remove_recurring_goal,
    save_recurring_goal,
)
from .goals import DayPart, Goal, OutcomeGoal, TimeGoal, goal_from_dict, goal_to_dict

__all__ = [
    # Goals
    "DayPart",
    "Goal",
    "OutcomeGoal",
    "TimeGoal",
    "goal_from_dict",
    "goal_to_dict",
    # Parsing
    "generate_goal_id",
    "parse_goals_from_text",
    # Storage
    "GoalConfigError",
    "load_recurring_goals",
    "remove_recurring_goal",
    "save_recurring_goal",
    # Allocation
    "AllocationPlan",
    "GoalAllocation",
    "MovableCandidate",
    "OptimizationScore",
    "find_slots_for_goal",
    "identify_movable_events",
    "plan_goals",
    "score_optimization",
]
