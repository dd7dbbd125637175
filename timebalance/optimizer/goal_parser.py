"""
Goal Parser - natural-language weekly goals to structured goals.

One goal per line; bullets (-, •, *) are stripped. Examples:
- "4 hours of writing time"                     -> TimeGoal, 240 min
- "workout 3x this week, 45 min each"           -> TimeGoal, 3 x 45 min
- "Focus on Project X to achieve milestone Y"   -> OutcomeGoal

Precedence is fixed: outcome pattern first, then the time-goal parse.
Lines without a duration produce no goal.
"""

import logging
import re

from timebalance import config as app_config
from timebalance.optimizer.goals import DayPart, Goal, OutcomeGoal, TimeGoal, _number

logger = logging.getLogger(__name__)

# =============================================================================
# PATTERNS
# =============================================================================

BULLET_RE = re.compile(r"^[-•*]\s*")

OUTCOME_RE = re.compile(
    r"(?:focus on|work on|complete)\s+(.+?)\s+(?:to\s+)?(?:achieve|finish|complete)\s+(.+?)"
    r"(?:,\s*(?:about\s+)?(\d+)\s*(?:hours?|h))?$",
    re.IGNORECASE,
)

HOURS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:hours?|hrs?|h)\b")
MINUTES_RE = re.compile(r"(\d+)\s*(?:minutes?|mins?|m)\b")
SESSIONS_RE = re.compile(r"(\d+)\s*(?:x|times?)\s*(?:this\s+)?(?:week)?")
SESSION_RANGE_RE = re.compile(
    r"(\d+)(?:\s*-\s*|\s+to\s+)(\d+)\s*(?:hours?|hrs?|h)\s*(?:sessions?|each|blocks?)?"
)
SINGLE_SESSION_RE = re.compile(
    r"(\d+)\s*(?:hours?|hrs?|h|minutes?|mins?|m)\s*(?:each|sessions?|blocks?)"
)
SINGLE_SESSION_HOURS_RE = re.compile(r"\d+\s*(?:hours?|hrs?|h)\s*(?:each|sessions?|blocks?)")
DAY_PART_RE = re.compile(r"(?:in\s+the\s+)?(morning|afternoon|evening)")

# Stripped from the line, in order, to leave the activity name
NAME_STRIP_RES = [
    re.compile(r"\d+(?:\.\d+)?\s*(?:hours?|hrs?|h|minutes?|mins?|m)\b", re.IGNORECASE),
    re.compile(r"\d+\s*(?:x|times?)\s*(?:this\s+)?week", re.IGNORECASE),
    re.compile(r"\d+\s*-\s*\d+\s*(?:hours?|hrs?|h)\s*(?:sessions?|each|blocks?)", re.IGNORECASE),
    re.compile(r"(?:in\s+the\s+)?(morning|afternoon|evening)", re.IGNORECASE),
    re.compile(r"\b(?:of|the|this|week|each|sessions?|blocks?)\b", re.IGNORECASE),
]

SLUG_RE = re.compile(r"[^a-z0-9]+")


# =============================================================================
# HELPERS
# =============================================================================


def generate_goal_id(name: str) -> str:
    """Slug: lowercase, runs of non-alphanumerics become '-', trimmed."""
    return SLUG_RE.sub("-", name.lower()).strip("-")


def strip_bullet(line: str) -> str:
    return BULLET_RE.sub("", line).strip()


def extract_activity_name(text: str) -> str:
    """Case-preserved name with durations, counts and filler words removed."""
    name = strip_bullet(text)
    for pattern in NAME_STRIP_RES:
        name = pattern.sub("", name)
    name = name.replace(",", "")
    name = " ".join(name.split())
    if name:
        name = name[0].upper() + name[1:]
    return name


# =============================================================================
# PARSING
# =============================================================================


def parse_outcome_goal(line: str) -> OutcomeGoal | None:
    match = OUTCOME_RE.search(line)
    if not match:
        return None
    project, milestone, hours = match.groups()
    return OutcomeGoal(
        id=generate_goal_id(project),
        name=project.strip(),
        description=milestone.strip(),
        estimated_minutes=int(hours) * 60 if hours else 0,
        color_id=app_config.DEFAULT_COLOR_ID,
        priority=app_config.DEFAULT_PRIORITY,
    )


def parse_time_goal(line: str) -> TimeGoal | None:
    """
    Time-goal parse of one bullet-free line.

    Session count with a per-session duration gives total = sessions x
    duration. Session count with only a bare duration treats that duration
    as per-session.
    """
    cleaned = line.lower()

    hours_match = HOURS_RE.search(cleaned)
    minutes_match = MINUTES_RE.search(cleaned)
    sessions_match = SESSIONS_RE.search(cleaned)
    range_match = SESSION_RANGE_RE.search(cleaned)
    single_match = SINGLE_SESSION_RE.search(cleaned)
    day_part_match = DAY_PART_RE.search(cleaned)

    total_minutes: float = 0
    min_session: int | None = None
    max_session: int | None = None
    sessions_per_week: int | None = None

    if hours_match:
        total_minutes = float(hours_match.group(1)) * 60
    elif minutes_match:
        total_minutes = int(minutes_match.group(1))

    if range_match:
        min_session = int(range_match.group(1)) * 60
        max_session = int(range_match.group(2)) * 60
    elif single_match:
        value = int(single_match.group(1))
        is_hours = SINGLE_SESSION_HOURS_RE.search(single_match.group(0)) is not None
        min_session = max_session = value * 60 if is_hours else value

    if sessions_match:
        sessions_per_week = int(sessions_match.group(1))
        if min_session:
            total_minutes = sessions_per_week * min_session
        elif total_minutes > 0:
            min_session = max_session = _number(total_minutes)
            total_minutes = sessions_per_week * min_session

    if total_minutes == 0:
        return None

    name = extract_activity_name(line)
    if not name:
        return None

    return TimeGoal(
        id=generate_goal_id(name),
        name=name,
        total_minutes=_number(total_minutes),
        min_session_minutes=min_session,
        max_session_minutes=max_session,
        sessions_per_week=sessions_per_week,
        day_part=DayPart(day_part_match.group(1)) if day_part_match else None,
        color_id=app_config.DEFAULT_COLOR_ID,
        priority=app_config.DEFAULT_PRIORITY,
        recurring=False,
    )


def parse_single_goal(line: str) -> Goal | None:
    cleaned = strip_bullet(line)
    outcome = parse_outcome_goal(cleaned)
    if outcome is not None:
        return outcome
    return parse_time_goal(cleaned)


def parse_goals_from_text(text: str) -> list[Goal]:
    """Parse every non-empty line; lines that yield no goal are skipped."""
    if not text or not text.strip():
        return []

    goals: list[Goal] = []
    for raw in text.split("\n"):
        line = raw.strip()
        if not line:
            continue
        goal = parse_single_goal(line)
        if goal is None:
            logger.debug("No goal recognized in line: %r", line)
            continue
        goals.append(goal)
    return goals
