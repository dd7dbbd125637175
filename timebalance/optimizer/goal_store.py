"""
Recurring goal storage in config/optimization-goals.json.

Shape: {"recurringGoals": [{id, name, totalMinutes, ...}], ...}. Other
top-level keys (constraints, movableEventPatterns) are preserved on save.
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from timebalance import paths
from timebalance.optimizer.goals import TimeGoal, goal_from_dict, goal_to_dict

logger = logging.getLogger(__name__)


class GoalConfigError(ValueError):
    """The goals config exists but cannot be safely rewritten."""


def _read_config(config_path: Path) -> dict[str, Any] | None:
    """Raw config document, or None when missing or unreadable."""
    if not config_path.exists():
        return None
    try:
        data = paths.read_config_file(config_path)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.warning("Failed to read goals config %s: %s", config_path, exc)
        return None
    if not isinstance(data, dict):
        logger.warning("Goals config %s is not a mapping, ignoring", config_path)
        return None
    return data


def _read_config_for_update(config_path: Path) -> dict[str, Any]:
    """Document to modify; an existing file that does not parse is never replaced."""
    data = _read_config(config_path)
    if data is not None:
        return data
    if config_path.exists() and config_path.stat().st_size > 0:
        raise GoalConfigError(f"Refusing to overwrite unreadable goals config {config_path}")
    return {}


def _write_config(config_path: Path, data: dict[str, Any]) -> None:
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        json.dump(data, f, indent=2)


def load_recurring_goals(config_path: Path | None = None) -> list[TimeGoal]:
    """
    Load recurring time goals; every returned goal has recurring=True.

    Missing file, invalid content or a missing recurringGoals list -> [].
    Malformed entries are skipped.
    """
    if config_path is None:
        config_path = paths.goals_path()

    data = _read_config(config_path)
    if data is None:
        return []

    raw_goals = data.get("recurringGoals")
    if not isinstance(raw_goals, list):
        return []

    goals = []
    for raw in raw_goals:
        if not isinstance(raw, dict):
            continue
        try:
            goal = goal_from_dict({**raw, "type": "time", "recurring": True})
        except (KeyError, ValueError, TypeError) as exc:
            logger.warning("Skipping malformed recurring goal %r: %s", raw.get("id"), exc)
            continue
        goals.append(goal)
    return goals


def _stored_form(goal: TimeGoal) -> dict[str, Any]:
    # type is implied by living in recurringGoals
    data = goal_to_dict(goal)
    data.pop("type", None)
    return data


def save_recurring_goal(goal: TimeGoal, config_path: Path | None = None) -> None:
    """
    Insert or update (by id) a recurring goal, creating the file if needed.

    Raises GoalConfigError when the existing file cannot be parsed.
    """
    if config_path is None:
        config_path = paths.goals_path()

    data = _read_config_for_update(config_path)
    stored = data.get("recurringGoals")
    if not isinstance(stored, list):
        stored = []

    entry = _stored_form(goal)
    for index, existing in enumerate(stored):
        if isinstance(existing, dict) and existing.get("id") == goal.id:
            stored[index] = entry
            break
    else:
        stored.append(entry)

    data["recurringGoals"] = stored
    _write_config(config_path, data)
    logger.info("Recurring goal saved", extra={"goal_id": goal.id})


def remove_recurring_goal(goal_id: str, config_path: Path | None = None) -> None:
    """Remove a recurring goal by id; no-op when the file or id is absent."""
    if config_path is None:
        config_path = paths.goals_path()

    data = _read_config(config_path)
    if data is None or not isinstance(data.get("recurringGoals"), list):
        return

    remaining = [
        g for g in data["recurringGoals"] if not (isinstance(g, dict) and g.get("id") == goal_id)
    ]
    if len(remaining) == len(data["recurringGoals"]):
        return

    data["recurringGoals"] = remaining
    _write_config(config_path, data)
    logger.info("Recurring goal removed", extra={"goal_id": goal_id})
