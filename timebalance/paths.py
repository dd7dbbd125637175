from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml

APP_ENV_HOME = "TIMEBALANCE_HOME"

YAML_SUFFIXES = (".yaml", ".yml")


def app_home() -> Path:
    """
    User-writable home for timebalance configuration.
    Override with TIMEBALANCE_HOME.
    """
    if os.environ.get(APP_ENV_HOME):
        return Path(os.environ[APP_ENV_HOME]).expanduser().resolve()
    return (Path.home() / ".timebalance").resolve()


def config_dir() -> Path:
    d = app_home() / "config"
    d.mkdir(parents=True, exist_ok=True)
    return d


def schedule_path() -> Path:
    """Weekly schedule (waking/work hours, overrides, holidays)."""
    return config_dir() / "schedule.json"


def goals_path() -> Path:
    """Recurring optimization goals."""
    return config_dir() / "optimization-goals.json"


def dependencies_path() -> Path:
    """Dependency (coverage) rules document."""
    return config_dir() / "dependencies.json"


def calendars_path() -> Path:
    """Calendar type / filtering configuration."""
    return config_dir() / "calendars.json"


def colors_path() -> Path:
    """Color id -> {name, meaning} definitions."""
    return config_dir() / "colors.json"


def read_config_file(path: Path) -> Any:
    """
    Parsed contents of a config file: YAML for .yaml/.yml, JSON otherwise.

    Raises OSError, json.JSONDecodeError (a ValueError) or yaml.YAMLError.
    """
    with open(path) as f:
        if path.suffix.lower() in YAML_SUFFIXES:
            return yaml.safe_load(f)
        return json.load(f)
