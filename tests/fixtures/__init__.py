"""
Test fixtures for deterministic testing.

This module provides:
- at: datetimes on a pinned Monday
- make_event / make_all_day: Event builders with sensible defaults
"""

from .events import FIXTURE_DAY, at, make_all_day, make_event

__all__ = ["FIXTURE_DAY", "at", "make_all_day", "make_event"]
