"""
Test configuration: repo root on sys.path + shared event fixtures.

This allows tests to import from top-level packages (timebalance, scripts).
"""

import sys
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import timebalance.*, scripts.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from tests.fixtures import at, make_event  # noqa: E402


@pytest.fixture
def event_factory():
    """Build Events with sensible defaults: event_factory("a", at(9), at(10))."""
    return make_event


@pytest.fixture
def day_at():
    """Datetime on the fixture day (Monday 2026-02-23) at hour:minute."""
    return at


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point TIMEBALANCE_HOME at a temp dir so no test reads real config."""
    monkeypatch.setenv("TIMEBALANCE_HOME", str(tmp_path / "home"))
