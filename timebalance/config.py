"""
Centralized configuration for timebalance.

All defaults that vary by deployment belong here.
Override via environment variables where marked.
"""

import os

# ============================================================
# Flex time
# ============================================================

WAKING_START_HOUR: int = int(os.environ.get("TIMEBALANCE_WAKING_START", "6"))
"""First waking hour used when no schedule supplies one."""

WAKING_END_HOUR: int = int(os.environ.get("TIMEBALANCE_WAKING_END", "22"))
"""Last waking hour (exclusive) used when no schedule supplies one."""

MIN_GAP_MINUTES: int = int(os.environ.get("TIMEBALANCE_MIN_GAP_MINUTES", "30"))
"""Shortest gap that is offered as a flex slot."""

# ============================================================
# Goals
# ============================================================

DEFAULT_COLOR_ID: str = os.environ.get("TIMEBALANCE_DEFAULT_COLOR_ID", "2")
"""Category assigned to parsed goals (Sage / deep work)."""

DEFAULT_PRIORITY: int = 1

# ============================================================
# Coverage rules
# ============================================================

COVERAGE_EPSILON: float = float(os.environ.get("TIMEBALANCE_COVERAGE_EPSILON", "1e-9"))
"""Tolerance when comparing coverage percent against the rule minimum."""

DEFAULT_OPT_OUT_TOKENS: list[str] = [
    t.strip()
    for t in os.environ.get("TIMEBALANCE_OPT_OUT_TOKENS", "no coverage needed").split(",")
    if t.strip()
]
"""Global opt-out tokens applied to every dependency rule."""

DEFAULT_RULE_TOKEN_TEMPLATE: str = "no-coverage:{ruleId}"
"""Rule-scoped opt-out token; {ruleId} is substituted per rule."""

DEFAULT_OPT_OUT_PRECEDENCE: list[str] = ["description", "title"]

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("TIMEBALANCE_LOG_LEVEL", "INFO")

LOG_FORMAT: str = os.environ.get("TIMEBALANCE_LOG_FORMAT", "auto")
"""json, human, or auto (JSON when stderr is not a terminal)."""
