"""
Analysis pass context held in a context variable.

Every log line emitted while a pass is running carries the pass name and
run id, so the output of one pass can be correlated. Passes nested inside
another pass share the outer run id unless given their own.
"""

import contextvars
import logging
import time
import uuid

logger = logging.getLogger(__name__)

_current_var: contextvars.ContextVar["AnalysisContext | None"] = contextvars.ContextVar(
    "analysis_context", default=None
)


def current_context() -> "AnalysisContext | None":
    """The innermost active analysis pass, if any."""
    return _current_var.get()


def get_run_id() -> str | None:
    ctx = _current_var.get()
    return ctx.run_id if ctx is not None else None


def get_analysis_name() -> str | None:
    ctx = _current_var.get()
    return ctx.name if ctx is not None else None


def generate_run_id() -> str:
    """Generate a new run ID."""
    return f"run-{uuid.uuid4().hex[:16]}"


class AnalysisContext:
    """
    Context manager for one analysis pass.

    Usage:
        with AnalysisContext("coverage") as ctx:
            report = find_coverage_gaps(events, config=config)
            # All logs within this block include ctx.run_id

        # Or with an existing ID:
        with AnalysisContext("weekly-report", run_id="run-weekly-2026-02-22"):
            ...

    On exit the pass duration is stored in `duration_ms` and a finish line
    is logged with the outcome ("ok" or "error").
    """

    def __init__(self, name: str = "analysis", run_id: str | None = None):
        self.name = name
        self._explicit_run_id = run_id
        self.run_id: str | None = run_id
        self.parent: AnalysisContext | None = None
        self.duration_ms: float | None = None
        self._started: float | None = None
        self._token: contextvars.Token | None = None

    def __enter__(self) -> "AnalysisContext":
        self.parent = _current_var.get()
        if self._explicit_run_id is None:
            self.run_id = self.parent.run_id if self.parent is not None else generate_run_id()
        self._token = _current_var.set(self)
        self._started = time.perf_counter()
        logger.debug("Analysis started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration_ms = round((time.perf_counter() - self._started) * 1000, 3)
        outcome = "ok" if exc_type is None else "error"
        level = logging.DEBUG if exc_type is None else logging.WARNING
        logger.log(
            level,
            "Analysis finished",
            extra={"outcome": outcome, "duration_ms": self.duration_ms},
        )
        if self._token is not None:
            _current_var.reset(self._token)
            self._token = None
