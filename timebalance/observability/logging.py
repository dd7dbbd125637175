"""
Structured logging carrying the active analysis pass (name and run id).

Level and format come from TIMEBALANCE_LOG_LEVEL and TIMEBALANCE_LOG_FORMAT
unless configure_logging() is given them explicitly.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from timebalance import config as app_config

from .context import get_analysis_name, get_run_id

_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "message",
        "taskName",
    }
)


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Output format:
    {
        "timestamp": "2026-02-22T10:30:00.000Z",
        "level": "INFO",
        "logger": "timebalance.coverage.engine",
        "message": "Coverage evaluated",
        "analysis": "coverage",
        "run_id": "run-abc123",
        "gaps": 2,
        ...
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, UTC)
        log_obj: dict[str, Any] = {
            "timestamp": created.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        analysis = get_analysis_name()
        if analysis:
            log_obj["analysis"] = analysis
        run_id = get_run_id()
        if run_id:
            log_obj["run_id"] = run_id

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        # Extra fields passed via logger.info(..., extra={...})
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_obj[key] = value

        return json.dumps(log_obj, default=str)


class HumanFormatter(logging.Formatter):
    """Human-readable formatter for terminals."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        run_id = get_run_id()
        rid_str = f"[{run_id[:12]}] " if run_id else ""
        line = f"{timestamp} [{record.levelname}] {record.name}: {rid_str}{record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _use_json(log_format: str) -> bool:
    fmt = log_format.lower()
    if fmt == "json":
        return True
    if fmt == "human":
        return False
    if fmt != "auto":
        logging.getLogger(__name__).warning("Unknown log format %r, using auto", log_format)
    # JSON when piped (batch/report jobs), human format in a terminal
    return not sys.stderr.isatty()


def configure_logging(
    level: str | None = None,
    json_format: bool | None = None,
) -> None:
    """
    Configure root logging for the application.

    Args:
        level: Log level name; defaults to TIMEBALANCE_LOG_LEVEL.
        json_format: Force JSON (True) or human (False) output. If None,
            TIMEBALANCE_LOG_FORMAT decides (json, human or auto).
    """
    if level is None:
        level = app_config.LOG_LEVEL
    if json_format is None:
        json_format = _use_json(app_config.LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_format else HumanFormatter())
    root_logger.addHandler(handler)
