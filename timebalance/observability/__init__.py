"""
Observability module: structured logging and analysis pass context.

Usage:
    import logging
    from timebalance.observability import AnalysisContext, configure_logging

    configure_logging()
    logger = logging.getLogger(__name__)

    with AnalysisContext("coverage") as ctx:
        logger.info("Processing window", extra={"events": 120})
    # ctx.duration_ms holds the pass duration
"""

from .context import (
    AnalysisContext,
    current_context,
    generate_run_id,
    get_analysis_name,
    get_run_id,
)
from .logging import HumanFormatter, JSONFormatter, configure_logging

__all__ = [
    # Logging
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    # Context
    "AnalysisContext",
    "current_context",
    "generate_run_id",
    "get_analysis_name",
    "get_run_id",
]
