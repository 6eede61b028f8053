"""
Centralized logging configuration for the price calendar.

This module provides standardized logging configuration using structlog
for all components. All logging throughout the package should go through
this configuration so fetch, cache and refresh events share one format.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"  # structlog will handle formatting
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_refresh_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound to the refresh subsystem.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for refresh cycle events
    """
    return get_logger(name).bind(subsystem="refresh")


def log_refresh_outcome(
    logger: FilteringBoundLogger,
    instrument_id: str,
    generation: int,
    trigger: str,
    outcome: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log the end of a refresh cycle with standardized fields.

    Args:
        logger: Structlog logger instance
        instrument_id: Instrument the cycle fetched
        generation: Selection generation the cycle started under
        trigger: What started the cycle (startup, timer, switch, manual)
        outcome: rendered, failed or discarded
        context: Additional context data
    """
    bound_logger = logger.bind(
        instrument_id=instrument_id,
        generation=generation,
        trigger=trigger,
        outcome=outcome,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    if outcome == "failed":
        bound_logger.warning("Refresh cycle failed")
    else:
        bound_logger.info("Refresh cycle finished")
