"""
Module: logger.py
Description: Structured logging configuration for the queue client.

Configures structlog for JSON output so that queue operations emit
one machine-readable line per remote call, with the queue URL, action
and item counts bound as keyword context.

Key Components:
- JSON output with timestamp and level processors
- Level filtering driven by settings.log_level
- get_logger() helper function

Dependencies: structlog, datetime, logging
"""

import logging
from datetime import datetime, timezone

import structlog

from queuekit.config.settings import settings


def _add_timestamp(logger, method_name, event_dict):
    """
    Add ISO 8601 timestamp to log entries.

    Args:
        logger: Logger instance
        method_name: Log method name (info, error, etc.)
        event_dict: Current log event dictionary

    Returns:
        Updated event dictionary with timestamp
    """
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _add_log_level(logger, method_name, event_dict):
    """Add upper-cased log level to event dictionary."""
    event_dict["level"] = method_name.upper()
    return event_dict


structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        _add_timestamp,
        _add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    logger_factory=structlog.WriteLoggerFactory(),
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(settings.log_level)
    ),
    cache_logger_on_first_use=True,
)


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Messages received", queue_url=url, count=3)
    """
    return structlog.get_logger(name)
