"""
Structured logging for the generator.

Logs are JSON lines on stdout. With terminal output enabled the structured
stream is discarded so the console only shows the human progress output.
"""

import logging
import sys

import structlog
from structlog._config import BoundLoggerLazyProxy
from structlog.typing import EventDict, FilteringBoundLogger

from .config import ConfigError

LOGGER_NAME = "telgen"

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def drop_event(logger, method_name: str, event_dict: EventDict) -> EventDict:
    raise structlog.DropEvent


def json_processors() -> list:
    return [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", key="ts"),
        structlog.processors.format_exc_info,
        structlog.processors.EventRenamer("msg"),
        structlog.processors.JSONRenderer(),
    ]


def create_logger(level: str = "info", terminal_output: bool = True) -> FilteringBoundLogger:
    """Configure structlog for the run and return the package logger."""
    try:
        log_level = LOG_LEVELS[level.strip().lower()]
    except KeyError:
        raise ConfigError(
            f"unknown log level {level!r}, expected one of (debug, info, warn, error)"
        ) from None

    structlog.configure(
        processors=[drop_event] if terminal_output else json_processors(),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stdout),
        cache_logger_on_first_use=False,
    )
    return get_logger()


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Package logger, or a child logger tagged logger=telgen.<name>."""
    return BoundLoggerLazyProxy(
        None, initial_values={"logger": f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME}
    )
