"""structlog setup for scripts that use the library.

The library itself only calls ``structlog.get_logger``; applications decide
where events go and at which level by calling :func:`configure_logging`.
"""

from datetime import datetime, timezone
from typing import Optional, TextIO
import logging

import structlog


def _timestamp_processor(logger, method_name, event_dict):
    """Add timestamp in human-readable format."""
    event_dict["timestamp"] = datetime.now(timezone.utc).strftime("%H:%M:%S")
    return event_dict


def configure_logging(level: str = "INFO", file: Optional[TextIO] = None, colors: bool = False) -> None:
    """Configure structlog for human-readable console output.

    Args:
        level: Minimum level to emit ('DEBUG', 'INFO', 'WARNING', ...).
            Layer and factory events are logged at DEBUG.
        file: Stream to write to. Defaults to stdout.
        colors: Whether the console renderer uses ANSI colors.
    """
    structlog.configure(
        processors=[
            _timestamp_processor,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(colors=colors),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper())),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=file),
        # Module loggers must pick up a later reconfiguration
        cache_logger_on_first_use=False,
    )
