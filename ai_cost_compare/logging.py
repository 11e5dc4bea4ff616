"""
Structured logging setup.

Configures structlog on top of the standard logging module.
"""

import logging

import structlog

LOG_LEVELS = ("debug", "info", "warning", "error")


def setup_logging(level: str = "warning") -> None:
    """Map a level name to a logging level and configure structlog.

    Unknown names fall back to WARNING.
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
