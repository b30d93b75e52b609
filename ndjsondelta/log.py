"""Structured logging on top of the stdlib ``ndjsondelta`` logger."""

from __future__ import annotations

import logging
import sys

import structlog

LOGGER_NAME = "ndjsondelta"
_HANDLER_NAME = "ndjsondelta-stderr"

# Silent until the application attaches a handler
logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())

_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.StackInfoRenderer(),
    structlog.dev.set_exc_info,
    structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
    structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
]


def setup_logging(level: str = "warning") -> None:
    """Send ndjsondelta events to stderr as JSON lines."""
    log_level = getattr(logging, level.upper(), logging.WARNING)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer(),
            ],
        )
    )

    logger = logging.getLogger(LOGGER_NAME)
    for existing in list(logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(log_level)
    logger.propagate = False


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.wrap_logger(
        logging.getLogger(f"{LOGGER_NAME}.{component}"),
        processors=_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
        component=component,
    )
