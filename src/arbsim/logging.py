"""Structured logging for simulator sessions.

Every event carries the session's seed so that a logged run can be
replayed with ``--seed``.
"""

from __future__ import annotations

import logging
import sys

import structlog

# Third-party loggers kept at WARNING so ticks stay readable
_QUIET_LOGGERS = ("aiohttp.access", "aiohttp.client", "asyncio")


def setup_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    seed: int | None = None,
) -> None:
    """Configure structured logging for one simulator session.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: If True, output JSON logs with rendered tracebacks.
            Otherwise, console output, colored only on a terminal.
        seed: Session seed bound to every event; omitted when None.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.contextvars.clear_contextvars()
    if seed is not None:
        structlog.contextvars.bind_contextvars(seed=seed)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger bound to ``name``."""
    return structlog.get_logger(name)
