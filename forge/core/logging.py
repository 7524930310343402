from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

_CONFIGURED = False

# Third-party loggers that are chatty at INFO
_NOISY_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "passlib")


def setup_logging(level: int | str = logging.INFO, *, json_output: bool = True) -> None:
    """Configure structlog for the service.

    Events are rendered as JSON lines by default; ``json_output=False`` switches to
    the human-readable console renderer for local runs and scripts. Values bound with
    ``structlog.contextvars`` (request id, classroom id, ...) are merged into every
    event.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(level=level, format="%(message)s", stream=sys.stdout)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
        structlog.processors.dict_tracebacks,
        renderer,
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )

    _CONFIGURED = True
