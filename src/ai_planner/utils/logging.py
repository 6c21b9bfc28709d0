from __future__ import annotations

import logging
from typing import Iterable, Optional

import structlog

NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    quiet_loggers: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """
    Initialize stdlib logging and structlog for the planner.

    Library modules log through `logging.getLogger(__name__)`; services emit key/value
    events through `get_logger`. Both end up at the same level. HTTP client chatter from
    the LLM SDK is held at WARNING so plan parsing events stay readable.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    for name in quiet_loggers:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    processors.append(
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: Optional[str] = None, **initial_values):
    """Return a structlog logger, optionally pre-bound with context such as a plan id."""
    logger = structlog.get_logger(name)
    return logger.bind(**initial_values) if initial_values else logger
