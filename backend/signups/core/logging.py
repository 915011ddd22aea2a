"""
Structured logging configuration using structlog.
Outputs JSON in production, pretty-printed in development.

Request IDs are bound to contextvars by the request middleware, and the
membership coordinator binds game_id/principal/action on its own logger, so
every line of one join/drop (including each retry) can be correlated.
"""

import logging
import sys

import structlog
from structlog.types import EventDict, Processor

from signups.core.config import get_settings

NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "asyncio")

_configured = False


def add_service_context(logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag every line with the deployment it came from."""
    settings = get_settings()
    event_dict.setdefault("service", settings.APP_NAME)
    event_dict.setdefault("environment", settings.ENVIRONMENT)
    return event_dict


def _renderer(environment: str) -> Processor:
    if environment == "production":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def setup_logging() -> None:
    global _configured
    if _configured:
        return

    settings = get_settings()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.ENVIRONMENT == "production":
        shared_processors += [add_service_context, structlog.processors.format_exc_info]

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(settings.ENVIRONMENT),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
