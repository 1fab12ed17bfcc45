"""Structured logging for the marketplace.

Workflow modules log through ``structlog.get_logger(__name__)`` with
key-value events. ``configure_logging`` is called once by the API lifespan
and by the management CLI; until then structlog's defaults apply, which is
what the test suite runs with.
"""

import logging
import sys

import structlog

from marketplace.config import get_settings

# Libraries whose INFO chatter drowns out workflow events.
QUIET_LOGGERS = ("protean", "httpx", "httpcore", "redis", "uvicorn.access")

_LEVELS_BY_ENV = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}


def resolve_level(environment: str, override: str | None = None) -> str:
    if override:
        return override.upper()
    return _LEVELS_BY_ENV.get(environment.lower(), "INFO")


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging() -> None:
    """Route structlog and stdlib logging to stdout as console lines or JSON."""
    settings = get_settings()
    level = resolve_level(settings.environment, settings.log_level)
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_shared_processors(),
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_request(method: str, path: str, user_id: str | None) -> None:
    """Tag every event logged while serving this request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(method=method, path=path, user_id=user_id)


def unbind_request() -> None:
    structlog.contextvars.clear_contextvars()
