"""
structlog configuration for pipeline runs.

Services log through ``structlog.get_logger`` with key/value events;
lower-level modules use ``logging.getLogger``. Both end up in one
stdout handler whose formatter is structlog's ``ProcessorFormatter``,
so a run renders uniformly (JSON outside development, colored console
in development) and every line carries the bound ``run_id``.
"""

import logging
import sys

import structlog
from structlog.types import Processor

from trendflow.config.settings import get_settings

QUIET_LOGGERS = ("httpx", "httpcore", "openai", "asyncio", "asyncpg")


def _timestamped() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def setup_logging() -> None:
    """Install the shared handler on the root logger; safe to call more than once."""
    settings = get_settings()

    structlog.configure(
        processors=_timestamped()
        + [
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    renderer: Processor
    if settings.json_logs:
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_timestamped(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_context(**kwargs) -> None:
    """Attach key/values (e.g. ``run_id``) to every log line until cleared."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Structured logger bound to ``name`` (usually ``__name__``)."""
    return structlog.get_logger(name)
