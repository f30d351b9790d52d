"""Structlog configuration for coachdir."""

import logging
import sys

import structlog

from coachdir.config import LogFormat, Settings

ROOT_LOGGER = "coachdir"

# Per-request INFO lines from these libraries duplicate our own events
NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite", "uvicorn.access")


class _StderrHandler(logging.StreamHandler):
    """StreamHandler writing to whatever ``sys.stderr`` is at emit time."""

    def __init__(self):
        super().__init__()

    @property
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value):
        pass


def _renderer_processors(log_format: LogFormat) -> list:
    if log_format == LogFormat.JSON:
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    return [
        structlog.dev.set_exc_info,
        structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
    ]


def configure_logging(settings: Settings | None = None) -> None:
    """
    Configure structlog for the CLI, the API server and library use.

    Events are rendered by structlog and emitted through the stdlib
    ``coachdir`` logger to stderr, so command output on stdout stays clean.

    Args:
        settings: Settings instance, uses defaults if None
    """
    settings = settings or Settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handler = _StderrHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger(ROOT_LOGGER)
    root.handlers = [handler]
    root.setLevel(log_level)
    root.propagate = False

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            *_renderer_processors(settings.log_format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structlog logger, bound to ``logger_name`` when a name is given."""
    if name:
        return structlog.get_logger(ROOT_LOGGER, logger_name=name)
    return structlog.get_logger(ROOT_LOGGER)
