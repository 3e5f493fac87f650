"""structlog setup.

Learn: Every module does `logger = structlog.get_logger()` and logs
dotted event names with key/value context. This module wires the
processor chain once at startup: request-scoped contextvars (request_id,
user_id) are merged into every entry, and the renderer is JSON in
production or a colored console in development.
"""

import logging

import structlog

from spacehub.config import Settings


def configure_logging(settings: Settings) -> None:
    level = logging.getLevelName(settings.log_level.upper())
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.json_logs
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )
