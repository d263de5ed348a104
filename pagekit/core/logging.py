"""Library logging — structlog loggers bound to the stdlib ``pagekit`` tree.

pagekit never calls ``structlog.configure`` or touches the root logger:
every module gets its logger from :func:`get_logger`, which wraps a
stdlib logger under ``pagekit.*``. Events propagate to whatever logging
the host application set up; :func:`setup_logging` is the opt-in for
hosts that want pagekit to render its own events.
"""

from __future__ import annotations

import logging

import structlog

from pagekit.core.config import Settings, load_settings

ROOT_LOGGER = "pagekit"

_HANDLER_NAME = "pagekit-structlog"

_shared_processors: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger over the stdlib logger *name*.

    Level filtering happens before any processor runs, so debug events
    cost nothing until the ``pagekit`` tree is set to DEBUG.
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def setup_logging(settings: Settings | None = None) -> logging.Logger:
    """Attach a structlog-rendering handler to the ``pagekit`` logger.

    Level and format come from *settings* (default: :func:`load_settings`,
    i.e. ``PAGEKIT_LOG_LEVEL`` / ``PAGEKIT_LOG_FORMAT``). Calling it again
    replaces the handler instead of stacking a second one. The tree stops
    propagating so events are not rendered twice by the host's root
    handler. Returns the configured logger.
    """
    settings = settings or load_settings()

    if settings.log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    logger = logging.getLogger(ROOT_LOGGER)
    for existing in list(logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            logger.removeHandler(existing)
            existing.close()
    logger.addHandler(handler)
    logger.setLevel(settings.log_level)
    logger.propagate = False
    return logger
