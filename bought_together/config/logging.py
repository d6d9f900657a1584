"""
Logging Configuration for Bought-Together Analytics

structlog events are rendered through the stdlib root handler, so engine
logs, request logs and uvicorn's own output share one stream and one format
("json" in deployments, "text" for local runs).
"""

import logging
import sys
from typing import List, Optional

import structlog

from bought_together.config.settings import get_settings

# Loggers that install their own handlers unless told otherwise
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "gunicorn.error")


def _event_processors() -> List:
    """Processors applied to structlog events and foreign stdlib records alike"""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]


def _renderer(log_format: str):
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def _adopt(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    logger.handlers = [handler]
    logger.setLevel(level)


def configure_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure structured logging.

    Args:
        log_level: Overrides LOG_LEVEL
        log_format: Overrides LOG_FORMAT ("json" or "text")
    """
    monitoring = get_settings().monitoring
    level_name = (log_level or monitoring.log_level).upper()
    log_format = (log_format or monitoring.log_format).lower()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    processors = _event_processors()
    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(log_format),
            foreign_pre_chain=processors,
        )
    )

    _adopt(logging.getLogger(), handler, level)
    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        _adopt(server_logger, handler, level)
        server_logger.propagate = False

    structlog.get_logger(__name__).info("Logging configured", level=level_name, format=log_format)
