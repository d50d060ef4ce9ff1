"""Structured logging setup for reelsync."""

from logging import (
    CRITICAL,
    DEBUG,
    ERROR,
    INFO,
    WARNING,
    Handler,
    StreamHandler,
    getLogger,
)
from typing import Any, Optional, cast

import structlog
from structlog import dev, processors, stdlib
from structlog.processors import JSONRenderer, TimeStamper, dict_tracebacks
from structlog.stdlib import BoundLogger
from structlog.types import Processor

LOG_LEVELS: dict[str, int] = {
    "debug": DEBUG,
    "info": INFO,
    "warning": WARNING,
    "error": ERROR,
    "critical": CRITICAL,
}

PACKAGE_LOGGER = "reelsync"


def _shared_processors() -> list[Processor]:
    """Processors applied to structlog events and foreign stdlib records alike."""
    return [
        stdlib.add_logger_name,
        stdlib.add_log_level,
        stdlib.PositionalArgumentsFormatter(),
        TimeStamper(fmt="%Y-%m-%d %H:%M:%S.%f"),
        dict_tracebacks,
    ]


def _build_handler(testing: bool, level: int) -> Handler:
    handler: Handler = StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(
        stdlib.ProcessorFormatter(
            processor=JSONRenderer() if not testing else dev.ConsoleRenderer(),
            foreign_pre_chain=_shared_processors(),
        )
    )
    return handler


def configure_logging(testing: bool = False, level: str = "info") -> None:
    """Configure structlog and the stdlib loggers it writes through.

    Production output is one JSON object per event. Under test, events render
    as key=value pairs so assertion failures stay readable.

    Args:
        testing: Whether the application is running in test mode
        level: Log level name, one of LOG_LEVELS (unknown names mean info)
    """
    log_level = LOG_LEVELS.get(level.lower(), INFO)

    structlog.configure(
        processors=[
            stdlib.filter_by_level,
            *_shared_processors(),
            processors.format_exc_info,
            JSONRenderer() if not testing else processors.KeyValueRenderer(),
        ],
        context_class=dict,
        logger_factory=stdlib.LoggerFactory(),
        wrapper_class=stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = _build_handler(testing, log_level)
    for name in (None, PACKAGE_LOGGER):
        std_logger = getLogger(name)
        std_logger.setLevel(log_level)
        std_logger.handlers = [handler]

    # Package events already reach the shared handler directly
    getLogger(PACKAGE_LOGGER).propagate = False


def get_logger() -> BoundLogger:
    """Get a configured logger instance.

    Returns:
        A structured logger instance.
    """
    return cast(BoundLogger, structlog.get_logger())


def get_record_logger(
    record_id: str, base: Optional[BoundLogger] = None, **context: Any
) -> BoundLogger:
    """Bind a content record's ID and extra context to a logger.

    Args:
        record_id: Content record the following events are about
        base: Logger to extend, typically a module logger
        **context: Additional key/value pairs such as owner_id

    Returns:
        Logger carrying record_id on every event
    """
    return (base or get_logger()).bind(record_id=record_id, **context)
