"""Logging configuration for the face track service."""
import logging
import sys
from typing import List, Optional, TextIO

import structlog
from structlog.stdlib import ProcessorFormatter

from facetrack.core.config import settings

# Libraries that log every request or query at INFO
_QUIET_LOGGERS = ("boto3", "botocore", "aiobotocore", "httpx", "sqlalchemy.engine")


def setup_logging(level: Optional[str] = None, stream: Optional[TextIO] = None) -> None:
    """Configure structured logging for the service and the admin CLI.

    Events go to stderr by default so CLI results on stdout stay parseable.
    Development gets the colored console renderer, every other environment
    gets one JSON object per line.

    Args:
        level: Log level name, defaults to ``LOG_LEVEL``
        stream: Output stream, defaults to stderr
    """
    shared_processors: List[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    if settings.ENVIRONMENT == "development":
        final_processor = structlog.dev.ConsoleRenderer(colors=True)
    else:
        final_processor = structlog.processors.JSONRenderer()
        shared_processors.insert(-1, structlog.processors.format_exc_info)

    structlog.configure(
        processors=shared_processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(ProcessorFormatter(processor=final_processor))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    level_name = (level or settings.LOG_LEVEL).upper()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))

    logging.getLogger("uvicorn.error").propagate = False
    logging.getLogger("uvicorn.access").disabled = True
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    get_logger(__name__).debug(
        "Logging configured",
        environment=settings.ENVIRONMENT,
        level=level_name,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger bound to a stdlib logger name.

    Args:
        name: Name for the logger, typically __name__
    """
    return structlog.get_logger(name)
