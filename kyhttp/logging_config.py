"""
Structured logging for kyhttp.

Every kyhttp module logs through ``get_logger(__name__)``: a structlog
BoundLogger wrapped around the stdlib logger of the same name. Until the
embedding application configures stdlib logging, the stdlib defaults
apply: debug and info events are dropped and warnings reach stderr.

``setup_logging`` installs a processor chain (JSON or console) for
applications and the CLI that want kyhttp's events rendered.
"""

import datetime
import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict


def add_timestamp(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add ISO timestamp to log entries."""
    event_dict["timestamp"] = (
        datetime.datetime.now(datetime.timezone.utc).isoformat().replace("+00:00", "Z")
    )
    return event_dict


def get_logger(name: str) -> Any:
    """
    Get a kyhttp logger backed by ``logging.getLogger(name)``.

    The processor chain is resolved on every event rather than cached, so
    loggers created at import time follow later ``setup_logging`` and
    ``structlog.testing.capture_logs`` calls.
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def setup_logging(log_level: str = "INFO", log_format: str = "console") -> None:
    """
    Configure structured logging for kyhttp and the application embedding it.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: 'json' for one JSON object per line, 'console' for
            human-readable key=value output
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=numeric_level,
    )
    logging.getLogger("kyhttp").setLevel(numeric_level)

    shared_processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_timestamp,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    # httpx logs every request at INFO
    if numeric_level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
