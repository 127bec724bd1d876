"""
Structured logging for the analyzer, the CLI and the API.

Everything goes to stderr so report paths and summaries printed on stdout
stay clean. LOG_FORMAT=json gives one JSON object per line; anything else
gives colored console output.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict

from seo_info.core.config import get_settings

SEVERITIES = {"debug", "info", "warning", "error", "critical"}

# Libraries that log every request at INFO
QUIET_LOGGERS = ("asyncio", "httpx", "httpcore", "playwright")


def add_severity(logger: Any, method: str, event_dict: EventDict) -> EventDict:
    """Copy the level into an upper-case `severity` field for JSON log lines."""
    event_dict["severity"] = method.upper() if method in SEVERITIES else "INFO"
    return event_dict


def configure_logging(verbose: bool = False) -> None:
    settings = get_settings()
    if verbose:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_severity,
    ]
    if settings.LOG_FORMAT == "json":
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level)

    if settings.ENV == "production" or not verbose:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
