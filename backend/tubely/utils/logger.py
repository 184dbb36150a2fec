"""
Structured Logging Configuration for Tubely

Sets up application-wide logging with either JSON or plain-text output,
routes Uvicorn's loggers through the same formatter, and provides a context
adapter so every record emitted while handling an upload carries the video
id, the user id and the current pipeline stage.

Features:
- JSONFormatter: One JSON object per record, including ``extra`` fields
- StandardFormatter: Human-readable output for local development
- setup_logging: Root logger, Uvicorn and third-party logger configuration
- add_log_context: LoggerAdapter factory for request-scoped context

Usage:
    from tubely.utils.logger import add_log_context, setup_logging

    setup_logging(log_level="INFO", json_logs=True)

    logger = logging.getLogger(__name__)
    ctx_logger = add_log_context(logger, video_id="...", user_id="...")
    ctx_logger.info("Upload received")
"""

import json
import logging
import sys
import traceback

from datetime import UTC, datetime
from typing import Any


# =============================================================================
# Constants
# =============================================================================

LOG_LEVEL_MAP: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Libraries whose INFO/DEBUG chatter is suppressed
THIRD_PARTY_LOGGERS: list[str] = [
    "motor",
    "pymongo",
    "boto3",
    "botocore",
    "s3transfer",
    "urllib3",
    "httpx",
    "httpcore",
    "redis",
    "asyncio",
    "multipart",
    "python_multipart",
]

UVICORN_LOGGERS: tuple[str, ...] = ("uvicorn", "uvicorn.access", "uvicorn.error")


# =============================================================================
# Formatters
# =============================================================================


class LogJSONEncoder(json.JSONEncoder):
    """JSON encoder that falls back to ``str()`` for values json can't handle."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, bytes):
            return obj.decode("utf-8", errors="replace")
        if isinstance(obj, set):
            return sorted(obj, key=str)
        return str(obj)


class JSONFormatter(logging.Formatter):
    """
    Render log records as single-line JSON documents.

    Fields passed through ``extra=`` or a ContextLoggerAdapter are gathered
    under the ``extra`` key.

    Example output:
        {"timestamp":"2026-01-15T10:30:45.123456+00:00","level":"INFO",
         "logger":"tubely.services.video_upload_service",
         "message":"Video published",
         "extra":{"video_id":"...","stage":"published"}}
    """

    # Attributes every LogRecord has; anything else came from ``extra``
    RESERVED_ATTRS: frozenset[str] = frozenset(
        {
            "args",
            "asctime",
            "created",
            "exc_info",
            "exc_text",
            "filename",
            "funcName",
            "levelname",
            "levelno",
            "lineno",
            "message",
            "module",
            "msecs",
            "msg",
            "name",
            "pathname",
            "process",
            "processName",
            "relativeCreated",
            "stack_info",
            "thread",
            "threadName",
            "taskName",
            "color_message",
        }
    )

    def __init__(self, include_source_location: bool = False) -> None:
        super().__init__()
        self.include_source_location = include_source_location

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(
                timespec="microseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_source_location:
            entry["source"] = {
                "filename": record.filename,
                "lineno": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__ if exc_type else "Unknown",
                "message": str(exc_value) if exc_value else "",
                "traceback": "".join(traceback.format_exception(*record.exc_info)),
            }

        if record.stack_info:
            entry["stack_info"] = record.stack_info

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if not key.startswith("_") and key not in self.RESERVED_ATTRS
        }
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, cls=LogJSONEncoder, ensure_ascii=False, separators=(",", ":"))


class StandardFormatter(logging.Formatter):
    """
    Plain-text formatter for development consoles.

    Format: [TIMESTAMP] LEVEL logger_name: message
    """

    DEFAULT_FORMAT: str = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
    DEFAULT_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(
            fmt=fmt or self.DEFAULT_FORMAT,
            datefmt=datefmt or self.DEFAULT_DATE_FORMAT,
        )


# =============================================================================
# Application Logging Setup
# =============================================================================


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    third_party_level: str = "WARNING",
) -> None:
    """
    Configure the root logger, Uvicorn's loggers and third-party verbosity.

    Call once at application startup. Calling it again replaces the handlers
    installed by the previous call rather than stacking new ones.

    Args:
        log_level: Application log level name (DEBUG, INFO, WARNING, ...)
        json_logs: Emit JSONFormatter output when True, StandardFormatter otherwise
        third_party_level: Level applied to THIRD_PARTY_LOGGERS
    """
    level_name = log_level.upper()
    level = LOG_LEVEL_MAP.get(level_name, logging.INFO)

    formatter: logging.Formatter
    if json_logs:
        formatter = JSONFormatter(include_source_location=level <= logging.DEBUG)
    else:
        formatter = StandardFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.setLevel(level)
        uvicorn_logger.propagate = False
        uvicorn_logger.handlers.clear()
        stream = sys.stderr if name == "uvicorn.error" else sys.stdout
        handler = logging.StreamHandler(stream)
        handler.setFormatter(formatter)
        uvicorn_logger.addHandler(handler)

    third_party_log_level = LOG_LEVEL_MAP.get(third_party_level.upper(), logging.WARNING)
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_log_level)

    logging.getLogger(__name__).info(
        "Logging configured", extra={"level": level_name, "json_logs": json_logs}
    )


# =============================================================================
# Context Enrichment
# =============================================================================


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    LoggerAdapter that merges its context into each call's ``extra`` dict.

    Values passed explicitly at the call site win over adapter context. The
    context dict is mutable, so a long-running operation can update a field
    such as ``stage`` as it progresses.
    """

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = dict(kwargs.get("extra") or {})
        for key, value in (self.extra or {}).items():
            extra.setdefault(key, value)
        kwargs["extra"] = extra
        return msg, kwargs

    def bind(self, **fields: Any) -> None:
        """Add or replace context fields in place."""
        self.extra.update(fields)  # type: ignore[union-attr]


def add_log_context(logger: logging.Logger, **kwargs: Any) -> ContextLoggerAdapter:
    """
    Wrap ``logger`` so every record carries the given context fields.

    Example:
        ctx_logger = add_log_context(logger, video_id="abc", user_id="u1", stage="received")
        ctx_logger.info("Upload received")
        ctx_logger.bind(stage="staged")
        ctx_logger.info("Upload staged", extra={"size": 1024})
    """
    return ContextLoggerAdapter(logger, dict(kwargs))


__all__ = [
    "JSONFormatter",
    "StandardFormatter",
    "ContextLoggerAdapter",
    "setup_logging",
    "add_log_context",
    "LOG_LEVEL_MAP",
]
