"""
Logging setup for the chat relay.

Every record carries the ID of the HTTP request it was emitted for, so all
the lines of one chat stream can be read together.
Output is one JSON object per line, or plain text for local runs.
"""

import json
import logging
import sys
from typing import Any

from chatrelay.config import Settings
from chatrelay.utils.request_context import get_request_id

# Fields of a bare LogRecord; anything else arrived through `extra`.
_RECORD_FIELDS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "request_id"}

TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s: %(message)s"

# Provider and speech vendor HTTP clients log every request at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore", "anthropic")


class RequestIdFilter(logging.Filter):
    """Stamps `request_id` onto records; `-` outside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = get_request_id() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """Renders a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        """
        Build the JSON line for a record.

        Carries `timestamp`, `level`, `logger` and `message`, the request ID
        when one is active, the traceback for `logger.exception` calls and
        every field passed through `extra` (chunk counts, error codes,
        provider names). Values JSON cannot encode are written with `str`.
        """
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None) or get_request_id()
        if request_id and request_id != "-":
            entry["request_id"] = request_id

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_FIELDS and not key.startswith("_")
        )
        return json.dumps(entry, default=str)


def setup_logging(settings: Settings) -> None:
    """
    Route all logging to stdout in the configured format.

    Replaces any handlers already on the root logger, so calling it again
    (one app per test) does not duplicate output.
    """
    level = getattr(logging, settings.log_level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(RequestIdFilter())
    if settings.log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    chatty_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(chatty_level)

    root.info(
        "Logging configured",
        extra={
            "log_level": settings.log_level,
            "log_format": settings.log_format,
            "environment": settings.environment,
        },
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
