"""
Logging for the resort backend

Every record logged while a request is being served carries that request's
context (request id, method, path and, once authenticated, the user id).
Values passed with ``extra=`` are kept as well, so JSON output stays
queryable.
"""
import json
import logging
import os
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from resort_api.core.config import settings

_log_context: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})

# Attributes every LogRecord has; anything else came from context or extra=
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "tortoise": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "passlib": logging.ERROR,
}


def bind_log_context(**values: Any) -> Token:
    """
    Add values to the log context of the current request

    Returns:
        Token to pass to reset_log_context when the request is done
    """
    return _log_context.set({**_log_context.get(), **values})


def reset_log_context(token: Token) -> None:
    _log_context.reset(token)


def get_log_context() -> Dict[str, Any]:
    return dict(_log_context.get())


class RequestContextFilter(logging.Filter):
    """Copy the current log context onto each record"""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def _record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line, with context and extra fields at the top level
    """

    def format(self, record):
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in _record_fields(record).items():
            payload.setdefault(key, value)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class ContextTextFormatter(logging.Formatter):
    """Plain text lines followed by ``key=value`` pairs for context and extra fields"""

    def format(self, record):
        line = super().format(record)
        fields = _record_fields(record)
        if not fields:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
        head, newline, tail = line.partition("\n")
        return f"{head} [{pairs}]{newline}{tail}"


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    json_format: bool = False,
) -> None:
    """
    Configure the root logger for the API process

    Args:
        log_level: Level name; defaults to DEBUG in debug mode, INFO otherwise
        log_file: Also write to this file, creating its directory if needed
        json_format: Emit JSON lines instead of text
    """
    level_name = (log_level or ("DEBUG" if settings.DEBUG else "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    formatter = JsonFormatter() if json_format else ContextTextFormatter(TEXT_FORMAT)
    context_filter = RequestContextFilter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root_logger.addHandler(handler)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(max(quiet_level, level))

    logging.getLogger(__name__).debug("Logging configured", extra={"json_format": json_format})
