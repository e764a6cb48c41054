"""
Logging setup: one JSON object per line in deployed environments, colored
single lines locally.

Every record carries the correlation id of the request that produced it,
so the per-game lines logged while a slate is analyzed can be grouped
back into one /picks or /strategy call.
"""
import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Optional

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

# Present on every LogRecord; whatever else is on a record arrived via `extra=`
_STANDARD_RECORD_FIELDS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}

# Chatty libraries kept at WARNING
_QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _STANDARD_RECORD_FIELDS
    }


class JSONFormatter(logging.Formatter):
    """
    Render a record as a single JSON line.

    ``extra`` fields (game_id, sport, risk_mode...) are merged into the
    top level so log search can filter on them directly.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        correlation_id = correlation_id_var.get()
        if correlation_id:
            payload["correlation_id"] = correlation_id

        for key, value in _extra_fields(record).items():
            payload.setdefault(key, value)

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class ColoredFormatter(logging.Formatter):
    """Terminal output for local runs."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, "")
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{stamp} {color}{record.levelname:<8}{self.RESET} {record.name}: {record.getMessage()}"

        extra = _extra_fields(record)
        if extra:
            line += " " + " ".join(f"{k}={v}" for k, v in extra.items())

        correlation_id = correlation_id_var.get()
        if correlation_id:
            line += f" [{correlation_id}]"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    handler: Optional[logging.Handler] = None,
) -> None:
    """
    Install a single handler on the root logger.

    Args:
        level: Level name; unknown names fall back to INFO
        json_output: JSON lines when True, colored console lines otherwise
        handler: Handler to install; defaults to a stdout stream handler
    """
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.setLevel(resolved)

    handler = handler or logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else ColoredFormatter())
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_correlation_id(correlation_id: str) -> Token:
    """Bind a correlation id to the current context; returns the reset token."""
    return correlation_id_var.set(correlation_id)


def clear_correlation_id(token: Token) -> None:
    correlation_id_var.reset(token)
