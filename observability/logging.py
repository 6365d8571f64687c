"""Logging setup with per-session context.

Every record carries the id and keyword of the session that produced it,
taken from context variables set by the controller on submit. Because
asyncio tasks copy the current context, jobs dispatched for a session keep
logging under that session even after the user has moved on.

Handlers:
    console  stderr (stdout is reserved for rendered output)
    file     LOG_DIR/timepoem.log, rotated by size or at midnight

Usage:
    >>> setup_logging(config)
    >>> set_session_context("3f2a9c1b7d4e", keyword="AI")
    >>> logger.info("Past search complete | items=6")
    12:00:01 [INFO] [3f2a9c1b7d4e] agents.historian: Past search complete | items=6
"""

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from typing import Any

LOG_FILE_NAME = "timepoem.log"
NO_CONTEXT = "-"

session_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("session_id", default=NO_CONTEXT)
keyword_var: contextvars.ContextVar[str] = contextvars.ContextVar("keyword", default=NO_CONTEXT)
trace_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("trace_id", default=NO_CONTEXT)

# Library loggers that are chatty at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "asyncio")

# LogRecord attributes that are not user extras
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message", "asctime", "session_id", "keyword", "trace_id",
}


def set_session_context(session_id: str, keyword: str = NO_CONTEXT) -> None:
    """Bind subsequent log records to a session."""
    session_id_var.set(session_id)
    keyword_var.set(keyword)


def set_trace_context(trace_id: str) -> None:
    """Bind subsequent log records to a Logfire trace."""
    trace_id_var.set(trace_id)


def clear_context() -> None:
    for var in (session_id_var, keyword_var, trace_id_var):
        var.set(NO_CONTEXT)


class ContextFilter(logging.Filter):
    """Copy the session context variables onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = session_id_var.get()
        record.keyword = keyword_var.get()
        record.trace_id = trace_id_var.get()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    Session keyword and trace id are included only when set; warnings and
    above also carry their source location.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "session_id": getattr(record, "session_id", NO_CONTEXT),
            "message": record.getMessage(),
        }
        for name in ("keyword", "trace_id"):
            value = getattr(record, name, NO_CONTEXT)
            if value != NO_CONTEXT:
                entry[name] = value

        if record.levelno >= logging.WARNING:
            entry["source"] = {"file": record.filename, "line": record.lineno, "function": record.funcName}
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in vars(record).items():
            if key not in _STANDARD_ATTRS:
                entry[key] = value

        return json.dumps(entry, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """TIME [LEVEL] [session] logger: message"""

    def __init__(self, include_date: bool = False):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] [%(session_id)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S" if include_date else "%H:%M:%S",
        )


def _file_handler(config: Any) -> logging.Handler:
    path = config.log_dir / LOG_FILE_NAME
    if config.log_max_bytes > 0:
        return RotatingFileHandler(
            path, maxBytes=config.log_max_bytes, backupCount=config.log_backup_count, encoding="utf-8",
        )
    return TimedRotatingFileHandler(
        path, when="midnight", backupCount=config.log_backup_count, encoding="utf-8",
    )


def setup_logging(config: Any, verbose: bool = False) -> bool:
    """Install console and file handlers on the root logger.

    Replaces any handlers already installed. If LOG_DIR cannot be created
    or written, logging continues on the console only.

    Args:
        config: Config with the log_* settings
        verbose: Force DEBUG on the console

    Returns:
        True if the file handler was installed
    """
    json_output = config.log_format == "json"
    context_filter = ContextFilter()

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if verbose else getattr(logging, config.log_level, logging.INFO))
    console.setFormatter(JsonFormatter() if json_output else TextFormatter())
    console.addFilter(context_filter)
    root.addHandler(console)

    file_enabled = True
    try:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = _file_handler(config)
    except OSError as e:
        print(
            f"Warning: cannot write logs to '{config.log_dir}' ({e}); logging to console only.",
            file=sys.stderr,
        )
        file_enabled = False
    else:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JsonFormatter() if json_output else TextFormatter(include_date=True))
        file_handler.addFilter(context_filter)
        root.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return file_enabled
