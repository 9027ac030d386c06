"""
Logging for Guildstore.

Library modules only call `get_logger(__name__)` and pass structured fields
with `extra={...}`. Whether and where records are written is up to the host
application: it either configures logging itself or calls `setup_logging()`
once at startup.

`LogContext` scopes the guild/player/operation being worked on (plus a
correlation id shared by nested scopes) to a block of code. The scope lives in
a ContextVar, so it follows the current thread without being passed around.
`ContextFilter` copies it onto each record, which is how both the text and the
JSON output show it.

Output, all synchronous:
- console on stderr: JSON when `Config.LOG_JSON` is set (or, when unset, in
  production), one readable line per record otherwise;
- with `Config.LOG_TO_FILE`: a JSON file in `Config.LOGS_DIR` rotated at
  midnight UTC.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import TimedRotatingFileHandler
from typing import Any, Dict, List, Optional

from guildstore.core.config.config import Config

CONTEXT_FIELDS = ("guild", "player", "operation", "correlation_id")
UNSET = "-"

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s [%(guild)s %(operation)s %(correlation_id)s] %(message)s"
LOG_FILE_NAME = "guildstore.jsonl"
LOG_FILE_BACKUPS = 7

_context: ContextVar[Dict[str, Any]] = ContextVar("guildstore_log_context", default={})
_installed_handlers: List[logging.Handler] = []

# Attributes every LogRecord has; anything else on a record came from `extra`.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}


# ============================================================================
# Context
# ============================================================================


class LogContext:
    """
    Add context fields for the duration of a `with` block.

    Fields left as None inherit the enclosing scope; the correlation id is
    inherited too, and generated only at the outermost scope.

    >>> with LogContext(guild="Alpha", operation="add_member"):
    ...     logger.info("Member added", extra={"rank": "member"})
    """

    def __init__(
        self,
        guild: Optional[str] = None,
        player: Optional[Any] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
        **extra: Any,
    ) -> None:
        self._fields: Dict[str, Any] = {
            "guild": guild,
            "player": None if player is None else str(player),
            "operation": operation,
            "correlation_id": correlation_id,
            **extra,
        }
        self._token: Optional[Token] = None

    def __enter__(self) -> "LogContext":
        merged = dict(_context.get())
        merged.update((key, value) for key, value in self._fields.items() if value is not None)
        merged.setdefault("correlation_id", uuid.uuid4().hex[:8])
        self._token = _context.set(merged)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _context.reset(self._token)
            self._token = None


def set_log_context(**fields: Any) -> None:
    """Merge fields into the current context without a scope (None is ignored)."""
    merged = dict(_context.get())
    merged.update((key, value) for key, value in fields.items() if value is not None)
    _context.set(merged)


def get_log_context() -> Dict[str, Any]:
    return dict(_context.get())


def clear_log_context() -> None:
    _context.set({})


# ============================================================================
# Filter & Formatter
# ============================================================================


class ContextFilter(logging.Filter):
    """Put the active context on the record; missing fields read as `-`."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context = _context.get()
        for name in CONTEXT_FIELDS:
            setattr(record, name, context.get(name, UNSET))
        for name, value in context.items():
            if name not in CONTEXT_FIELDS and not hasattr(record, name):
                setattr(record, name, value)
        return True


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Context fields that are set appear at the top level; everything passed
    through `extra` is grouped under `"extra"`.
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, UNSET)
            if value != UNSET:
                entry[name] = value

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in CONTEXT_FIELDS
        }
        if extra:
            entry["extra"] = extra
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


# ============================================================================
# Setup
# ============================================================================


def _use_json() -> bool:
    return Config.is_production() if Config.LOG_JSON is None else Config.LOG_JSON


def _level() -> int:
    level = logging.getLevelName(Config.LOG_LEVEL.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging() -> None:
    """
    Attach Guildstore's handlers to the root logger.

    Existing root handlers are left alone. Calling it again does nothing
    until `shutdown_logging()` has removed the handlers.
    """
    if _installed_handlers:
        return

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(JSONFormatter() if _use_json() else logging.Formatter(TEXT_FORMAT))
    handlers: List[logging.Handler] = [console]

    if Config.LOG_TO_FILE:
        Config.LOGS_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            Config.LOGS_DIR / LOG_FILE_NAME,
            when="midnight",
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
            utc=True,
        )
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    root = logging.getLogger()
    root.setLevel(_level())
    for handler in handlers:
        handler.addFilter(ContextFilter())
        root.addHandler(handler)
        _installed_handlers.append(handler)

    get_logger(__name__).info(
        "Logging configured",
        extra={"json": _use_json(), "log_file": Config.LOG_TO_FILE, "level": Config.LOG_LEVEL},
    )


def shutdown_logging() -> None:
    """Detach and close the handlers installed by `setup_logging()`."""
    root = logging.getLogger()
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root.removeHandler(handler)
        handler.close()


def is_logging_configured() -> bool:
    return bool(_installed_handlers)


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)
