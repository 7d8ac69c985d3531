"""One-line JSON logs for the planner engine and its HTTP surface.

Services log an event name as the message and pass their fields through
``log_context``; the formatter groups those ``ctx_*`` attributes under
``context`` so every service event has the same shape.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Optional

from planner.dates import to_timestamp_iso

CONTEXT_PREFIX = "ctx_"

# per-statement and per-request chatter from the storage and webhook stacks
_QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite", "httpx", "httpcore")


def _record_time(created: float) -> str:
    return to_timestamp_iso(datetime.fromtimestamp(created, tz=timezone.utc))


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": _record_time(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        error = record.exc_info[1] if record.exc_info else None
        if error is not None:
            entry["exception"] = {"type": type(error).__name__, "message": str(error)}
        context = {key: value for key, value in vars(record).items() if key.startswith(CONTEXT_PREFIX)}
        if context:
            entry["context"] = context
        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO", stream: Optional[IO[str]] = None) -> bool:
    """Install the JSON handler on the root logger; False when one is already installed."""
    root = logging.getLogger()
    if root.handlers:
        return False

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return True


def log_context(**fields: object) -> dict[str, object]:
    """Build a logging ``extra`` mapping; ``None`` fields are left out."""
    return {f"{CONTEXT_PREFIX}{key}": value for key, value in fields.items() if value is not None}
