from __future__ import annotations

import contextvars
import logging
import time
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

from planner.logging_config import log_context, setup_logging

_request_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("request_id", default=None)
_logging_configured = False


def get_request_id() -> Optional[str]:
    return _request_id_var.get()


def set_request_id(value: Optional[str]):
    return _request_id_var.set(value)


def reset_request_id(token) -> None:
    _request_id_var.reset(token)


def new_request_id() -> str:
    return uuid4().hex


class RequestIdFilter(logging.Filter):
    """Stamps the current request id onto every record as ``ctx_request_id``."""

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = get_request_id()
        if request_id and not hasattr(record, "ctx_request_id"):
            record.ctx_request_id = request_id
        return True


def configure_logging(level: str = "INFO") -> None:
    global _logging_configured
    if _logging_configured:
        return

    setup_logging(level)
    root = logging.getLogger()
    for handler in root.handlers:
        handler.addFilter(RequestIdFilter())

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(logger_name)
        logger.handlers.clear()
        logger.propagate = True

    _logging_configured = True


def request_log_fields(*, method: str, path: str, status_code: int, duration_ms: float, client_ip: Optional[str]) -> dict[str, object]:
    return log_context(
        method=method,
        path=path,
        status_code=int(status_code),
        duration_ms=round(float(duration_ms), 2),
        client_ip=client_ip or "",
    )


def monotonic_ms() -> float:
    return time.perf_counter() * 1000.0


@dataclass
class StatusStrip:
    status: str
    message: str


def system_status(samples: int, slow_queries: int) -> StatusStrip:
    if samples < 5:
        return StatusStrip("OK", f"Warmup ({samples} samples)")
    if slow_queries > 10:
        return StatusStrip("WARN", "Slow query threshold exceeded")
    return StatusStrip("OK", "Nominal")
