from __future__ import annotations

from uuid import uuid4

SESSION_ID_SEPARATOR = "_"


def create_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex}"


def scheduled_session_id(template_id: str, plan_day_id: str, date: str) -> str:
    """Deterministic session id: the same template, day and date always map to the same slot."""
    return SESSION_ID_SEPARATOR.join((template_id, plan_day_id, date))
