"""Materializes template plan days into dated scheduled sessions.

Generation is idempotent because session ids are a pure function of
template, plan day and date: re-running over an overlapping window only
inserts the slots that are still missing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from planner.dates import date_range, iso_weekday
from planner.db import Store
from planner.errors import NotFoundError
from planner.ids import scheduled_session_id
from planner.logging_config import log_context
from planner.records import ScheduledSession
from planner.services.cascade import remove_sessions
from planner.services.templates import get_template_days
from planner.validators import require_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApplyResult:
    inserted: int
    removed: int


async def generate_schedule_for_range(store: Store, template_id: str, from_date: str, to_date: str) -> int:
    start = require_date(from_date, "Start date is required.")
    end = require_date(to_date, "End date is required.")

    template = await store.plan_templates.get(template_id)
    if template is None:
        return 0

    effective_start = max(template.start_date, start)
    effective_end = min(template.end_date, end) if template.end_date else end
    if effective_start > effective_end:
        return 0

    days = await get_template_days(store, template_id)
    if not days:
        return 0

    existing = await store.scheduled_sessions.keys()
    to_insert: list[ScheduledSession] = []
    for day_iso in date_range(effective_start, effective_end):
        weekday = iso_weekday(day_iso)
        for day in days:
            if day.weekday != weekday:
                continue
            session_id = scheduled_session_id(template_id, day.id, day_iso)
            if session_id in existing:
                continue
            existing.add(session_id)
            to_insert.append(
                ScheduledSession(id=session_id, template_id=template_id, plan_day_id=day.id, date=day_iso)
            )

    if to_insert:
        await store.scheduled_sessions.insert(to_insert)
    logger.info(
        "schedule_generated",
        extra=log_context(
            template_id=template_id, start=effective_start, end=effective_end, inserted=len(to_insert)
        ),
    )
    return len(to_insert)


async def apply_template_to_calendar(
    store: Store,
    template_id: str,
    start_date: str,
    to_date: str,
    start_plan_day_id: Optional[str] = None,
) -> ApplyResult:
    """Re-anchor a template at ``start_date`` and rebuild its open sessions.

    With ``start_plan_day_id`` the weekly pattern is rotated so that day lands
    on ``start_date``'s weekday. Sessions that already carry a workout are kept.
    """
    start = require_date(start_date, "Template start date is required.")
    end = require_date(to_date, "End date is required.")
    template = await store.plan_templates.get(template_id)
    if template is None:
        return ApplyResult(inserted=0, removed=0)

    days = await get_template_days(store, template_id)
    if not days:
        return ApplyResult(inserted=0, removed=0)

    if start_plan_day_id:
        anchor = next((d for d in days if d.id == start_plan_day_id), None)
        if anchor is None:
            raise NotFoundError("Template day to start from was not found.")
        offset = iso_weekday(start) - anchor.weekday
        if offset:
            for day in days:
                shifted = (day.weekday - 1 + offset + 7) % 7 + 1
                await store.plan_days.update(day.id, weekday=shifted)

    open_sessions = [
        s for s in await store.scheduled_sessions.filter_by(template_id=template_id) if not s.workout_id
    ]
    removed = (await remove_sessions(store, open_sessions)).sessions_deleted

    await store.plan_templates.update(template_id, start_date=start, end_date=None, updated_at=store.now_iso())
    inserted = await generate_schedule_for_range(store, template_id, start, end)
    logger.info(
        "template_applied",
        extra=log_context(template_id=template_id, start=start, inserted=inserted, removed=removed),
    )
    return ApplyResult(inserted=inserted, removed=removed)
