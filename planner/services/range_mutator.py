"""Bulk clearing of history and schedule on one side of a cutoff date.

Completed sessions and the workouts they name are history and always
survive. After a clear, template windows are narrowed to the cutoff so a
later regeneration does not refill the cleared range.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal

from planner.db import Store
from planner.logging_config import log_context
from planner.services.cascade import remove_sessions
from planner.validators import require_date

logger = logging.getLogger(__name__)

Direction = Literal["after", "before"]


@dataclass(frozen=True)
class ClearResult:
    workouts_deleted: int = 0
    sessions_deleted: int = 0


def _in_range(cutoff: str, direction: Direction) -> Callable[[str], bool]:
    # stored dates are canonical YYYY-MM-DD, so string order is calendar order
    if direction == "after":
        return lambda value: value > cutoff
    return lambda value: value < cutoff


async def _narrow_templates(store: Store, cutoff: str, direction: Direction) -> int:
    narrowed = 0
    for template in await store.plan_templates.all():
        if direction == "after" and (template.end_date is None or template.end_date > cutoff):
            await store.plan_templates.update(template.id, end_date=cutoff, updated_at=store.now_iso())
            narrowed += 1
        elif direction == "before" and template.start_date < cutoff:
            await store.plan_templates.update(template.id, start_date=cutoff, updated_at=store.now_iso())
            narrowed += 1
    return narrowed


async def _clear_by_date(store: Store, date: str, direction: Direction) -> ClearResult:
    cutoff = require_date(date, "Date is required.")
    in_range = _in_range(cutoff, direction)

    sessions = await store.scheduled_sessions.all()
    kept_workout_ids = {s.workout_id for s in sessions if s.status == "completed" and s.workout_id}
    doomed_sessions = [s for s in sessions if in_range(s.date) and s.status != "completed"]
    doomed_workouts = [
        w.id for w in await store.workouts.all() if in_range(w.date) and w.id not in kept_workout_ids
    ]

    workouts_deleted = await store.workouts.delete(doomed_workouts)
    removal = await remove_sessions(store, doomed_sessions)
    narrowed = await _narrow_templates(store, cutoff, direction)

    logger.info(
        "range_cleared",
        extra=log_context(
            direction=direction,
            cutoff=cutoff,
            workouts_deleted=workouts_deleted,
            sessions_deleted=removal.sessions_deleted,
            workouts_detached=removal.workouts_detached,
            templates_narrowed=narrowed,
        ),
    )
    return ClearResult(workouts_deleted=workouts_deleted, sessions_deleted=removal.sessions_deleted)


async def clear_data_after_date(store: Store, date: str) -> ClearResult:
    return await _clear_by_date(store, date, "after")


async def clear_data_before_date(store: Store, date: str) -> ClearResult:
    return await _clear_by_date(store, date, "before")


async def clear_all_uncompleted_sessions(store: Store) -> ClearResult:
    sessions = [s for s in await store.scheduled_sessions.all() if s.status != "completed"]
    removal = await remove_sessions(store, sessions)
    logger.info(
        "uncompleted_sessions_cleared",
        extra=log_context(sessions_deleted=removal.sessions_deleted, workouts_detached=removal.workouts_detached),
    )
    return ClearResult(sessions_deleted=removal.sessions_deleted)
