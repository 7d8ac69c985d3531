"""Shared removal of scheduled sessions and everything hanging off them.

Order is fixed: referencing workouts are detached first, then drafts, session
plans, and finally the sessions. Each step commits on its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from planner.db import Store
from planner.records import ScheduledSession, Workout


@dataclass(frozen=True)
class RemovalResult:
    sessions_deleted: int = 0
    workouts_detached: int = 0


async def detach_workouts(store: Store, workouts: Iterable[Workout]) -> int:
    detached = 0
    for workout in workouts:
        await store.workouts.update(workout.id, scheduled_session_id=None, updated_at=store.now_iso())
        detached += 1
    return detached


async def workouts_linked_to(store: Store, session_ids: set[str]) -> list[Workout]:
    if not session_ids:
        return []
    return [w for w in await store.workouts.all() if w.scheduled_session_id in session_ids]


async def remove_sessions(store: Store, sessions: Iterable[ScheduledSession]) -> RemovalResult:
    """Delete sessions with their drafts and plans; workouts pointing at them survive, detached."""
    session_ids = {s.id for s in sessions}
    if not session_ids:
        return RemovalResult()

    detached = await detach_workouts(store, await workouts_linked_to(store, session_ids))
    await store.active_session_drafts.delete(session_ids)
    await store.session_plans.delete(session_ids)
    deleted = await store.scheduled_sessions.delete(session_ids)
    return RemovalResult(sessions_deleted=deleted, workouts_detached=detached)
