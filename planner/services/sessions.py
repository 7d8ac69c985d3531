"""Scheduled session lifecycle: planned -> in_progress -> completed | skipped.

Reset and move produce a fresh planned record rather than re-entering an
earlier state. Multi-collection steps run sequentially in a fixed order; a
failed ``move`` is not idempotent and must be retried by the caller.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence, Union

from planner.dates import add_days_iso
from planner.db import Store
from planner.errors import InvalidInputError, NotFoundError, RecordValidationError, SessionStateError, SlotOccupiedError
from planner.ids import scheduled_session_id
from planner.logging_config import log_context
from planner.records import (
    ActiveSessionDraft,
    PlanDay,
    PlannedWorkout,
    ScheduledSession,
    SessionExercisePlan,
    SessionPlan,
    SessionStatus,
    SessionSummary,
    Workout,
)
from planner.services.cascade import detach_workouts, workouts_linked_to
from planner.services.notifications import Notifier, SkippedSessionNotice, send_skipped_notice
from planner.services.templates import get_day_exercises
from planner.services.workouts import add_workout, delete_workout, infer_workout_type
from planner.validators import require_date, require_text, validate_record

logger = logging.getLogger(__name__)

MANUAL_TEMPLATE_ID = "manual_plan_template"
MANUAL_PLAN_DAY_ID = "manual_plan_day"
MANUAL_PLAN_DAY_LABEL = "Planned workout"

MIN_ESTIMATED_DURATION_MIN = 20
MINUTES_PER_LOGGED_SET = 3
FALLBACK_REST_SEC = 75

DraftUpdater = Callable[[ActiveSessionDraft], ActiveSessionDraft]
PlanUpdater = Callable[[SessionPlan], SessionPlan]


class _Prescribed(Protocol):
    sets: int
    rest_sec_default: Optional[int]


def estimate_duration_min(exercises: Sequence[_Prescribed], summary: SessionSummary) -> int:
    """Explicit duration when logged, otherwise the larger of a per-set and a rest-time projection."""
    if summary.total_duration_min > 0:
        return max(1, math.floor(summary.total_duration_min + 0.5))
    from_sets = max(MIN_ESTIMATED_DURATION_MIN, len(summary.set_logs) * MINUTES_PER_LOGGED_SET)
    from_rest = sum(ex.sets * math.ceil((ex.rest_sec_default or FALLBACK_REST_SEC) / 60) for ex in exercises)
    return max(from_sets, from_rest)


async def _require_session(store: Store, session_id: str) -> ScheduledSession:
    session = await store.scheduled_sessions.get(session_id)
    if session is None:
        raise NotFoundError("Scheduled session not found.")
    return session


def _coerce(schema, data: Any, collection: str):
    if isinstance(data, schema):
        return data
    result = validate_record(schema, data)
    if not result.ok:
        raise RecordValidationError(collection, list(result.errors))
    return result.value


async def update_session_status(
    store: Store, session_id: str, status: SessionStatus, workout_id: Optional[str] = None
) -> ScheduledSession:
    if not await store.scheduled_sessions.has(session_id):
        raise NotFoundError("Scheduled session not found.")
    return await store.scheduled_sessions.update(session_id, status=status, workout_id=workout_id)


async def begin_session(store: Store, session_id: str) -> ActiveSessionDraft:
    """Open (or resume) the guided draft for a session."""
    session = await _require_session(store, session_id)
    if session.status == "completed":
        raise SessionStateError("Session is already completed.")

    draft = await store.active_session_drafts.get(session_id)
    resumed = draft is not None
    if draft is None:
        now = store.now_iso()
        draft = ActiveSessionDraft(session_id=session_id, started_at=now, updated_at=now)
        await store.active_session_drafts.insert(draft)

    if session.status != "in_progress":
        await store.scheduled_sessions.update(session_id, status="in_progress")
    logger.info("session_begun", extra=log_context(session_id=session_id, resumed=resumed))
    return draft


async def save_draft(store: Store, session_id: str, updater: DraftUpdater) -> Optional[ActiveSessionDraft]:
    current = await store.active_session_drafts.get(session_id)
    if current is None:
        return None
    nxt = updater(current)
    return await store.active_session_drafts.update(
        session_id,
        current_exercise_index=nxt.current_exercise_index,
        current_set_index=nxt.current_set_index,
        set_logs=nxt.set_logs,
        rest_end_at=nxt.rest_end_at,
        timer_paused=nxt.timer_paused,
        timer_remaining_sec=nxt.timer_remaining_sec,
        updated_at=store.now_iso(),
    )


async def complete_session(
    store: Store,
    session_id: str,
    summary: Union[SessionSummary, Mapping[str, Any]],
    notes: Optional[str] = None,
) -> Workout:
    session = await _require_session(store, session_id)
    if session.status == "completed":
        raise SessionStateError("Session is already completed.")
    summary = _coerce(SessionSummary, summary, "session_summary")

    plan = await store.session_plans.get(session.id)
    exercises = plan.exercises if plan else await get_day_exercises(store, session.plan_day_id)
    planned = session.planned_workout

    if planned is not None:
        workout_type = planned.type
        duration = planned.duration_min
    else:
        workout_type = infer_workout_type(await store.plan_days.get(session.plan_day_id))
        duration = estimate_duration_min(exercises, summary)

    if notes is None:
        notes = planned.notes if planned and planned.notes is not None else (plan.notes if plan else None)

    workout = await add_workout(
        store,
        {
            "date": session.date,
            "type": workout_type,
            "duration_min": duration,
            "target_weight_kg": planned.target_weight_kg if planned else None,
            "distance_km": planned.distance_km if planned else None,
            "intensity": planned.intensity if planned else None,
            "notes": notes,
        },
        scheduled_session_id=session.id,
        session_summary=summary,
    )
    await store.scheduled_sessions.update(session.id, status="completed", workout_id=workout.id)
    await store.active_session_drafts.delete(session.id)
    logger.info(
        "session_completed",
        extra=log_context(session_id=session.id, workout_id=workout.id, duration_min=workout.duration_min),
    )
    return workout


async def skip_session(store: Store, session_id: str, notifier: Optional[Notifier] = None) -> ScheduledSession:
    session = await _require_session(store, session_id)
    if session.status == "completed":
        raise SessionStateError("Completed sessions cannot be skipped; reset it first.")

    updated = await store.scheduled_sessions.update(session_id, status="skipped", workout_id=None)
    await store.active_session_drafts.delete(session_id)
    logger.info("session_skipped", extra=log_context(session_id=session_id))

    if notifier is not None:
        day = await store.plan_days.get(session.plan_day_id)
        notice = SkippedSessionNotice(
            session_id=session_id,
            date=session.date,
            label=day.label if day else MANUAL_PLAN_DAY_LABEL,
            next_date=add_days_iso(session.date, 1),
        )
        await send_skipped_notice(notifier, notice)
    return updated


async def reset_session(store: Store, session_id: str) -> Optional[ScheduledSession]:
    """Put a session back to planned, deleting the workout it produced; missing ids are ignored."""
    session = await store.scheduled_sessions.get(session_id)
    await store.active_session_drafts.delete(session_id)
    if session is None:
        return None

    if session.workout_id:
        await delete_workout(store, session.workout_id)
    # the workout may not link back to this session
    await store.scheduled_sessions.update(session_id, status="planned", workout_id=None)
    logger.info("session_reset", extra=log_context(session_id=session_id))
    return await store.scheduled_sessions.get(session_id)


async def move_session(store: Store, session_id: str, next_date: str) -> str:
    target = require_date(next_date, "Date is required.")
    session = await _require_session(store, session_id)
    if session.date == target:
        return session_id

    new_id = scheduled_session_id(session.template_id, session.plan_day_id, target)
    if await store.scheduled_sessions.has(new_id):
        raise SlotOccupiedError("A session already exists for that day.")

    moved = session.model_copy(update={"id": new_id, "date": target, "status": "planned", "workout_id": None})
    await store.scheduled_sessions.insert(moved)
    await detach_workouts(store, await workouts_linked_to(store, {session_id}))
    await store.scheduled_sessions.delete(session_id)
    await store.active_session_drafts.delete(session_id)

    plan = await store.session_plans.get(session_id)
    if plan is not None:
        rekeyed = plan.model_copy(update={"id": new_id, "session_id": new_id, "updated_at": store.now_iso()})
        await store.session_plans.insert(rekeyed)
        await store.session_plans.delete(session_id)

    logger.info("session_moved", extra=log_context(session_id=session_id, new_session_id=new_id, date=target))
    return new_id


async def duplicate_session(store: Store, session_id: str, next_date: str) -> ScheduledSession:
    target = require_date(next_date, "Date is required.")
    session = await _require_session(store, session_id)

    new_id = scheduled_session_id(session.template_id, session.plan_day_id, target)
    if await store.scheduled_sessions.has(new_id):
        raise SlotOccupiedError("A session already exists for that day.")

    copy = session.model_copy(update={"id": new_id, "date": target, "status": "planned", "workout_id": None})
    [copy] = await store.scheduled_sessions.insert(copy)

    plan = await store.session_plans.get(session_id)
    if plan is not None:
        await store.session_plans.insert(
            plan.model_copy(update={"id": new_id, "session_id": new_id, "updated_at": store.now_iso()})
        )
    logger.info("session_duplicated", extra=log_context(session_id=session_id, new_session_id=new_id))
    return copy


async def _ensure_manual_plan_day(store: Store) -> PlanDay:
    day = await store.plan_days.get(MANUAL_PLAN_DAY_ID)
    if day is None:
        day = PlanDay(id=MANUAL_PLAN_DAY_ID, template_id=MANUAL_TEMPLATE_ID, weekday=1, label=MANUAL_PLAN_DAY_LABEL)
        await store.plan_days.insert(day)
    return day


async def plan_manual_workout(
    store: Store, date: str, planned: Union[PlannedWorkout, Mapping[str, Any]]
) -> ScheduledSession:
    """Schedule an ad-hoc workout outside any template; completion uses ``planned`` verbatim."""
    target = require_date(date, "Date is required.")
    planned = _coerce(PlannedWorkout, planned, "scheduled_sessions")
    await _ensure_manual_plan_day(store)

    session_id = scheduled_session_id(MANUAL_TEMPLATE_ID, MANUAL_PLAN_DAY_ID, target)
    if await store.scheduled_sessions.has(session_id):
        raise SlotOccupiedError("A planned workout already exists for that day.")

    [session] = await store.scheduled_sessions.insert(
        ScheduledSession(
            id=session_id,
            template_id=MANUAL_TEMPLATE_ID,
            plan_day_id=MANUAL_PLAN_DAY_ID,
            date=target,
            planned_workout=planned,
        )
    )
    logger.info("manual_workout_planned", extra=log_context(session_id=session_id, type=planned.type))
    return session


# -- per-session plan overrides --


def _to_exercise_plan(exercise) -> SessionExercisePlan:
    return SessionExercisePlan(
        id=exercise.id,
        name=exercise.name,
        sets=exercise.sets,
        min_reps=exercise.min_reps,
        max_reps=exercise.max_reps,
        rest_sec_default=exercise.rest_sec_default,
        target_mass_kg=exercise.target_mass_kg,
    )


async def get_or_create_session_plan(store: Store, session_id: str) -> SessionPlan:
    existing = await store.session_plans.get(session_id)
    if existing is not None:
        return existing

    session = await _require_session(store, session_id)
    day = await store.plan_days.get(session.plan_day_id)
    exercises = await get_day_exercises(store, session.plan_day_id)
    plan = SessionPlan(
        id=session_id,
        session_id=session_id,
        title=day.label if day else MANUAL_PLAN_DAY_LABEL,
        exercises=[_to_exercise_plan(ex) for ex in exercises],
        updated_at=store.now_iso(),
    )
    [plan] = await store.session_plans.insert(plan)
    return plan


async def update_session_plan(store: Store, session_id: str, updater: PlanUpdater) -> SessionPlan:
    current = await get_or_create_session_plan(store, session_id)
    nxt = updater(current)
    return await store.session_plans.update(
        session_id,
        title=nxt.title,
        notes=nxt.notes,
        exercises=nxt.exercises,
        updated_at=store.now_iso(),
    )


async def swap_exercise_variant(store: Store, session_id: str, exercise_index: int, name: str) -> SessionPlan:
    """Rename one exercise in this session's plan only; the template is untouched."""
    variant = require_text(name, "Exercise name is required.")
    plan = await get_or_create_session_plan(store, session_id)
    if not 0 <= exercise_index < len(plan.exercises):
        raise InvalidInputError(f"No exercise at position {exercise_index}.")

    def rename(current: SessionPlan) -> SessionPlan:
        exercises = list(current.exercises)
        exercises[exercise_index] = exercises[exercise_index].model_copy(update={"name": variant})
        return current.model_copy(update={"exercises": exercises})

    return await update_session_plan(store, session_id, rename)
