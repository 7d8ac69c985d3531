from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from planner.db import Store
from planner.errors import NotFoundError, RecordValidationError
from planner.ids import create_id
from planner.logging_config import log_context
from planner.records import PlanDay, SessionSummary, Workout, WorkoutType
from planner.validators import WorkoutInput, field_errors

logger = logging.getLogger(__name__)

DEFAULT_WORKOUT_TYPE = "lift"

DEFAULT_WORKOUT_TYPES: tuple[WorkoutType, ...] = (
    WorkoutType(id="lift", name="Lift", color="#ef476f"),
    WorkoutType(id="run", name="Run", color="#118ab2"),
    WorkoutType(id="yoga", name="Yoga", color="#06d6a0"),
    WorkoutType(id="mobility", name="Mobility", color="#ffd166"),
    WorkoutType(id="cardio", name="Cardio", color="#8d99ae"),
    WorkoutType(id="strength", name="Strength", color="#f78c6b"),
)

# checked in order; first keyword found in the day label wins
_LABEL_KEYWORDS = ("yoga", "run", "cardio", "mobility")


def infer_workout_type(plan_day: Optional[PlanDay]) -> str:
    if plan_day is None:
        return DEFAULT_WORKOUT_TYPE
    label = plan_day.label.lower()
    for keyword in _LABEL_KEYWORDS:
        if keyword in label:
            return keyword
    return DEFAULT_WORKOUT_TYPE


def _workout_input(data: Union[WorkoutInput, Mapping[str, Any]]) -> WorkoutInput:
    if isinstance(data, WorkoutInput):
        return data
    try:
        return WorkoutInput.model_validate(dict(data))
    except ValidationError as exc:
        raise RecordValidationError("workouts", field_errors(exc)) from exc


async def add_workout(
    store: Store,
    data: Union[WorkoutInput, Mapping[str, Any]],
    *,
    scheduled_session_id: Optional[str] = None,
    session_summary: Optional[SessionSummary] = None,
) -> Workout:
    fields = _workout_input(data)
    now = store.now_iso()
    workout = Workout(
        id=create_id("workout"),
        created_at=now,
        updated_at=now,
        scheduled_session_id=scheduled_session_id,
        session_summary=session_summary,
        **fields.model_dump(),
    )
    await store.workouts.insert(workout)
    logger.info(
        "workout_added",
        extra=log_context(workout_id=workout.id, date=workout.date, scheduled_session_id=scheduled_session_id),
    )
    return workout


async def update_workout(store: Store, workout_id: str, data: Union[WorkoutInput, Mapping[str, Any]]) -> Workout:
    """Overwrite the editable fields; session link and summary are left alone."""
    fields = _workout_input(data)
    if not await store.workouts.has(workout_id):
        raise NotFoundError("Workout not found.")
    workout = await store.workouts.update(workout_id, updated_at=store.now_iso(), **fields.model_dump())
    logger.info("workout_updated", extra=log_context(workout_id=workout_id))
    return workout


async def delete_workout(store: Store, workout_id: str) -> bool:
    """Delete a workout; a session it was logged against goes back to planned."""
    workout = await store.workouts.get(workout_id)
    if workout is None:
        return False

    await store.workouts.delete(workout_id)

    session_id = workout.scheduled_session_id
    if session_id and await store.scheduled_sessions.has(session_id):
        await store.scheduled_sessions.update(session_id, status="planned", workout_id=None)

    logger.info("workout_deleted", extra=log_context(workout_id=workout_id, reset_session_id=session_id))
    return True


async def ensure_default_workout_types(store: Store) -> int:
    existing = await store.workout_types.keys()
    missing = [t for t in DEFAULT_WORKOUT_TYPES if t.id not in existing]
    if missing:
        await store.workout_types.insert(missing)
        logger.info("workout_types_seeded", extra=log_context(count=len(missing)))
    return len(missing)
