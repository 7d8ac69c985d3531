"""Tests for record validation and template input normalization."""

from __future__ import annotations

import pytest

from planner.errors import InvalidInputError
from planner.records import PlannedWorkout, ScheduledSession, SessionPlan, Workout
from planner.validators import (
    PLACEHOLDER_EXERCISE_NAME,
    WorkoutInput,
    normalize_template_days,
    positive_int_or_none,
    require_date,
    require_text,
    validate_record,
)


def test_validate_record_accepts_camel_case_mapping():
    result = validate_record(
        PlannedWorkout, {"type": "run", "durationMin": 30, "distanceKm": 5.5, "intensity": "low"}
    )
    assert result.ok
    assert result.value.duration_min == 30
    assert result.value.to_wire() == {"type": "run", "durationMin": 30, "distanceKm": 5.5, "intensity": "low"}


def test_validate_record_collects_field_errors():
    result = validate_record(PlannedWorkout, {"type": "", "durationMin": 0, "intensity": "extreme"})
    assert not result.ok
    assert result.value is None
    assert len(result.errors) == 3


def test_workout_notes_length_capped():
    base = {
        "id": "w",
        "date": "2024-01-01",
        "type": "lift",
        "durationMin": 30,
        "createdAt": "2024-01-01T00:00:00.000Z",
        "updatedAt": "2024-01-01T00:00:00.000Z",
    }
    assert validate_record(Workout, {**base, "notes": "x" * 1000}).ok
    assert not validate_record(Workout, {**base, "notes": "x" * 1001}).ok


def test_session_workout_link_requires_completed_status():
    base = {"id": "s", "templateId": "t", "planDayId": "d", "date": "2024-01-01"}
    assert validate_record(ScheduledSession, {**base, "status": "completed", "workoutId": "w"}).ok
    assert not validate_record(ScheduledSession, {**base, "status": "completed"}).ok
    assert not validate_record(ScheduledSession, {**base, "status": "planned", "workoutId": "w"}).ok


def test_session_plan_keyed_by_session():
    base = {"title": "Upper", "updatedAt": "2024-01-01T00:00:00.000Z"}
    assert validate_record(SessionPlan, {**base, "id": "s", "sessionId": "s"}).ok
    assert not validate_record(SessionPlan, {**base, "id": "s", "sessionId": "other"}).ok


def test_unparseable_date_rejected():
    result = validate_record(ScheduledSession, {"id": "s", "templateId": "t", "planDayId": "d", "date": "31/12/2024"})
    assert not result.ok


def test_require_helpers():
    assert require_text("  Push day ", "name required") == "Push day"
    with pytest.raises(InvalidInputError, match="name required"):
        require_text("   ", "name required")
    assert require_date("2024-2-9", "date required") == "2024-02-09"
    with pytest.raises(InvalidInputError, match="date required"):
        require_date("", "date required")
    with pytest.raises(InvalidInputError):
        require_date("tomorrow", "date required")


def test_positive_int_or_none():
    assert positive_int_or_none(8.9) == 8
    assert positive_int_or_none(0) is None
    assert positive_int_or_none(-3) is None
    assert positive_int_or_none(float("nan")) is None
    assert positive_int_or_none(None) is None


def test_normalize_template_days_clamps_and_fills():
    days = normalize_template_days(
        [
            {"weekday": 9.7, "label": "  ", "exercises": []},
            {
                "weekday": 0,
                "label": "Legs",
                "exercises": [{"name": "", "sets": -2, "minReps": 0, "maxReps": 8.9, "restSecDefault": 60}],
            },
        ]
    )
    assert [d.weekday for d in days] == [1, 7]

    legs, fallback = days
    assert legs.label == "Legs"
    [exercise] = legs.exercises
    assert exercise.name == PLACEHOLDER_EXERCISE_NAME
    assert exercise.sets == 1
    assert exercise.min_reps is None
    assert exercise.max_reps == 8
    assert exercise.rest_sec_default == 60

    assert fallback.label == "Workout day 7"
    [placeholder] = fallback.exercises
    assert (placeholder.name, placeholder.sets, placeholder.rest_sec_default) == ("Exercise", 3, 90)


def test_normalize_template_days_rejects_bad_shapes():
    with pytest.raises(InvalidInputError):
        normalize_template_days([{"label": "no weekday"}])
    with pytest.raises(InvalidInputError):
        normalize_template_days([{"weekday": float("inf"), "label": "x"}])


def test_workout_input_canonicalizes_date():
    assert WorkoutInput(date="2024-3-1", type="run", duration_min=20).date == "2024-03-01"
