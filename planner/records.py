"""Record types stored in the persisted collections.

Attributes are snake_case in Python and camelCase on the wire (snapshot
documents, HTTP payloads).
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from planner.dates import normalize_date_iso

SessionStatus = Literal["planned", "in_progress", "completed", "skipped"]
Intensity = Literal["low", "medium", "high"]


def _canonical_date(value: Any) -> str:
    normalized = normalize_date_iso(value)
    if normalized is None:
        raise ValueError("must be a YYYY-MM-DD date")
    return normalized


IsoDate = Annotated[str, BeforeValidator(_canonical_date)]


class Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        """camelCase mapping with absent optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class WorkoutType(Record):
    id: str = Field(min_length=1)
    name: str
    color: str


class SetLog(Record):
    exercise_id: str
    exercise_name: Optional[str] = None
    set_index: int = Field(ge=0)
    target_reps: Optional[int] = Field(default=None, gt=0)
    actual_reps: Optional[int] = Field(default=None, ge=0)
    weight_kg: Optional[float] = Field(default=None, ge=0)
    rest_sec_used: int = Field(ge=0)


class SessionSummary(Record):
    started_at: str
    ended_at: str
    total_duration_min: float = Field(ge=0)
    set_logs: list[SetLog] = Field(default_factory=list)


class Workout(Record):
    id: str = Field(min_length=1)
    date: IsoDate
    type: str = Field(min_length=1)
    duration_min: int = Field(gt=0)
    target_weight_kg: Optional[float] = Field(default=None, gt=0)
    distance_km: Optional[float] = Field(default=None, gt=0)
    intensity: Optional[Intensity] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    created_at: str
    updated_at: str
    scheduled_session_id: Optional[str] = None
    session_summary: Optional[SessionSummary] = None


class PlanTemplate(Record):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    start_date: IsoDate
    end_date: Optional[IsoDate] = None
    locale: str = "en"
    is_starter: bool = False
    created_at: str
    updated_at: str


class PlanDay(Record):
    id: str = Field(min_length=1)
    template_id: str
    weekday: int = Field(ge=1, le=7)
    label: str


class ExerciseTemplate(Record):
    id: str = Field(min_length=1)
    plan_day_id: str
    name: str
    sets: int = Field(gt=0)
    min_reps: Optional[int] = Field(default=None, gt=0)
    max_reps: Optional[int] = Field(default=None, gt=0)
    rest_sec_default: Optional[int] = Field(default=None, gt=0)
    target_mass_kg: Optional[float] = Field(default=None, gt=0)
    # order within the plan day
    position: int = Field(default=0, ge=0)


class PlannedWorkout(Record):
    type: str = Field(min_length=1)
    duration_min: int = Field(gt=0)
    target_weight_kg: Optional[float] = Field(default=None, gt=0)
    distance_km: Optional[float] = Field(default=None, gt=0)
    intensity: Optional[Intensity] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


class ScheduledSession(Record):
    id: str = Field(min_length=1)
    template_id: str
    plan_day_id: str
    date: IsoDate
    status: SessionStatus = "planned"
    workout_id: Optional[str] = None
    planned_workout: Optional[PlannedWorkout] = None

    @model_validator(mode="after")
    def _workout_link_matches_status(self):
        if (self.workout_id is not None) != (self.status == "completed"):
            raise ValueError("workout_id must be set exactly when status is completed")
        return self


class ActiveSessionDraft(Record):
    session_id: str = Field(min_length=1)
    started_at: str
    current_exercise_index: int = Field(default=0, ge=0)
    current_set_index: int = Field(default=0, ge=0)
    set_logs: list[SetLog] = Field(default_factory=list)
    rest_end_at: Optional[str] = None
    timer_paused: bool = True
    timer_remaining_sec: Optional[int] = Field(default=None, ge=0)
    updated_at: str


class SessionExercisePlan(Record):
    id: str
    name: str
    sets: int = Field(gt=0)
    min_reps: Optional[int] = Field(default=None, gt=0)
    max_reps: Optional[int] = Field(default=None, gt=0)
    rest_sec_default: Optional[int] = Field(default=None, gt=0)
    target_mass_kg: Optional[float] = Field(default=None, gt=0)


class SessionPlan(Record):
    id: str = Field(min_length=1)
    session_id: str
    title: str
    notes: Optional[str] = None
    exercises: list[SessionExercisePlan] = Field(default_factory=list)
    updated_at: str

    @model_validator(mode="after")
    def _keyed_by_session(self):
        if self.id != self.session_id:
            raise ValueError("id must equal session_id")
        return self
