from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from planner.records import PlannedWorkout, SessionExercisePlan, SessionSummary, SetLog
from planner.validators import TemplateDayInput


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TemplateInput(ApiModel):
    name: str = ""
    start_date: str = ""
    locale: Optional[str] = None
    days: list[TemplateDayInput] = Field(default_factory=list)


class GenerateScheduleInput(ApiModel):
    template_id: str
    from_date: str
    # defaults to from_date + the configured horizon
    to_date: Optional[str] = None


class ApplyTemplateInput(ApiModel):
    start_date: str
    to_date: Optional[str] = None
    start_plan_day_id: Optional[str] = None


class DateInput(ApiModel):
    date: str


class CompleteSessionInput(ApiModel):
    summary: SessionSummary
    notes: Optional[str] = None


class ManualWorkoutInput(ApiModel):
    date: str
    planned_workout: PlannedWorkout


class DraftUpdateInput(ApiModel):
    current_exercise_index: Optional[int] = Field(default=None, ge=0)
    current_set_index: Optional[int] = Field(default=None, ge=0)
    set_logs: Optional[list[SetLog]] = None


class RestActionInput(ApiModel):
    action: Literal["start", "pause", "resume", "extend"]
    seconds: Optional[int] = Field(default=None, ge=0)


class SessionPlanInput(ApiModel):
    title: str
    notes: Optional[str] = None
    exercises: list[SessionExercisePlan] = Field(default_factory=list)


class SwapExerciseInput(ApiModel):
    index: int = Field(ge=0)
    name: str


class MoveSessionOut(ApiModel):
    session_id: str


class CountOut(ApiModel):
    count: int


class ApplyResultOut(ApiModel):
    inserted: int
    removed: int


class ClearResultOut(ApiModel):
    workouts_deleted: int = 0
    sessions_deleted: int = 0


class DeletedOut(ApiModel):
    deleted: bool


class HealthOut(ApiModel):
    status: str
    message: str
    app_env: str
    query_samples: int
    slow_queries: int
    p95_ms: float


class ImportedOut(ApiModel):
    imported: bool


class SnapshotReplacedOut(ApiModel):
    exported_at: str
    records: int
