"""Validation for records at collection write boundaries and for command inputs."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Generic, Iterable, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from planner.dates import normalize_date_iso
from planner.errors import FieldError, InvalidInputError
from planner.records import Intensity, Record

R = TypeVar("R", bound=Record)

PLACEHOLDER_EXERCISE_NAME = "Exercise"
PLACEHOLDER_EXERCISE_SETS = 3
PLACEHOLDER_EXERCISE_REST_SEC = 90


@dataclass(frozen=True)
class Validation(Generic[R]):
    """Either a validated record or the field errors that rejected it."""

    value: Optional[R] = None
    errors: tuple[FieldError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


def field_errors(exc: ValidationError) -> list[FieldError]:
    out = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "__root__"
        out.append(FieldError(loc, err.get("msg", "invalid value")))
    return out


def validate_record(schema: type[R], data: Any) -> Validation[R]:
    """Validate a record (model or mapping) against its schema without raising."""
    if isinstance(data, BaseModel):
        data = data.model_dump()
    try:
        return Validation(value=schema.model_validate(data))
    except ValidationError as exc:
        return Validation(errors=tuple(field_errors(exc)))


def require_text(value: Optional[str], message: str) -> str:
    text = (value or "").strip()
    if not text:
        raise InvalidInputError(message)
    return text


def require_date(value: Optional[str], message: str) -> str:
    if not (value or "").strip():
        raise InvalidInputError(message)
    normalized = normalize_date_iso(value)
    if normalized is None:
        raise InvalidInputError(f"Invalid date: {value!r}")
    return normalized


# -- Command inputs --


class CommandInput(BaseModel):
    """Command payloads accept camelCase (wire) or snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TemplateExerciseInput(CommandInput):
    name: str = ""
    sets: Optional[float] = None
    min_reps: Optional[float] = None
    max_reps: Optional[float] = None
    rest_sec_default: Optional[float] = None
    target_mass_kg: Optional[float] = Field(default=None, gt=0)


class TemplateDayInput(CommandInput):
    weekday: float
    label: str = ""
    exercises: list[TemplateExerciseInput] = Field(default_factory=list)


class WorkoutInput(CommandInput):
    date: str
    type: str = Field(min_length=1)
    duration_min: int = Field(gt=0)
    target_weight_kg: Optional[float] = Field(default=None, gt=0)
    distance_km: Optional[float] = Field(default=None, gt=0)
    intensity: Optional[Intensity] = None
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("date")
    @classmethod
    def canonical_date(cls, v):
        normalized = normalize_date_iso(v)
        if normalized is None:
            raise ValueError("date must be a YYYY-MM-DD date")
        return normalized


@dataclass
class NormalizedExercise:
    name: str
    sets: int
    min_reps: Optional[int] = None
    max_reps: Optional[int] = None
    rest_sec_default: Optional[int] = None
    target_mass_kg: Optional[float] = None


@dataclass
class NormalizedDay:
    weekday: int
    label: str
    exercises: list[NormalizedExercise] = field(default_factory=list)


def positive_int_or_none(value: Optional[float]) -> Optional[int]:
    if value is None or not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    truncated = math.trunc(value)
    return truncated if truncated > 0 else None


def _coerce_days(days: Iterable[Any]) -> list[TemplateDayInput]:
    parsed = []
    for raw in days or []:
        try:
            parsed.append(raw if isinstance(raw, TemplateDayInput) else TemplateDayInput.model_validate(raw))
        except ValidationError as exc:
            raise InvalidInputError("; ".join(str(e) for e in field_errors(exc))) from exc
    return parsed


def normalize_template_days(days: Iterable[Any]) -> list[NormalizedDay]:
    """Clamp weekdays, fill blank labels/names, default sets, and never return an empty day."""
    normalized: list[NormalizedDay] = []
    for day in _coerce_days(days):
        if not math.isfinite(day.weekday):
            raise InvalidInputError(f"Invalid weekday: {day.weekday!r}")
        weekday = min(7, max(1, math.trunc(day.weekday)))
        label = day.label.strip() or f"Workout day {weekday}"
        exercises = [
            NormalizedExercise(
                name=ex.name.strip() or PLACEHOLDER_EXERCISE_NAME,
                sets=positive_int_or_none(ex.sets) or 1,
                min_reps=positive_int_or_none(ex.min_reps),
                max_reps=positive_int_or_none(ex.max_reps),
                rest_sec_default=positive_int_or_none(ex.rest_sec_default),
                target_mass_kg=ex.target_mass_kg,
            )
            for ex in day.exercises
        ]
        if not exercises:
            exercises = [
                NormalizedExercise(
                    name=PLACEHOLDER_EXERCISE_NAME,
                    sets=PLACEHOLDER_EXERCISE_SETS,
                    rest_sec_default=PLACEHOLDER_EXERCISE_REST_SEC,
                )
            ]
        normalized.append(NormalizedDay(weekday=weekday, label=label, exercises=exercises))
    normalized.sort(key=lambda d: d.weekday)
    return normalized
