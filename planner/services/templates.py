from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from planner.db import Store
from planner.errors import InvalidInputError, LastTemplateError, NotFoundError
from planner.ids import create_id
from planner.logging_config import log_context
from planner.records import ExerciseTemplate, PlanDay, PlanTemplate
from planner.services.cascade import remove_sessions
from planner.services.starter import STARTER_TEMPLATE_ID, create_starter_bundle
from planner.validators import NormalizedDay, normalize_template_days, require_date, require_text

logger = logging.getLogger(__name__)

MIN_TEMPLATE_COUNT = 1
LAST_TEMPLATE_DELETE_ERROR = "At least one template is required."


def _validated_days(days: Optional[Iterable[Any]]) -> list[NormalizedDay]:
    normalized = normalize_template_days(days or [])
    if not normalized:
        raise InvalidInputError("At least one plan day is required.")
    return normalized


def _build_days(template_id: str, days: list[NormalizedDay]) -> tuple[list[PlanDay], list[ExerciseTemplate]]:
    plan_days: list[PlanDay] = []
    exercises: list[ExerciseTemplate] = []
    for day in days:
        plan_day = PlanDay(id=create_id("plan_day"), template_id=template_id, weekday=day.weekday, label=day.label)
        plan_days.append(plan_day)
        for position, ex in enumerate(day.exercises):
            exercises.append(
                ExerciseTemplate(
                    id=create_id("exercise"),
                    plan_day_id=plan_day.id,
                    name=ex.name,
                    sets=ex.sets,
                    min_reps=ex.min_reps,
                    max_reps=ex.max_reps,
                    rest_sec_default=ex.rest_sec_default,
                    target_mass_kg=ex.target_mass_kg,
                    position=position,
                )
            )
    return plan_days, exercises


async def get_template_days(store: Store, template_id: str) -> list[PlanDay]:
    days = await store.plan_days.filter_by(template_id=template_id)
    return sorted(days, key=lambda d: (d.weekday, d.id))


async def get_day_exercises(store: Store, plan_day_id: str) -> list[ExerciseTemplate]:
    exercises = await store.exercise_templates.filter_by(plan_day_id=plan_day_id)
    return sorted(exercises, key=lambda e: (e.position, e.id))


async def _delete_days(store: Store, template_id: str) -> None:
    day_ids = {d.id for d in await store.plan_days.filter_by(template_id=template_id)}
    exercise_ids = [e.id for e in await store.exercise_templates.all() if e.plan_day_id in day_ids]
    await store.exercise_templates.delete(exercise_ids)
    await store.plan_days.delete(day_ids)


async def _delete_template_sessions(store: Store, template_id: str) -> int:
    sessions = await store.scheduled_sessions.filter_by(template_id=template_id)
    return (await remove_sessions(store, sessions)).sessions_deleted


async def create_template(
    store: Store,
    name: Optional[str],
    start_date: Optional[str],
    days: Optional[Iterable[Any]],
    locale: Optional[str] = "en",
) -> PlanTemplate:
    normalized_name = require_text(name, "Template name is required.")
    normalized_start = require_date(start_date, "Template start date is required.")
    normalized_days = _validated_days(days)

    now = store.now_iso()
    template = PlanTemplate(
        id=create_id("template"),
        name=normalized_name,
        start_date=normalized_start,
        locale=locale or "en",
        is_starter=False,
        created_at=now,
        updated_at=now,
    )
    plan_days, exercises = _build_days(template.id, normalized_days)

    await store.plan_templates.insert(template)
    await store.plan_days.insert(plan_days)
    await store.exercise_templates.insert(exercises)
    logger.info(
        "template_created",
        extra=log_context(template_id=template.id, days=len(plan_days), exercises=len(exercises)),
    )
    return template


async def update_template(
    store: Store,
    template_id: str,
    name: Optional[str],
    start_date: Optional[str],
    days: Optional[Iterable[Any]],
    locale: Optional[str] = None,
) -> PlanTemplate:
    """Replace the template's days and exercises wholesale.

    Every session generated from the template is removed; the caller
    regenerates the schedule afterwards.
    """
    template = await store.plan_templates.get(template_id)
    if template is None:
        raise NotFoundError("Template not found.")

    normalized_name = require_text(name, "Template name is required.")
    normalized_start = require_date(start_date, "Template start date is required.")
    normalized_days = _validated_days(days)

    removed = await _delete_template_sessions(store, template.id)
    await _delete_days(store, template.id)

    updated = await store.plan_templates.update(
        template.id,
        name=normalized_name,
        start_date=normalized_start,
        locale=locale or template.locale,
        updated_at=store.now_iso(),
    )
    plan_days, exercises = _build_days(template.id, normalized_days)
    await store.plan_days.insert(plan_days)
    await store.exercise_templates.insert(exercises)
    logger.info(
        "template_updated",
        extra=log_context(template_id=template.id, days=len(plan_days), sessions_removed=removed),
    )
    return updated


async def delete_template(store: Store, template_id: str) -> bool:
    template = await store.plan_templates.get(template_id)
    if template is None:
        return False
    if await store.plan_templates.count() <= MIN_TEMPLATE_COUNT:
        raise LastTemplateError(LAST_TEMPLATE_DELETE_ERROR)

    removed = await _delete_template_sessions(store, template.id)
    await _delete_days(store, template.id)
    await store.plan_templates.delete(template.id)
    logger.info("template_deleted", extra=log_context(template_id=template.id, sessions_removed=removed))
    return True


async def import_starter_template(store: Store) -> bool:
    if await store.plan_templates.has(STARTER_TEMPLATE_ID):
        return False
    bundle = create_starter_bundle(store.now_iso())
    await store.plan_templates.insert(bundle.template)
    await store.plan_days.insert(bundle.plan_days)
    await store.exercise_templates.insert(bundle.exercises)
    logger.info("starter_template_imported", extra=log_context(template_id=STARTER_TEMPLATE_ID))
    return True
