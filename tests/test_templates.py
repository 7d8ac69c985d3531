"""Tests for template authoring and the starter template."""

from __future__ import annotations

import pytest

from planner.errors import InvalidInputError, LastTemplateError, NotFoundError
from planner.services import templates
from planner.services.schedule import generate_schedule_for_range
from planner.services.sessions import begin_session, complete_session, get_or_create_session_plan
from planner.services.starter import STARTER_TEMPLATE_ID

PUSH_PULL = [
    {"weekday": 3, "label": "Pull", "exercises": [{"name": "Row", "sets": 3}, {"name": "Curl", "sets": 2}]},
    {"weekday": 1, "label": "Push", "exercises": [{"name": "Bench", "sets": 4, "restSecDefault": 120}]},
]

SUMMARY = {"startedAt": "2024-01-01T06:00:00.000Z", "endedAt": "2024-01-01T06:45:00.000Z", "totalDurationMin": 45}


@pytest.mark.asyncio
async def test_create_template_persists_days_and_exercises(store):
    template = await templates.create_template(store, "  Push/Pull ", "2024-1-1", PUSH_PULL)
    assert template.name == "Push/Pull"
    assert template.start_date == "2024-01-01"
    assert template.end_date is None
    assert template.is_starter is False

    days = await templates.get_template_days(store, template.id)
    assert [(d.weekday, d.label) for d in days] == [(1, "Push"), (3, "Pull")]

    pull_exercises = await templates.get_day_exercises(store, days[1].id)
    assert [e.name for e in pull_exercises] == ["Row", "Curl"]
    assert [e.position for e in pull_exercises] == [0, 1]


@pytest.mark.asyncio
async def test_create_template_normalizes_days(store):
    template = await templates.create_template(
        store,
        "Odd",
        "2024-01-01",
        [{"weekday": 9.7, "label": "", "exercises": []}, {"weekday": 0, "label": "A", "exercises": [{"name": " "}]}],
    )
    days = await templates.get_template_days(store, template.id)
    assert [d.weekday for d in days] == [1, 7]
    assert days[1].label == "Workout day 7"

    [placeholder] = await templates.get_day_exercises(store, days[1].id)
    assert (placeholder.name, placeholder.sets, placeholder.rest_sec_default) == ("Exercise", 3, 90)
    [blank] = await templates.get_day_exercises(store, days[0].id)
    assert (blank.name, blank.sets) == ("Exercise", 1)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name, start, days",
    [
        ("", "2024-01-01", PUSH_PULL),
        ("Plan", "", PUSH_PULL),
        ("Plan", "not-a-date", PUSH_PULL),
        ("Plan", "2024-01-01", []),
    ],
)
async def test_create_template_rejects_bad_input_without_writing(store, name, start, days):
    with pytest.raises(InvalidInputError):
        await templates.create_template(store, name, start, days)
    assert await store.plan_templates.count() == 0
    assert await store.plan_days.count() == 0


@pytest.mark.asyncio
async def test_update_template_replaces_days_and_drops_sessions(store):
    template = await templates.create_template(store, "Push/Pull", "2024-01-01", PUSH_PULL)
    assert await generate_schedule_for_range(store, template.id, "2024-01-01", "2024-01-14") == 4
    old_day_ids = {d.id for d in await templates.get_template_days(store, template.id)}
    session_id = (await store.scheduled_sessions.all())[0].id
    await get_or_create_session_plan(store, session_id)

    updated = await templates.update_template(
        store, template.id, "Full body", "2024-02-01", [{"weekday": 5, "label": "Full", "exercises": []}]
    )
    assert updated.name == "Full body"
    assert updated.start_date == "2024-02-01"

    days = await templates.get_template_days(store, template.id)
    assert [(d.weekday, d.label) for d in days] == [(5, "Full")]
    assert not old_day_ids & {d.id for d in await store.plan_days.all()}
    assert await store.exercise_templates.count() == 1
    assert await store.scheduled_sessions.count() == 0
    assert await store.session_plans.count() == 0


@pytest.mark.asyncio
async def test_update_template_detaches_completed_workouts(store):
    template = await templates.create_template(store, "Push/Pull", "2024-01-01", PUSH_PULL)
    await generate_schedule_for_range(store, template.id, "2024-01-01", "2024-01-07")
    session = (await store.scheduled_sessions.all())[0]
    await begin_session(store, session.id)
    workout = await complete_session(store, session.id, SUMMARY)

    await templates.update_template(store, template.id, "Push/Pull", "2024-01-01", PUSH_PULL)

    kept = await store.workouts.get(workout.id)
    assert kept is not None
    assert kept.scheduled_session_id is None


@pytest.mark.asyncio
async def test_update_missing_template(store):
    with pytest.raises(NotFoundError):
        await templates.update_template(store, "nope", "Plan", "2024-01-01", PUSH_PULL)


@pytest.mark.asyncio
async def test_delete_template_keeps_at_least_one(store):
    first = await templates.create_template(store, "First", "2024-01-01", PUSH_PULL)
    second = await templates.create_template(store, "Second", "2024-01-01", PUSH_PULL)
    await generate_schedule_for_range(store, second.id, "2024-01-01", "2024-01-07")

    assert await templates.delete_template(store, "unknown") is False
    assert await templates.delete_template(store, second.id) is True
    assert await store.plan_templates.keys() == {first.id}
    assert await store.scheduled_sessions.count() == 0
    assert {d.template_id for d in await store.plan_days.all()} == {first.id}

    with pytest.raises(LastTemplateError, match=templates.LAST_TEMPLATE_DELETE_ERROR):
        await templates.delete_template(store, first.id)
    assert await store.plan_templates.count() == 1


@pytest.mark.asyncio
async def test_import_starter_template_once(store):
    assert await templates.import_starter_template(store) is True
    assert await templates.import_starter_template(store) is False

    starter = await store.plan_templates.get(STARTER_TEMPLATE_ID)
    assert starter.is_starter is True
    assert starter.start_date == "1970-01-01"

    days = await templates.get_template_days(store, STARTER_TEMPLATE_ID)
    assert [d.weekday for d in days] == [1, 2, 4, 5]
    assert await store.exercise_templates.count() == 22

    first_day = await templates.get_day_exercises(store, days[0].id)
    assert first_day[0].name == "Bench Press"
    assert [e.position for e in first_day] == list(range(6))
