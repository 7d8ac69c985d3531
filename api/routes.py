from __future__ import annotations

import logging
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.deps import get_notifier, get_store
from api.observability import system_status
from api.schemas import (
    ApplyResultOut,
    ApplyTemplateInput,
    ClearResultOut,
    CompleteSessionInput,
    CountOut,
    DateInput,
    DeletedOut,
    DraftUpdateInput,
    GenerateScheduleInput,
    HealthOut,
    ImportedOut,
    ManualWorkoutInput,
    MoveSessionOut,
    RestActionInput,
    SessionPlanInput,
    SnapshotReplacedOut,
    SwapExerciseInput,
    TemplateInput,
)
from planner.dates import add_days_iso
from planner.db import Store, get_query_stats
from planner.records import ActiveSessionDraft, PlanTemplate, ScheduledSession, SessionPlan, Workout
from planner.services import range_mutator, sessions, templates, workouts
from planner.services.notifications import Notifier
from planner.services.rest_timer import GUIDED_REST_DEFAULT_SEC, extend_rest, pause_rest, resume_rest, start_rest
from planner.services.schedule import apply_template_to_calendar, generate_schedule_for_range
from planner.services.snapshot import export_snapshot, replace_snapshot, serialize_snapshot
from planner.validators import WorkoutInput

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1")

StoreDep = Annotated[Store, Depends(get_store)]
NotifierDep = Annotated[Notifier, Depends(get_notifier)]


def _horizon_end(request: Request, start: str) -> str:
    return add_days_iso(start, request.app.state.settings.schedule_horizon_days)


@router.get("/health", response_model=HealthOut, tags=["ops"])
async def health(request: Request):
    stats = get_query_stats()
    strip = system_status(stats.total, stats.slow)
    return HealthOut(
        status=strip.status,
        message=strip.message,
        app_env=request.app.state.settings.app_env,
        query_samples=stats.total,
        slow_queries=stats.slow,
        p95_ms=stats.p95_ms,
    )


# -- read-only query surface --


@router.get("/collections", tags=["collections"])
async def list_collections(store: StoreDep) -> dict[str, int]:
    return {name: await collection.count() for name, collection in store.collections().items()}


@router.get("/collections/{name}", tags=["collections"])
async def list_records(name: str, store: StoreDep) -> list[dict[str, Any]]:
    collection = store.collections().get(name)
    if collection is None:
        raise HTTPException(status_code=404, detail=f"Unknown collection: {name}")
    return [record.to_wire() for record in await collection.all()]


@router.get("/collections/{name}/{key}", tags=["collections"])
async def get_record(name: str, key: str, store: StoreDep) -> dict[str, Any]:
    collection = store.collections().get(name)
    if collection is None:
        raise HTTPException(status_code=404, detail=f"Unknown collection: {name}")
    record = await collection.get(key)
    if record is None:
        raise HTTPException(status_code=404, detail="Record not found")
    return record.to_wire()


# -- templates & schedule --


@router.post("/templates", response_model=PlanTemplate, response_model_exclude_none=True, status_code=201, tags=["templates"])
async def create_template(body: TemplateInput, store: StoreDep):
    return await templates.create_template(store, body.name, body.start_date, body.days, body.locale or "en")


@router.put("/templates/{template_id}", response_model=PlanTemplate, response_model_exclude_none=True, tags=["templates"])
async def update_template(template_id: str, body: TemplateInput, store: StoreDep):
    return await templates.update_template(store, template_id, body.name, body.start_date, body.days, body.locale)


@router.delete("/templates/{template_id}", response_model=DeletedOut, tags=["templates"])
async def delete_template(template_id: str, store: StoreDep):
    return DeletedOut(deleted=await templates.delete_template(store, template_id))


@router.post("/templates/starter", response_model=ImportedOut, tags=["templates"])
async def import_starter(store: StoreDep):
    return ImportedOut(imported=await templates.import_starter_template(store))


@router.post("/templates/{template_id}/apply", response_model=ApplyResultOut, tags=["templates"])
async def apply_template(template_id: str, body: ApplyTemplateInput, request: Request, store: StoreDep):
    to_date = body.to_date or _horizon_end(request, body.start_date)
    result = await apply_template_to_calendar(store, template_id, body.start_date, to_date, body.start_plan_day_id)
    return ApplyResultOut(inserted=result.inserted, removed=result.removed)


@router.post("/schedule/generate", response_model=CountOut, tags=["schedule"])
async def generate_schedule(body: GenerateScheduleInput, request: Request, store: StoreDep):
    to_date = body.to_date or _horizon_end(request, body.from_date)
    return CountOut(count=await generate_schedule_for_range(store, body.template_id, body.from_date, to_date))


# -- session lifecycle --


@router.post("/sessions/manual", response_model=ScheduledSession, response_model_exclude_none=True, status_code=201, tags=["sessions"])
async def plan_manual_workout(body: ManualWorkoutInput, store: StoreDep):
    return await sessions.plan_manual_workout(store, body.date, body.planned_workout)


@router.post("/sessions/{session_id}/begin", response_model=ActiveSessionDraft, response_model_exclude_none=True, tags=["sessions"])
async def begin_session(session_id: str, store: StoreDep):
    return await sessions.begin_session(store, session_id)


@router.put("/sessions/{session_id}/draft", response_model=Optional[ActiveSessionDraft], response_model_exclude_none=True, tags=["sessions"])
async def save_draft(session_id: str, body: DraftUpdateInput, store: StoreDep):
    changes = {field: getattr(body, field) for field in body.model_fields_set}
    return await sessions.save_draft(store, session_id, lambda draft: draft.model_copy(update=changes))


@router.post("/sessions/{session_id}/rest", response_model=Optional[ActiveSessionDraft], response_model_exclude_none=True, tags=["sessions"])
async def rest_timer(session_id: str, body: RestActionInput, store: StoreDep):
    now = store.clock()
    seconds = body.seconds if body.seconds is not None else GUIDED_REST_DEFAULT_SEC
    actions = {
        "start": lambda draft: start_rest(draft, seconds, now),
        "pause": lambda draft: pause_rest(draft, now),
        "resume": lambda draft: resume_rest(draft, now),
        "extend": lambda draft: extend_rest(draft, now),
    }
    return await sessions.save_draft(store, session_id, actions[body.action])


@router.post("/sessions/{session_id}/complete", response_model=Workout, response_model_exclude_none=True, status_code=201, tags=["sessions"])
async def complete_session(session_id: str, body: CompleteSessionInput, store: StoreDep):
    return await sessions.complete_session(store, session_id, body.summary, body.notes)


@router.post("/sessions/{session_id}/skip", response_model=ScheduledSession, response_model_exclude_none=True, tags=["sessions"])
async def skip_session(session_id: str, store: StoreDep, notifier: NotifierDep):
    return await sessions.skip_session(store, session_id, notifier)


@router.post("/sessions/{session_id}/reset", response_model=Optional[ScheduledSession], response_model_exclude_none=True, tags=["sessions"])
async def reset_session(session_id: str, store: StoreDep):
    return await sessions.reset_session(store, session_id)


@router.post("/sessions/{session_id}/move", response_model=MoveSessionOut, tags=["sessions"])
async def move_session(session_id: str, body: DateInput, store: StoreDep):
    return MoveSessionOut(session_id=await sessions.move_session(store, session_id, body.date))


@router.post("/sessions/{session_id}/duplicate", response_model=ScheduledSession, response_model_exclude_none=True, status_code=201, tags=["sessions"])
async def duplicate_session(session_id: str, body: DateInput, store: StoreDep):
    return await sessions.duplicate_session(store, session_id, body.date)


@router.get("/sessions/{session_id}/plan", response_model=SessionPlan, response_model_exclude_none=True, tags=["sessions"])
async def get_session_plan(session_id: str, store: StoreDep):
    return await sessions.get_or_create_session_plan(store, session_id)


@router.put("/sessions/{session_id}/plan", response_model=SessionPlan, response_model_exclude_none=True, tags=["sessions"])
async def update_session_plan(session_id: str, body: SessionPlanInput, store: StoreDep):
    changes = {"title": body.title, "notes": body.notes, "exercises": body.exercises}
    return await sessions.update_session_plan(store, session_id, lambda plan: plan.model_copy(update=changes))


@router.post("/sessions/{session_id}/plan/swap", response_model=SessionPlan, response_model_exclude_none=True, tags=["sessions"])
async def swap_exercise(session_id: str, body: SwapExerciseInput, store: StoreDep):
    return await sessions.swap_exercise_variant(store, session_id, body.index, body.name)


# -- workout history --


@router.post("/workouts", response_model=Workout, response_model_exclude_none=True, status_code=201, tags=["workouts"])
async def add_workout(body: WorkoutInput, store: StoreDep):
    return await workouts.add_workout(store, body)


@router.put("/workouts/{workout_id}", response_model=Workout, response_model_exclude_none=True, tags=["workouts"])
async def update_workout(workout_id: str, body: WorkoutInput, store: StoreDep):
    return await workouts.update_workout(store, workout_id, body)


@router.delete("/workouts/{workout_id}", response_model=DeletedOut, tags=["workouts"])
async def delete_workout(workout_id: str, store: StoreDep):
    return DeletedOut(deleted=await workouts.delete_workout(store, workout_id))


# -- maintenance --


@router.post("/maintenance/clear-after", response_model=ClearResultOut, tags=["maintenance"])
async def clear_after(body: DateInput, store: StoreDep):
    result = await range_mutator.clear_data_after_date(store, body.date)
    return ClearResultOut(workouts_deleted=result.workouts_deleted, sessions_deleted=result.sessions_deleted)


@router.post("/maintenance/clear-before", response_model=ClearResultOut, tags=["maintenance"])
async def clear_before(body: DateInput, store: StoreDep):
    result = await range_mutator.clear_data_before_date(store, body.date)
    return ClearResultOut(workouts_deleted=result.workouts_deleted, sessions_deleted=result.sessions_deleted)


@router.post("/maintenance/clear-uncompleted", response_model=ClearResultOut, tags=["maintenance"])
async def clear_uncompleted(store: StoreDep):
    result = await range_mutator.clear_all_uncompleted_sessions(store)
    return ClearResultOut(sessions_deleted=result.sessions_deleted)


# -- snapshot boundary --


@router.get("/snapshot", tags=["snapshot"])
async def get_snapshot(store: StoreDep):
    return Response(content=serialize_snapshot(await export_snapshot(store)), media_type="application/json")


@router.put("/snapshot", response_model=SnapshotReplacedOut, tags=["snapshot"])
async def put_snapshot(request: Request, store: StoreDep):
    snapshot = await replace_snapshot(store, await request.body())
    return SnapshotReplacedOut(exported_at=snapshot.exported_at, records=snapshot.record_count())
