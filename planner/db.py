from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from planner.collections import Collection
from planner.config import get_settings
from planner.dates import to_timestamp_iso, utcnow
from planner.models import (
    ActiveSessionDraftRow,
    Base,
    ExerciseTemplateRow,
    PlanDayRow,
    PlanTemplateRow,
    ScheduledSessionRow,
    SessionPlanRow,
    WorkoutRow,
    WorkoutTypeRow,
)
from planner.records import (
    ActiveSessionDraft,
    ExerciseTemplate,
    PlanDay,
    PlanTemplate,
    ScheduledSession,
    SessionPlan,
    Workout,
    WorkoutType,
)


@dataclass
class QueryStats:
    total: int = 0
    slow: int = 0
    p50_ms: float = 0.0
    p95_ms: float = 0.0


_query_samples: list[float] = []


def _is_memory_url(url: str) -> bool:
    return ":memory:" in url or url.rstrip("/").endswith(":")


def create_engine_for(url: str) -> AsyncEngine:
    kwargs: dict = {}
    if url.startswith("sqlite") and _is_memory_url(url):
        # one shared connection, otherwise every checkout sees a fresh empty database
        kwargs["poolclass"] = StaticPool
    engine = create_async_engine(url, **kwargs)

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        context._query_start_time = time.perf_counter()

    @event.listens_for(engine.sync_engine, "after_cursor_execute")
    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        elapsed = (time.perf_counter() - context._query_start_time) * 1000
        _query_samples.append(elapsed)
        if len(_query_samples) > 1000:
            _query_samples.pop(0)

    return engine


class Store:
    """Owns the engine and every record collection; passed explicitly to each engine command."""

    def __init__(self, engine: AsyncEngine, clock: Optional[Callable[[], datetime]] = None):
        self.engine = engine
        self.clock = clock or utcnow
        self.sessions = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

        self.workout_types: Collection[WorkoutType] = Collection("workout_types", WorkoutTypeRow, WorkoutType, self.sessions)
        self.workouts: Collection[Workout] = Collection("workouts", WorkoutRow, Workout, self.sessions)
        self.plan_templates: Collection[PlanTemplate] = Collection("plan_templates", PlanTemplateRow, PlanTemplate, self.sessions)
        self.plan_days: Collection[PlanDay] = Collection("plan_days", PlanDayRow, PlanDay, self.sessions)
        self.exercise_templates: Collection[ExerciseTemplate] = Collection(
            "exercise_templates", ExerciseTemplateRow, ExerciseTemplate, self.sessions
        )
        self.scheduled_sessions: Collection[ScheduledSession] = Collection(
            "scheduled_sessions", ScheduledSessionRow, ScheduledSession, self.sessions
        )
        self.active_session_drafts: Collection[ActiveSessionDraft] = Collection(
            "active_session_drafts", ActiveSessionDraftRow, ActiveSessionDraft, self.sessions, key_field="session_id"
        )
        self.session_plans: Collection[SessionPlan] = Collection("session_plans", SessionPlanRow, SessionPlan, self.sessions)

    def collections(self) -> dict[str, Collection]:
        return {
            c.name: c
            for c in (
                self.workout_types,
                self.workouts,
                self.plan_templates,
                self.plan_days,
                self.exercise_templates,
                self.scheduled_sessions,
                self.active_session_drafts,
                self.session_plans,
            )
        }

    def now_iso(self) -> str:
        return to_timestamp_iso(self.clock())

    async def create_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


def create_store(url: Optional[str] = None, clock: Optional[Callable[[], datetime]] = None) -> Store:
    return Store(create_engine_for(url or get_settings().database_url), clock=clock)


def get_query_stats() -> QueryStats:
    if not _query_samples:
        return QueryStats()
    ordered = sorted(_query_samples)
    p50 = ordered[int(len(ordered) * 0.5)]
    p95 = ordered[int(len(ordered) * 0.95)]
    return QueryStats(
        total=len(_query_samples),
        slow=sum(1 for s in _query_samples if s > 250),
        p50_ms=round(p50, 2),
        p95_ms=round(p95, 2),
    )
