from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Boolean, Float, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class WorkoutTypeRow(Base):
    __tablename__ = "workout_types"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(80))
    color: Mapped[str] = mapped_column(String(16))


class WorkoutRow(Base):
    __tablename__ = "workouts"
    id: Mapped[str] = mapped_column(String(120), primary_key=True)
    date: Mapped[str] = mapped_column(String(10))
    type: Mapped[str] = mapped_column(String(64))
    duration_min: Mapped[int] = mapped_column(Integer)
    target_weight_kg: Mapped[float | None] = mapped_column(Float)
    distance_km: Mapped[float | None] = mapped_column(Float)
    intensity: Mapped[str | None] = mapped_column(String(16))
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[str] = mapped_column(String(32))
    updated_at: Mapped[str] = mapped_column(String(32))
    scheduled_session_id: Mapped[str | None] = mapped_column(String(400))
    session_summary: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    __table_args__ = (
        Index("ix_workouts_date", "date"),
        Index("ix_workouts_type", "type"),
        Index("ix_workouts_scheduled_session", "scheduled_session_id"),
    )


class PlanTemplateRow(Base):
    __tablename__ = "plan_templates"
    id: Mapped[str] = mapped_column(String(120), primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    start_date: Mapped[str] = mapped_column(String(10))
    end_date: Mapped[str | None] = mapped_column(String(10))
    locale: Mapped[str] = mapped_column(String(16), default="en")
    is_starter: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[str] = mapped_column(String(32))
    updated_at: Mapped[str] = mapped_column(String(32))


class PlanDayRow(Base):
    __tablename__ = "plan_days"
    id: Mapped[str] = mapped_column(String(120), primary_key=True)
    template_id: Mapped[str] = mapped_column(String(120), index=True)
    weekday: Mapped[int] = mapped_column(Integer)
    label: Mapped[str] = mapped_column(String(200))


class ExerciseTemplateRow(Base):
    __tablename__ = "exercise_templates"
    id: Mapped[str] = mapped_column(String(120), primary_key=True)
    plan_day_id: Mapped[str] = mapped_column(String(120), index=True)
    name: Mapped[str] = mapped_column(String(200))
    sets: Mapped[int] = mapped_column(Integer)
    min_reps: Mapped[int | None] = mapped_column(Integer)
    max_reps: Mapped[int | None] = mapped_column(Integer)
    rest_sec_default: Mapped[int | None] = mapped_column(Integer)
    target_mass_kg: Mapped[float | None] = mapped_column(Float)
    position: Mapped[int] = mapped_column(Integer, default=0)


class ScheduledSessionRow(Base):
    __tablename__ = "scheduled_sessions"
    id: Mapped[str] = mapped_column(String(400), primary_key=True)
    template_id: Mapped[str] = mapped_column(String(120), index=True)
    plan_day_id: Mapped[str] = mapped_column(String(120))
    date: Mapped[str] = mapped_column(String(10))
    status: Mapped[str] = mapped_column(String(16), default="planned")
    workout_id: Mapped[str | None] = mapped_column(String(120))
    planned_workout: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    __table_args__ = (
        Index("ix_scheduled_sessions_date", "date"),
        Index("ix_scheduled_sessions_status", "status"),
    )


class ActiveSessionDraftRow(Base):
    __tablename__ = "active_session_drafts"
    session_id: Mapped[str] = mapped_column(String(400), primary_key=True)
    started_at: Mapped[str] = mapped_column(String(32))
    current_exercise_index: Mapped[int] = mapped_column(Integer, default=0)
    current_set_index: Mapped[int] = mapped_column(Integer, default=0)
    set_logs: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    rest_end_at: Mapped[str | None] = mapped_column(String(32))
    timer_paused: Mapped[bool] = mapped_column(Boolean, default=True)
    timer_remaining_sec: Mapped[int | None] = mapped_column(Integer)
    updated_at: Mapped[str] = mapped_column(String(32))


class SessionPlanRow(Base):
    __tablename__ = "session_plans"
    id: Mapped[str] = mapped_column(String(400), primary_key=True)
    session_id: Mapped[str] = mapped_column(String(400))
    title: Mapped[str] = mapped_column(String(200))
    notes: Mapped[str | None] = mapped_column(Text)
    exercises: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    updated_at: Mapped[str] = mapped_column(String(32))
