"""Whole-state export and destructive import.

A snapshot is the only cross-device boundary: an external synchronizer
moves serialized snapshots around and applies last-writer-wins on whole
documents. Serializing an unchanged store always yields the same bytes.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional, Union

from pydantic import Field
from pydantic.alias_generators import to_camel

from planner.db import Store
from planner.errors import InvalidInputError
from planner.logging_config import log_context
from planner.records import (
    ActiveSessionDraft,
    ExerciseTemplate,
    PlanDay,
    PlanTemplate,
    Record,
    ScheduledSession,
    SessionPlan,
    Workout,
    WorkoutType,
)
from planner.services.templates import import_starter_template
from planner.validators import validate_record

logger = logging.getLogger(__name__)

SNAPSHOT_SCHEMA_VERSION = 1
EMPTY_EXPORTED_AT = "1970-01-01T00:00:00.000Z"

# collection name -> (record schema, key attribute)
SNAPSHOT_COLLECTIONS: dict[str, tuple[type[Record], str]] = {
    "workout_types": (WorkoutType, "id"),
    "workouts": (Workout, "id"),
    "plan_templates": (PlanTemplate, "id"),
    "plan_days": (PlanDay, "id"),
    "exercise_templates": (ExerciseTemplate, "id"),
    "scheduled_sessions": (ScheduledSession, "id"),
    "active_session_drafts": (ActiveSessionDraft, "session_id"),
    "session_plans": (SessionPlan, "id"),
}

_TIMESTAMP_FIELDS = ("created_at", "updated_at", "started_at")


class Snapshot(Record):
    schema_version: int = SNAPSHOT_SCHEMA_VERSION
    exported_at: str = EMPTY_EXPORTED_AT
    workout_types: list[WorkoutType] = Field(default_factory=list)
    workouts: list[Workout] = Field(default_factory=list)
    plan_templates: list[PlanTemplate] = Field(default_factory=list)
    plan_days: list[PlanDay] = Field(default_factory=list)
    exercise_templates: list[ExerciseTemplate] = Field(default_factory=list)
    scheduled_sessions: list[ScheduledSession] = Field(default_factory=list)
    active_session_drafts: list[ActiveSessionDraft] = Field(default_factory=list)
    session_plans: list[SessionPlan] = Field(default_factory=list)

    def record_count(self) -> int:
        return sum(len(getattr(self, name)) for name in SNAPSHOT_COLLECTIONS)


def _latest_timestamp(collections: Mapping[str, list[Record]]) -> str:
    stamps = [
        value
        for records in collections.values()
        for record in records
        for value in (getattr(record, f, None) for f in _TIMESTAMP_FIELDS)
        if value
    ]
    return max(stamps, default=EMPTY_EXPORTED_AT)


async def export_snapshot(store: Store) -> Snapshot:
    """Every collection, records ordered by key.

    ``exported_at`` is the newest record timestamp rather than the wall clock,
    so identical state exports identically.
    """
    collections = store.collections()
    data = {name: await collections[name].all() for name in SNAPSHOT_COLLECTIONS}
    return Snapshot(exported_at=_latest_timestamp(data), **data)


def serialize_snapshot(snapshot: Snapshot) -> str:
    return json.dumps(snapshot.to_wire(), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _parse_records(collection: str, raw: Any) -> list[Record]:
    schema, key_attr = SNAPSHOT_COLLECTIONS[collection]
    if not isinstance(raw, list):
        return []
    records: dict[str, Record] = {}
    dropped = 0
    for item in raw:
        result = validate_record(schema, item)
        if not result.ok:
            dropped += 1
            logger.warning(
                "snapshot_record_dropped",
                extra=log_context(collection=collection, errors="; ".join(str(e) for e in result.errors)),
            )
            continue
        key = getattr(result.value, key_attr)
        if key in records:
            dropped += 1
            logger.warning("snapshot_duplicate_key_dropped", extra=log_context(collection=collection, key=key))
            continue
        records[key] = result.value
    if dropped:
        logger.info("snapshot_records_dropped", extra=log_context(collection=collection, dropped=dropped))
    return [records[k] for k in sorted(records)]


def parse_snapshot(raw: Union[str, bytes, Mapping[str, Any]]) -> Snapshot:
    """Lenient parse: invalid records are dropped, missing collections are empty."""
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise InvalidInputError(f"Snapshot is not valid JSON: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise InvalidInputError("Snapshot must be a JSON object.")

    version = raw.get("schemaVersion", raw.get("schema_version", SNAPSHOT_SCHEMA_VERSION))
    if not isinstance(version, int) or isinstance(version, bool):
        version = SNAPSHOT_SCHEMA_VERSION
    if version > SNAPSHOT_SCHEMA_VERSION:
        raise InvalidInputError(f"Unsupported snapshot schema version: {version}")

    exported_at = raw.get("exportedAt", raw.get("exported_at"))
    data = {}
    for name in SNAPSHOT_COLLECTIONS:
        data[name] = _parse_records(name, raw.get(to_camel(name), raw.get(name)))
    if not isinstance(exported_at, str) or not exported_at:
        exported_at = _latest_timestamp(data)
    return Snapshot(schema_version=version, exported_at=exported_at, **data)


async def replace_snapshot(store: Store, snapshot: Union[Snapshot, str, bytes, Mapping[str, Any]]) -> Snapshot:
    """Destructively swap the whole store for ``snapshot``.

    Everything is parsed and validated before the first write; each
    collection is then replaced in its own transaction. A snapshot without
    templates gets the starter split so the store never ends up template-less.
    """
    parsed: Optional[Snapshot] = snapshot if isinstance(snapshot, Snapshot) else None
    if parsed is None:
        parsed = parse_snapshot(snapshot)
    collections = store.collections()
    for name in SNAPSHOT_COLLECTIONS:
        await collections[name].replace_all(getattr(parsed, name))
    reseeded = False
    if not parsed.plan_templates:
        reseeded = await import_starter_template(store)
    logger.info(
        "snapshot_replaced",
        extra=log_context(exported_at=parsed.exported_at, records=parsed.record_count(), starter_reseeded=reseeded),
    )
    return parsed
