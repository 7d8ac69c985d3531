from __future__ import annotations

import logging

from planner.db import Store
from planner.logging_config import log_context
from planner.services.templates import import_starter_template
from planner.services.workouts import ensure_default_workout_types

logger = logging.getLogger(__name__)


async def ensure_ready(store: Store) -> bool:
    """
    Make a store usable: schema, default workout types, and at least one
    template (the starter split when the store has none).
    Returns True when anything was seeded.
    """
    await store.create_schema()
    seeded_types = await ensure_default_workout_types(store)
    imported = False
    if await store.plan_templates.count() == 0:
        imported = await import_starter_template(store)
    if seeded_types or imported:
        logger.info("store_seeded", extra=log_context(workout_types=seeded_types, starter_template=imported))
    return bool(seeded_types or imported)
