from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest_asyncio

from planner.db import create_store

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


class TickingClock:
    """Deterministic clock: each reading is one second after the previous."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 6, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        now = self.current
        self.current = now + timedelta(seconds=1)
        return now


@pytest_asyncio.fixture
async def store():
    s = create_store(MEMORY_URL, clock=TickingClock())
    await s.create_schema()
    try:
        yield s
    finally:
        await s.dispose()
