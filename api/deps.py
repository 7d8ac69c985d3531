from __future__ import annotations

from fastapi import Request

from planner.db import Store
from planner.services.notifications import Notifier


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier
