"""Guided rest countdown kept on the active session draft.

All helpers are pure draft -> draft transforms meant to be passed through
``save_draft``. A running timer stores its absolute end time; a paused timer
stores the seconds left.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Optional

from planner.dates import parse_timestamp, to_timestamp_iso, utcnow
from planner.records import ActiveSessionDraft

GUIDED_REST_DEFAULT_SEC = 30
GUIDED_REST_INCREMENT_SEC = 30


def add_rest_increment(seconds: int) -> int:
    return max(0, seconds) + GUIDED_REST_INCREMENT_SEC


def rest_remaining_sec(draft: ActiveSessionDraft, now: Optional[datetime] = None) -> int:
    if draft.timer_paused or not draft.rest_end_at:
        return max(0, draft.timer_remaining_sec or 0)
    end = parse_timestamp(draft.rest_end_at)
    if end is None:
        return 0
    left = (end - (now or utcnow())).total_seconds()
    return max(0, math.ceil(left))


def start_rest(
    draft: ActiveSessionDraft,
    seconds: int = GUIDED_REST_DEFAULT_SEC,
    now: Optional[datetime] = None,
) -> ActiveSessionDraft:
    seconds = max(0, int(seconds))
    end = (now or utcnow()) + timedelta(seconds=seconds)
    return draft.model_copy(
        update={"rest_end_at": to_timestamp_iso(end), "timer_paused": False, "timer_remaining_sec": seconds}
    )


def pause_rest(draft: ActiveSessionDraft, now: Optional[datetime] = None) -> ActiveSessionDraft:
    if draft.timer_paused:
        return draft
    remaining = rest_remaining_sec(draft, now)
    return draft.model_copy(update={"rest_end_at": None, "timer_paused": True, "timer_remaining_sec": remaining})


def resume_rest(draft: ActiveSessionDraft, now: Optional[datetime] = None) -> ActiveSessionDraft:
    if not draft.timer_paused:
        return draft
    return start_rest(draft, draft.timer_remaining_sec or 0, now)


def extend_rest(draft: ActiveSessionDraft, now: Optional[datetime] = None) -> ActiveSessionDraft:
    """Add one increment to whatever is left, keeping the paused/running state."""
    remaining = add_rest_increment(rest_remaining_sec(draft, now))
    if draft.timer_paused:
        return draft.model_copy(update={"timer_remaining_sec": remaining})
    return start_rest(draft, remaining, now)
