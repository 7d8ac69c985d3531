from __future__ import annotations

from datetime import datetime, timedelta, timezone

from planner.records import ActiveSessionDraft
from planner.services.rest_timer import (
    GUIDED_REST_DEFAULT_SEC,
    add_rest_increment,
    extend_rest,
    pause_rest,
    rest_remaining_sec,
    resume_rest,
    start_rest,
)

T0 = datetime(2024, 1, 1, 6, 0, tzinfo=timezone.utc)


def _draft() -> ActiveSessionDraft:
    return ActiveSessionDraft(session_id="s", started_at="2024-01-01T06:00:00.000Z", updated_at="2024-01-01T06:00:00.000Z")


def test_add_rest_increment():
    assert add_rest_increment(0) == 30
    assert add_rest_increment(45) == 75
    assert add_rest_increment(-10) == 30


def test_new_draft_has_no_rest():
    assert rest_remaining_sec(_draft(), T0) == 0


def test_start_counts_down():
    running = start_rest(_draft(), 90, T0)
    assert running.timer_paused is False
    assert running.rest_end_at == "2024-01-01T06:01:30.000Z"
    assert rest_remaining_sec(running, T0 + timedelta(seconds=20)) == 70
    assert rest_remaining_sec(running, T0 + timedelta(seconds=89.5)) == 1
    assert rest_remaining_sec(running, T0 + timedelta(minutes=5)) == 0


def test_start_defaults_to_guided_rest():
    assert rest_remaining_sec(start_rest(_draft(), now=T0), T0) == GUIDED_REST_DEFAULT_SEC


def test_pause_and_resume_keep_remaining_time():
    running = start_rest(_draft(), 60, T0)
    paused = pause_rest(running, T0 + timedelta(seconds=15))
    assert paused.timer_paused is True
    assert paused.rest_end_at is None
    assert paused.timer_remaining_sec == 45
    assert rest_remaining_sec(paused, T0 + timedelta(hours=1)) == 45
    assert pause_rest(paused, T0) is paused

    resumed = resume_rest(paused, T0 + timedelta(minutes=10))
    assert resumed.timer_paused is False
    assert rest_remaining_sec(resumed, T0 + timedelta(minutes=10)) == 45
    assert resume_rest(resumed, T0) is resumed


def test_extend_adds_increment_in_either_state():
    running = start_rest(_draft(), 60, T0)
    extended = extend_rest(running, T0 + timedelta(seconds=50))
    assert extended.timer_paused is False
    assert rest_remaining_sec(extended, T0 + timedelta(seconds=50)) == 40

    paused = pause_rest(running, T0 + timedelta(seconds=30))
    assert extend_rest(paused, T0).timer_remaining_sec == 60


def test_transforms_do_not_mutate_input():
    draft = _draft()
    start_rest(draft, 60, T0)
    assert draft.rest_end_at is None
    assert draft.timer_paused is True
