from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from planner.dates import (
    add_days_iso,
    date_range,
    iso_weekday,
    normalize_date_iso,
    parse_date,
    parse_timestamp,
    to_timestamp_iso,
)
from planner.ids import create_id, scheduled_session_id


def test_parse_date_accepts_loose_parts():
    assert parse_date("2024-3-7") == date(2024, 3, 7)
    assert parse_date(" 2024-03-07 ") == date(2024, 3, 7)
    assert parse_date(datetime(2024, 3, 7, 10, 0)) == date(2024, 3, 7)


@pytest.mark.parametrize("raw", ["", None, "2024-02-30", "07/03/2024", "soon"])
def test_parse_date_rejects_garbage(raw):
    assert parse_date(raw) is None


def test_normalize_pads_month_and_day():
    assert normalize_date_iso("2024-1-5") == "2024-01-05"


def test_iso_weekday_monday_is_one():
    assert iso_weekday("2024-01-01") == 1
    assert iso_weekday("2024-01-07") == 7


def test_add_days_crosses_month_end():
    assert add_days_iso("2024-01-31", 1) == "2024-02-01"


def test_date_range_is_inclusive():
    assert list(date_range("2024-01-30", "2024-02-02")) == ["2024-01-30", "2024-01-31", "2024-02-01", "2024-02-02"]
    assert list(date_range("2024-01-02", "2024-01-01")) == []
    with pytest.raises(ValueError):
        list(date_range("nope", "2024-01-01"))


def test_timestamps_round_trip():
    moment = datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc)
    stamp = to_timestamp_iso(moment)
    assert stamp == "2024-05-01T12:30:15.123Z"
    assert parse_timestamp(stamp) == moment.replace(microsecond=123000)
    assert parse_timestamp("") is None


def test_session_id_is_pure_function_of_inputs():
    assert scheduled_session_id("tpl", "day", "2024-01-01") == "tpl_day_2024-01-01"
    assert scheduled_session_id("tpl", "day", "2024-01-01") == scheduled_session_id("tpl", "day", "2024-01-01")


def test_create_id_is_prefixed_and_unique():
    first, second = create_id("workout"), create_id("workout")
    assert first.startswith("workout_")
    assert first != second
