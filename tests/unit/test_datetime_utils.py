"""Unit tests for the week window used by the default event listing."""

from datetime import datetime, timezone

import pytest
from libs.common.datetime_utils import ensure_utc, week_window

PARIS = "Europe/Paris"


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.mark.unit
def test_midweek_window_is_monday_to_sunday_local_time():
    # Wednesday 10 January 2024, 13:00 in Paris (UTC+1)
    start, end = week_window(_utc(2024, 1, 10, 12), PARIS, 10)

    assert start == _utc(2024, 1, 7, 23)
    assert end == _utc(2024, 1, 14, 22, 59, 59, 999999)


@pytest.mark.unit
def test_saturday_morning_keeps_the_current_week():
    # Saturday 13 January 2024, 09:00 in Paris
    _, end = week_window(_utc(2024, 1, 13, 8), PARIS, 10)
    assert end == _utc(2024, 1, 14, 22, 59, 59, 999999)


@pytest.mark.unit
def test_saturday_from_rollover_hour_includes_next_week():
    # Saturday 13 January 2024, 11:30 in Paris
    start, end = week_window(_utc(2024, 1, 13, 10, 30), PARIS, 10)

    assert start == _utc(2024, 1, 7, 23)
    assert end == _utc(2024, 1, 21, 22, 59, 59, 999999)


@pytest.mark.unit
def test_sunday_includes_next_week():
    _, end = week_window(_utc(2024, 1, 14, 7), PARIS, 10)
    assert end == _utc(2024, 1, 21, 22, 59, 59, 999999)


@pytest.mark.unit
def test_ensure_utc_handles_naive_and_offset_values():
    naive = datetime(2024, 1, 1, 10, 0)
    assert ensure_utc(naive) == _utc(2024, 1, 1, 10)
    assert ensure_utc(None) is None

    paris_noon = datetime.fromisoformat("2024-07-01T12:00:00+02:00")
    assert ensure_utc(paris_noon) == _utc(2024, 7, 1, 10)
