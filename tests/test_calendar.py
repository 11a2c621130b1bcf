"""Tests for calendar day keys."""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest

from burn_tracker.domain.calendar import CalendarDay, day_key_for_timestamp


def test_key_is_zero_padded() -> None:
    assert CalendarDay(2026, 3, 7).key == "2026/03/07"


def test_parse_round_trips_key() -> None:
    assert CalendarDay.parse("2026/10/18") == CalendarDay(2026, 10, 18)


@pytest.mark.parametrize("raw", ["", "2026-10-18", "2026/13/01", "2026/02/30", "a/b/c"])
def test_parse_rejects_malformed_keys(raw: str) -> None:
    with pytest.raises(ValueError):
        CalendarDay.parse(raw)


def test_from_datetime_uses_local_timezone() -> None:
    instant = datetime(2026, 10, 18, 23, 30, tzinfo=UTC)

    assert CalendarDay.from_datetime(instant, ZoneInfo("UTC")) == CalendarDay(
        2026, 10, 18
    )
    assert CalendarDay.from_datetime(instant, ZoneInfo("Asia/Tokyo")) == CalendarDay(
        2026, 10, 19
    )


def test_previous_crosses_year_boundary() -> None:
    assert CalendarDay(2026, 1, 1).previous() == CalendarDay(2025, 12, 31)


def test_day_key_for_timestamp_falls_back_to_unknown() -> None:
    tz = ZoneInfo("UTC")

    assert day_key_for_timestamp("2026-10-18T09:30:00+00:00", tz) == "2026/10/18"
    assert day_key_for_timestamp("", tz) == "Unknown"
    assert day_key_for_timestamp(None, tz) == "Unknown"
    assert day_key_for_timestamp("yesterday", tz) == "Unknown"
