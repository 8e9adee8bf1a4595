"""Tests for duration, timestamp and date-window helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from app.services.youtube.time_utils import (
    date_chunks,
    format_rfc3339,
    parse_iso8601_duration,
    parse_timestamp,
    subtract_years,
)


@pytest.mark.parametrize(
    "duration,expected",
    [
        ("PT1H5M10S", 3910),
        ("PT1H", 3600),
        ("PT5M", 300),
        ("PT45S", 45),
        ("PT2H30S", 7230),
        ("PT0S", 0),
        ("PT", 0),
    ],
)
def test_parse_duration(duration: str, expected: int) -> None:
    assert parse_iso8601_duration(duration) == expected


@pytest.mark.parametrize("duration", ["", None, "garbage", "1H5M", "P1D"])
def test_parse_duration_unparsable_is_zero(duration) -> None:
    assert parse_iso8601_duration(duration) == 0


def test_parse_timestamp_forms() -> None:
    assert parse_timestamp("2024-01-15") == datetime(2024, 1, 15, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-15T10:30:00Z") == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    assert parse_timestamp("not a date") is None
    assert parse_timestamp(None) is None


def test_format_rfc3339_uses_z_suffix() -> None:
    assert format_rfc3339(datetime(2024, 1, 15, 10, 30)) == "2024-01-15T10:30:00Z"
    eastern = timezone(timedelta(hours=-5))
    assert format_rfc3339(datetime(2024, 1, 15, 5, 30, tzinfo=eastern)) == "2024-01-15T10:30:00Z"


def test_subtract_years_handles_leap_day() -> None:
    assert subtract_years(datetime(2024, 2, 29), 1) == datetime(2023, 2, 28)
    assert subtract_years(datetime(2024, 6, 1), 5) == datetime(2019, 6, 1)


def test_date_chunks_cover_window_exactly() -> None:
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    end = datetime(2024, 3, 10, 6, tzinfo=timezone.utc)

    chunks = date_chunks(start, end, 14)

    assert chunks[0][0] == start
    assert chunks[-1][1] == end
    for (_, previous_end), (next_start, _) in zip(chunks, chunks[1:]):
        assert previous_end == next_start
    assert all(chunk_end - chunk_start <= timedelta(days=14) for chunk_start, chunk_end in chunks)
    assert all(chunk_end - chunk_start == timedelta(days=14) for chunk_start, chunk_end in chunks[:-1])


def test_date_chunks_short_and_empty_windows() -> None:
    start = datetime(2024, 1, 1)
    assert date_chunks(start, start + timedelta(days=3), 14) == [(start, start + timedelta(days=3))]
    assert date_chunks(start, start, 14) == []
    with pytest.raises(ValueError):
        date_chunks(start, start + timedelta(days=1), 0)
