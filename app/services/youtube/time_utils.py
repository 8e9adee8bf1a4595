"""Duration, timestamp and date-window helpers for YouTube Data API calls."""

import re
from datetime import datetime, timedelta, timezone

_DURATION_PATTERN = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")
_DATE_ONLY_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


def parse_iso8601_duration(duration_iso: str | None) -> int:
    """Parse an ISO 8601 duration such as 'PT1H5M10S' to total seconds.

    Missing components count as zero; anything that does not follow the
    'PT#H#M#S' shape yields 0.
    """
    if not duration_iso:
        return 0

    match = _DURATION_PATTERN.match(duration_iso.strip())
    if not match:
        return 0

    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    seconds = int(match.group(3) or 0)

    return hours * 3600 + minutes * 60 + seconds


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp or a plain YYYY-MM-DD date into an aware UTC datetime."""
    if not value:
        return None

    cleaned = value.strip()
    if _DATE_ONLY_PATTERN.fullmatch(cleaned):
        cleaned = f"{cleaned}T00:00:00+00:00"
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(cleaned)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_rfc3339(dt: datetime) -> str:
    """Format datetimes as RFC3339 strings for the YouTube API."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")


def subtract_years(dt: datetime, years: int) -> datetime:
    """Move a datetime back by whole calendar years (Feb 29 lands on Feb 28)."""
    try:
        return dt.replace(year=dt.year - years)
    except ValueError:
        return dt.replace(year=dt.year - years, day=28)


def date_chunks(
    start: datetime,
    end: datetime,
    days: int = 14,
) -> list[tuple[datetime, datetime]]:
    """Split [start, end] into consecutive windows of `days`, earliest first.

    Each window starts where the previous one ended and the last window is
    clamped so that it ends exactly at `end`.
    """
    if days <= 0:
        raise ValueError("days must be positive")

    chunks: list[tuple[datetime, datetime]] = []
    step = timedelta(days=days)
    chunk_start = start
    while chunk_start < end:
        chunk_end = min(chunk_start + step, end)
        chunks.append((chunk_start, chunk_end))
        chunk_start = chunk_end
    return chunks
