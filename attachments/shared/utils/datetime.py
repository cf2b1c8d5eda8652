"""UTC helpers. Records, cutoffs and token expiries are always timezone-aware."""

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    return datetime.now(UTC)


def minutes_ago(minutes: int, now: datetime | None = None) -> datetime:
    """Cutoff for "untouched for at least minutes": now - minutes."""
    return (now or utc_now()) - timedelta(minutes=minutes)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Attach UTC to naive values (SQLite returns them) and convert aware ones."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_timestamp(dt: datetime) -> int:
    """Whole epoch seconds; naive values are read as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp())


def from_timestamp_utc(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=UTC)
