"""Calendar helpers shared by the analytics engines."""

from datetime import date, datetime, time, timedelta, timezone, tzinfo

SECONDS_PER_DAY = 86400.0


def ensure_utc(dt: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_local(dt: datetime, tz: tzinfo) -> datetime:
    return ensure_utc(dt).astimezone(tz)


def local_date(dt: datetime, tz: tzinfo) -> date:
    return to_local(dt, tz).date()


def local_hour(dt: datetime, tz: tzinfo) -> int:
    return to_local(dt, tz).hour


def days_between(earlier: datetime, later: datetime) -> float:
    """Fractional days from earlier to later (negative if reversed)."""
    return (ensure_utc(later) - ensure_utc(earlier)).total_seconds() / SECONDS_PER_DAY


def next_occurrence_of_hour(now: datetime, hour: int, tz: tzinfo) -> datetime:
    """
    The next wall-clock time at `hour`:00 in tz strictly after now.

    Returns an aware datetime in tz. On a day where `hour` falls in a DST
    gap the result is shifted forward by the gap (02:00 becomes 03:00 on a
    spring-forward day), which is the time a wall clock would actually show.
    """
    today = to_local(now, tz).date()
    candidate = _wall_time(today, hour, tz)
    if candidate <= ensure_utc(now):
        candidate = _wall_time(today + timedelta(days=1), hour, tz)
    return candidate


def _wall_time(day: date, hour: int, tz: tzinfo) -> datetime:
    # Round trip through UTC so times inside a DST gap resolve to real ones
    local = datetime.combine(day, time(hour), tzinfo=tz)
    return local.astimezone(timezone.utc).astimezone(tz)
