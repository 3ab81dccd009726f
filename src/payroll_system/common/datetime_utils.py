from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator
from zoneinfo import ZoneInfo


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    """Parse HH:MM (or HH:MM:SS) into time."""
    parts = value.strip().split(":")
    return time(hour=int(parts[0]), minute=int(parts[1]), second=int(parts[2]) if len(parts) > 2 else 0)


def now_utc() -> datetime:
    """Current aware UTC time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def local_date(instant: datetime, tz_name: str) -> date:
    """Calendar date of an instant in the company timezone."""
    return ensure_aware(instant).astimezone(ZoneInfo(tz_name)).date()


def local_datetime(day: date, at: time, tz_name: str) -> datetime:
    """Aware UTC instant for a wall-clock time on a local day."""
    return datetime.combine(day, at, tzinfo=ZoneInfo(tz_name)).astimezone(timezone.utc)


def month_bounds(month: int, year: int) -> tuple[date, date]:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def iter_dates(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def hours_between(start: datetime, end: datetime) -> float:
    return (ensure_aware(end) - ensure_aware(start)).total_seconds() / 3600.0


def shift_duration_hours(shift_start: time, shift_end: time) -> float:
    """Length of a shift window; an end before the start wraps past midnight."""
    start_min = shift_start.hour * 60 + shift_start.minute
    end_min = shift_end.hour * 60 + shift_end.minute
    if end_min <= start_min:
        end_min += 24 * 60
    return (end_min - start_min) / 60.0
