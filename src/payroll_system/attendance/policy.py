from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from ..common.datetime_utils import ensure_aware, hours_between, local_datetime, shift_duration_hours
from ..common.money import round_hours


@dataclass(frozen=True)
class WorkedHours:
    working_hours: float
    overtime_hours: float


def get_shift_hours_for_salary(shift_start: time, shift_end: time, max_daily_hours: float) -> float:
    """Hours credited for an approved day: the shift window, capped at the daily maximum."""
    return round_hours(min(shift_duration_hours(shift_start, shift_end), float(max_daily_hours)))


def calculate_hours(
    punch_in: datetime,
    punch_out: datetime,
    *,
    shift_start: time,
    shift_end: time,
    overtime_threshold_hours: float,
) -> WorkedHours:
    worked = max(0.0, hours_between(punch_in, punch_out))
    overtime = max(0.0, worked - (shift_duration_hours(shift_start, shift_end) + float(overtime_threshold_hours)))
    return WorkedHours(working_hours=round_hours(worked), overtime_hours=round_hours(overtime))


def shift_close_at(day: date, punch_in: datetime, *, shift_start: time, shift_end: time, tz_name: str) -> datetime:
    """Shift end instant for a local day, never earlier than the punch-in."""
    end = local_datetime(day, shift_end, tz_name)
    if shift_end <= shift_start:
        end += timedelta(days=1)
    return max(end, ensure_aware(punch_in))
