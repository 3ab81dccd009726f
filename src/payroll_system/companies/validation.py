from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..common.validators import require_range
from ..core.exceptions import ValidationError
from .model import CompanySettings


def validate_settings(settings: CompanySettings) -> None:
    """Reject settings that would make attendance or payroll maths meaningless."""

    require_range(settings.grace_minutes, "grace_minutes", minimum=0, maximum=180)
    require_range(settings.min_working_hours, "min_working_hours", minimum=0, maximum=24)
    require_range(settings.max_daily_hours, "max_daily_hours", minimum=1, maximum=24)
    require_range(settings.overtime_threshold_hours, "overtime_threshold_hours", minimum=0, maximum=12)
    require_range(settings.half_day_threshold_hours, "half_day_threshold_hours", minimum=0, maximum=24)
    require_range(settings.location_radius_meters, "location_radius_meters", minimum=10, maximum=10000)
    require_range(settings.pf_percentage, "pf_percentage", minimum=0, maximum=100)
    require_range(settings.esi_percentage, "esi_percentage", minimum=0, maximum=100)
    require_range(settings.overtime_multiplier, "overtime_multiplier", minimum=1, maximum=5)

    if settings.min_working_hours > settings.max_daily_hours:
        raise ValidationError("min_working_hours cannot exceed max_daily_hours", field="min_working_hours")
    if settings.shift_start == settings.shift_end:
        raise ValidationError("Shift start and end must differ", field="shift_end")
    if settings.late_penalty_per_minute < 0:
        raise ValidationError("late_penalty_per_minute cannot be negative", field="late_penalty_per_minute")
    if settings.absent_penalty_per_day < 0:
        raise ValidationError("absent_penalty_per_day cannot be negative", field="absent_penalty_per_day")
    if any(d < 0 or d > 6 for d in settings.weekly_off_days) or len(set(settings.weekly_off_days)) >= 7:
        raise ValidationError("weekly_off_days must be weekday numbers 0-6 leaving at least one working day", field="weekly_off_days")

    try:
        ZoneInfo(settings.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone {settings.timezone!r}", field="timezone")
