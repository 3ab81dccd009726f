from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from decimal import Decimal
from typing import Optional

from ..core import constants as c
from ..common.datetime_utils import parse_hhmm


@dataclass(frozen=True)
class CompanySettings:
    """Per-company attendance and payroll rules."""

    company_id: int
    name: str
    owner_id: Optional[int] = None
    timezone: str = c.DEFAULT_TIMEZONE
    shift_start: time = parse_hhmm(c.DEFAULT_SHIFT_START)
    shift_end: time = parse_hhmm(c.DEFAULT_SHIFT_END)
    grace_minutes: int = c.DEFAULT_GRACE_MINUTES
    min_working_hours: float = c.DEFAULT_MIN_WORKING_HOURS
    max_daily_hours: float = c.DEFAULT_MAX_DAILY_HOURS
    overtime_threshold_hours: float = c.DEFAULT_OVERTIME_THRESHOLD_HOURS
    half_day_threshold_hours: float = c.DEFAULT_HALF_DAY_THRESHOLD_HOURS
    location_radius_meters: int = c.DEFAULT_LOCATION_RADIUS_METERS
    pf_percentage: Decimal = c.DEFAULT_PF_PERCENTAGE
    esi_percentage: Decimal = c.DEFAULT_ESI_PERCENTAGE
    overtime_multiplier: Decimal = c.DEFAULT_OVERTIME_MULTIPLIER
    late_penalty_enabled: bool = False
    late_penalty_per_minute: Decimal = Decimal("0")
    absent_penalty_enabled: bool = False
    absent_penalty_per_day: Decimal = Decimal("0")
    weekly_off_days: tuple[int, ...] = c.DEFAULT_WEEKLY_OFF_DAYS
