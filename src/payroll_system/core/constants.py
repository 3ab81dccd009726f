"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_TIMEZONE = "Asia/Kolkata"
DEFAULT_SHIFT_START = "09:00"
DEFAULT_SHIFT_END = "18:00"
DEFAULT_GRACE_MINUTES = 30
DEFAULT_MIN_WORKING_HOURS = 4.0
DEFAULT_MAX_DAILY_HOURS = 16.0
DEFAULT_OVERTIME_THRESHOLD_HOURS = 2.0
DEFAULT_LOCATION_RADIUS_METERS = 100
DEFAULT_PF_PERCENTAGE = Decimal("12")
DEFAULT_ESI_PERCENTAGE = Decimal("0.75")
DEFAULT_HALF_DAY_THRESHOLD_HOURS = 4.0
DEFAULT_OVERTIME_MULTIPLIER = Decimal("1.5")
DEFAULT_WEEKLY_OFF_DAYS = (6,)  # Sunday

STALE_SESSION_HOURS = 20
EARLY_PUNCH_IN_MINUTES = 30
CORRECTION_WINDOW_DAYS = 7
MAX_LEAVE_RANGE_DAYS = 31
HOURS_PER_MONTH_FALLBACK = Decimal("160")

MONEY_QUANT = Decimal("0.01")
