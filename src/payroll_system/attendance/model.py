from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus

_CLOSED_STATUSES = {AttendanceStatus.REJECTED, AttendanceStatus.ABSENT, AttendanceStatus.LEAVE}


@dataclass(frozen=True)
class AttendanceRecord:
    """One staff member's attendance for one local calendar day."""

    attendance_id: int
    user_id: int
    company_id: int
    attendance_date: date
    status: AttendanceStatus
    punch_in: Optional[datetime] = None
    punch_out: Optional[datetime] = None
    working_hours: float = 0.0
    overtime_hours: float = 0.0
    is_late: bool = False
    late_minutes: int = 0
    punch_in_image: Optional[str] = None
    punch_out_image: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    note: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.punch_in is not None and self.punch_out is None and self.status not in _CLOSED_STATUSES


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
