from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, company_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def find_open_session(self, user_id: int, company_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(
        self,
        *,
        user_id: int,
        company_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        punch_in: Optional[datetime] = None,
        punch_in_image: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        is_late: bool = False,
        late_minutes: int = 0,
        working_hours: float = 0.0,
        note: Optional[str] = None,
    ) -> int:
        """Insert a row; raises DuplicateRecordError when (user, company, date) exists."""

        raise NotImplementedError

    def update(self, record: AttendanceRecord) -> bool:
        raise NotImplementedError

    def list_for_period(self, *, user_id: int, company_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
