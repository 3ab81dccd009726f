from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import CorrectionType, RequestStatus

ATTENDANCE_TYPES = frozenset(
    {
        CorrectionType.MISSED_PUNCH_IN,
        CorrectionType.MISSED_PUNCH_OUT,
        CorrectionType.ATTENDANCE_MISS,
        CorrectionType.LEAVE_REQUEST,
    }
)


@dataclass(frozen=True)
class CorrectionRequest:
    request_id: int
    user_id: int
    company_id: int
    type: CorrectionType
    attendance_date: date
    reason: str
    status: RequestStatus
    created_at: datetime
    attendance_id: Optional[int] = None
    end_date: Optional[date] = None
    requested_time: Optional[time] = None
    evidence: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_reason: Optional[str] = None
    approved_time: Optional[time] = None


@dataclass(frozen=True)
class ReviewOutcome:
    request: CorrectionRequest
    affected_dates: tuple[date, ...] = ()
