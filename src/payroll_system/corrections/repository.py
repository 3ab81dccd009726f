from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Protocol, Sequence

from ..core.enums import CorrectionType, RequestStatus
from .model import CorrectionRequest


class CorrectionRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        company_id: int,
        type: CorrectionType,
        attendance_date: date,
        reason: str,
        created_at: datetime,
        attendance_id: Optional[int] = None,
        end_date: Optional[date] = None,
        requested_time: Optional[time] = None,
        evidence: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, request_id: int) -> Optional[CorrectionRequest]:
        raise NotImplementedError

    def find_active(self, *, user_id: int, company_id: int, type: CorrectionType, attendance_date: date) -> Optional[CorrectionRequest]:
        """A PENDING or APPROVED request for the same user, day and type."""

        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        review_reason: Optional[str] = None,
        approved_time: Optional[time] = None,
    ) -> bool:
        """Move a PENDING request to a final status; False if it was no longer PENDING."""

        raise NotImplementedError

    def list_for_company(self, company_id: int, *, status: Optional[RequestStatus] = None, limit: int = 200) -> Sequence[CorrectionRequest]:
        raise NotImplementedError

    def list_for_user(self, user_id: int, *, limit: int = 200) -> Sequence[CorrectionRequest]:
        raise NotImplementedError
