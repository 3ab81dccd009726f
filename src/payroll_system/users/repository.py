from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import StaffProfile


class StaffRepository(Protocol):
    def get_by_id(self, user_id: int) -> Optional[StaffProfile]:
        raise NotImplementedError

    def list_active_staff(self, company_id: int) -> Sequence[StaffProfile]:
        raise NotImplementedError

    def list_reviewer_ids(self, company_id: int) -> Sequence[int]:
        """Managers and admins who review attendance for the company."""

        raise NotImplementedError
