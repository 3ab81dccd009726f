from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import CashbookEntry


class CashbookRepository(Protocol):
    def get_by_id(self, entry_id: int, *, for_update: bool = False) -> Optional[CashbookEntry]:
        raise NotImplementedError

    def create(self, entry: CashbookEntry) -> int:
        raise NotImplementedError

    def update(self, entry: CashbookEntry) -> None:
        raise NotImplementedError

    def delete(self, entry_id: int) -> None:
        raise NotImplementedError

    def list_for_company(
        self,
        company_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[CashbookEntry]:
        raise NotImplementedError
