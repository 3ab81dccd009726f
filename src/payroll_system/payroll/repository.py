from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import LedgerEntry, Salary


class SalaryRepository(Protocol):
    def get_by_id(self, salary_id: int, *, for_update: bool = False) -> Optional[Salary]:
        raise NotImplementedError

    def get_for_period(self, *, user_id: int, company_id: int, month: int, year: int) -> Optional[Salary]:
        raise NotImplementedError

    def list_for_period(self, *, company_id: int, month: int, year: int) -> Sequence[Salary]:
        raise NotImplementedError

    def create(self, salary: Salary) -> int:
        """Insert with breakdowns; raises DuplicateRecordError for an existing period."""

        raise NotImplementedError

    def update(self, salary: Salary) -> None:
        """Overwrite an unlocked row and its breakdowns; raises SalaryLocked otherwise."""

        raise NotImplementedError


class LedgerRepository(Protocol):
    def create(self, entry: LedgerEntry) -> int:
        raise NotImplementedError

    def list_for_salary(self, salary_id: int) -> Sequence[LedgerEntry]:
        raise NotImplementedError

    def list_by_cashbook_entry(self, cashbook_entry_id: int) -> Sequence[LedgerEntry]:
        raise NotImplementedError

    def list_unlinked_for_salary(self, *, salary_id: int, user_id: int) -> Sequence[LedgerEntry]:
        """Entries written before cashbook linkage existed."""

        raise NotImplementedError

    def update(self, entry: LedgerEntry) -> None:
        raise NotImplementedError

    def delete(self, entry_id: int) -> None:
        raise NotImplementedError
