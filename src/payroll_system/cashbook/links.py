"""Cashbook entry -> salary ledger entry resolution.

New writes always set ``salary_ledger.cashbook_entry_id``. Rows written before
that column existed are only connected through the cashbook ``reference``
(the salary id) and the shared user, so resolution is two-step: the direct
link first, then that legacy match. The fallback can be removed once old rows
are backfilled with a direct link.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ..payroll.model import LedgerEntry
from ..payroll.repository import LedgerRepository
from .model import CashbookEntry


def _reference_salary_id(reference: Optional[str]) -> Optional[int]:
    if not reference or not reference.strip().isdigit():
        return None
    return int(reference.strip())


def resolve_linked_ledger(entry: CashbookEntry, ledger: LedgerRepository) -> list[LedgerEntry]:
    direct = list(ledger.list_by_cashbook_entry(entry.entry_id))
    if direct:
        return direct

    salary_id = _reference_salary_id(entry.reference)
    if salary_id is None or entry.user_id is None:
        return []

    candidates = list(ledger.list_unlinked_for_salary(salary_id=salary_id, user_id=entry.user_id))
    if not candidates:
        return []
    amount = Decimal(entry.amount)
    for candidate in candidates:
        if abs(Decimal(candidate.amount)) == amount:
            return [candidate]
    return [candidates[0]]
