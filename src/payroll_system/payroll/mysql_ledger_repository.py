from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import LedgerEntryType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_db_datetime, to_db_datetime
from .model import LedgerEntry
from .repository import LedgerRepository

_COLUMNS = "entry_id, salary_id, user_id, company_id, type, amount, reason, cashbook_entry_id, created_by, created_at"


def _to_entry(r: dict) -> LedgerEntry:
    return LedgerEntry(
        entry_id=int(r["entry_id"]),
        salary_id=int(r["salary_id"]),
        user_id=int(r["user_id"]),
        company_id=int(r["company_id"]),
        type=LedgerEntryType(r["type"]),
        amount=Decimal(str(r["amount"])),
        reason=r.get("reason"),
        cashbook_entry_id=int(r["cashbook_entry_id"]) if r.get("cashbook_entry_id") is not None else None,
        created_by=int(r["created_by"]) if r.get("created_by") is not None else None,
        created_at=from_db_datetime(r.get("created_at")),
    )


class MySQLLedgerRepository(LedgerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, entry: LedgerEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO salary_ledger(salary_id, user_id, company_id, type, amount, reason,
                    cashbook_entry_id, created_by, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.salary_id,
                    entry.user_id,
                    entry.company_id,
                    entry.type.value,
                    entry.amount,
                    entry.reason,
                    entry.cashbook_entry_id,
                    entry.created_by,
                    to_db_datetime(entry.created_at),
                ),
            )
            return int(cur.lastrowid)

    def _select(self, where: str, params: tuple) -> Sequence[LedgerEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM salary_ledger WHERE {where} ORDER BY created_at, entry_id", params)
            return [_to_entry(r) for r in fetchall(cur)]

    def list_for_salary(self, salary_id: int) -> Sequence[LedgerEntry]:
        return self._select("salary_id=%s", (salary_id,))

    def list_by_cashbook_entry(self, cashbook_entry_id: int) -> Sequence[LedgerEntry]:
        return self._select("cashbook_entry_id=%s", (cashbook_entry_id,))

    def list_unlinked_for_salary(self, *, salary_id: int, user_id: int) -> Sequence[LedgerEntry]:
        return self._select("salary_id=%s AND user_id=%s AND cashbook_entry_id IS NULL", (salary_id, user_id))

    def update(self, entry: LedgerEntry) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE salary_ledger
                SET type=%s, amount=%s, reason=%s, cashbook_entry_id=%s
                WHERE entry_id=%s
                """,
                (entry.type.value, entry.amount, entry.reason, entry.cashbook_entry_id, entry.entry_id),
            )

    def delete(self, entry_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM salary_ledger WHERE entry_id=%s", (entry_id,))
