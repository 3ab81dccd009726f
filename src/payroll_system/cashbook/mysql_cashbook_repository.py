from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import CashDirection, CashTransactionType, PaymentMode
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import CashbookEntry
from .repository import CashbookRepository

_COLUMNS = """
    entry_id, company_id, user_id, transaction_type, direction, amount, payment_mode, reference,
    description, notes, transaction_date, created_by, created_at, is_reversed, reversal_of
"""


def _to_entry(r: dict) -> CashbookEntry:
    return CashbookEntry(
        entry_id=int(r["entry_id"]),
        company_id=int(r["company_id"]),
        user_id=int(r["user_id"]) if r.get("user_id") is not None else None,
        transaction_type=CashTransactionType(r["transaction_type"]),
        direction=CashDirection(r["direction"]),
        amount=Decimal(str(r["amount"])),
        payment_mode=PaymentMode(r["payment_mode"]),
        reference=r.get("reference"),
        description=r.get("description"),
        notes=r.get("notes"),
        transaction_date=r["transaction_date"],
        created_by=int(r["created_by"]) if r.get("created_by") is not None else None,
        created_at=from_db_datetime(r.get("created_at")),
        is_reversed=bool(r["is_reversed"]),
        reversal_of=int(r["reversal_of"]) if r.get("reversal_of") is not None else None,
    )


class MySQLCashbookRepository(CashbookRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, entry_id: int, *, for_update: bool = False) -> Optional[CashbookEntry]:
        lock = " FOR UPDATE" if for_update else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM cashbook_entries WHERE entry_id=%s{lock}", (entry_id,))
            r = fetchone(cur)
            return _to_entry(r) if r else None

    def create(self, entry: CashbookEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO cashbook_entries(company_id, user_id, transaction_type, direction, amount,
                    payment_mode, reference, description, notes, transaction_date, created_by,
                    created_at, is_reversed, reversal_of)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.company_id,
                    entry.user_id,
                    entry.transaction_type.value,
                    entry.direction.value,
                    abs(entry.amount),
                    entry.payment_mode.value,
                    entry.reference,
                    entry.description,
                    entry.notes,
                    entry.transaction_date,
                    entry.created_by,
                    to_db_datetime(entry.created_at),
                    int(entry.is_reversed),
                    entry.reversal_of,
                ),
            )
            return int(cur.lastrowid)

    def update(self, entry: CashbookEntry) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE cashbook_entries
                SET user_id=%s, transaction_type=%s, direction=%s, amount=%s, payment_mode=%s,
                    reference=%s, description=%s, notes=%s, transaction_date=%s, is_reversed=%s
                WHERE entry_id=%s
                """,
                (
                    entry.user_id,
                    entry.transaction_type.value,
                    entry.direction.value,
                    abs(entry.amount),
                    entry.payment_mode.value,
                    entry.reference,
                    entry.description,
                    entry.notes,
                    entry.transaction_date,
                    int(entry.is_reversed),
                    entry.entry_id,
                ),
            )

    def delete(self, entry_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM cashbook_entries WHERE entry_id=%s", (entry_id,))

    def list_for_company(
        self,
        company_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[CashbookEntry]:
        sql = f"SELECT {_COLUMNS} FROM cashbook_entries WHERE company_id=%s"
        params: list = [company_id]
        if start:
            sql += " AND transaction_date >= %s"
            params.append(start)
        if end:
            sql += " AND transaction_date <= %s"
            params.append(end)
        sql += " ORDER BY transaction_date DESC, entry_id DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_entry(r) for r in fetchall(cur)]
