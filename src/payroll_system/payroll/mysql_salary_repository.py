from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.enums import BreakdownType, SalaryStatus, SalaryType
from ..core.exceptions import DuplicateRecordError, SalaryLocked
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import Salary, SalaryBreakdown
from .repository import SalaryRepository

_COLUMNS = """
    salary_id, user_id, company_id, month, year, salary_type, status, total_days, approved_days,
    leave_days, absent_days, working_hours, overtime_hours, late_minutes, base_amount,
    overtime_amount, penalty_amount, deductions, gross_amount, net_amount, version,
    approved_by, approved_at, rejection_reason, paid_at, locked_at, payment_method,
    payment_reference, created_at
"""


def _to_salary(r: dict, breakdowns: tuple[SalaryBreakdown, ...] = ()) -> Salary:
    return Salary(
        salary_id=int(r["salary_id"]),
        user_id=int(r["user_id"]),
        company_id=int(r["company_id"]),
        month=int(r["month"]),
        year=int(r["year"]),
        salary_type=SalaryType(r["salary_type"]),
        status=SalaryStatus(r["status"]),
        total_days=int(r["total_days"]),
        approved_days=int(r["approved_days"]),
        leave_days=int(r["leave_days"]),
        absent_days=int(r["absent_days"]),
        working_hours=float(r["working_hours"]),
        overtime_hours=float(r["overtime_hours"]),
        late_minutes=int(r["late_minutes"]),
        base_amount=Decimal(str(r["base_amount"])),
        overtime_amount=Decimal(str(r["overtime_amount"])),
        penalty_amount=Decimal(str(r["penalty_amount"])),
        deductions=Decimal(str(r["deductions"])),
        gross_amount=Decimal(str(r["gross_amount"])),
        net_amount=Decimal(str(r["net_amount"])),
        version=int(r["version"]),
        approved_by=int(r["approved_by"]) if r.get("approved_by") is not None else None,
        approved_at=from_db_datetime(r.get("approved_at")),
        rejection_reason=r.get("rejection_reason"),
        paid_at=from_db_datetime(r.get("paid_at")),
        locked_at=from_db_datetime(r.get("locked_at")),
        payment_method=r.get("payment_method"),
        payment_reference=r.get("payment_reference"),
        created_at=from_db_datetime(r.get("created_at")),
        breakdowns=breakdowns,
    )


def _values(s: Salary) -> tuple:
    return (
        s.salary_type.value,
        s.status.value,
        s.total_days,
        s.approved_days,
        s.leave_days,
        s.absent_days,
        s.working_hours,
        s.overtime_hours,
        s.late_minutes,
        s.base_amount,
        s.overtime_amount,
        s.penalty_amount,
        s.deductions,
        s.gross_amount,
        s.net_amount,
        s.version,
        s.approved_by,
        to_db_datetime(s.approved_at),
        s.rejection_reason,
        to_db_datetime(s.paid_at),
        to_db_datetime(s.locked_at),
        s.payment_method,
        s.payment_reference,
    )


class MySQLSalaryRepository(SalaryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _breakdowns(self, cur, salary_id: int) -> tuple[SalaryBreakdown, ...]:
        cur.execute(
            """
            SELECT type, description, amount, quantity, rate
            FROM salary_breakdowns WHERE salary_id=%s ORDER BY breakdown_id
            """,
            (salary_id,),
        )
        return tuple(
            SalaryBreakdown(
                type=BreakdownType(r["type"]),
                description=r["description"],
                amount=Decimal(str(r["amount"])),
                quantity=float(r["quantity"]) if r.get("quantity") is not None else None,
                rate=Decimal(str(r["rate"])) if r.get("rate") is not None else None,
            )
            for r in fetchall(cur)
        )

    def _write_breakdowns(self, cur, salary_id: int, lines: Sequence[SalaryBreakdown]) -> None:
        cur.execute("DELETE FROM salary_breakdowns WHERE salary_id=%s", (salary_id,))
        for line in lines:
            cur.execute(
                """
                INSERT INTO salary_breakdowns(salary_id, type, description, amount, quantity, rate)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (salary_id, line.type.value, line.description, line.amount, line.quantity, line.rate),
            )

    def get_by_id(self, salary_id: int, *, for_update: bool = False) -> Optional[Salary]:
        lock = " FOR UPDATE" if for_update else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM salaries WHERE salary_id=%s{lock}", (salary_id,))
            r = fetchone(cur)
            if not r:
                return None
            return _to_salary(r, self._breakdowns(cur, int(r["salary_id"])))

    def get_for_period(self, *, user_id: int, company_id: int, month: int, year: int) -> Optional[Salary]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM salaries
                WHERE user_id=%s AND company_id=%s AND month=%s AND year=%s
                """,
                (user_id, company_id, month, year),
            )
            r = fetchone(cur)
            if not r:
                return None
            return _to_salary(r, self._breakdowns(cur, int(r["salary_id"])))

    def list_for_period(self, *, company_id: int, month: int, year: int) -> Sequence[Salary]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM salaries
                WHERE company_id=%s AND month=%s AND year=%s
                ORDER BY user_id
                """,
                (company_id, month, year),
            )
            return [_to_salary(r) for r in fetchall(cur)]

    def create(self, salary: Salary) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO salaries(user_id, company_id, month, year, salary_type, status, total_days,
                        approved_days, leave_days, absent_days, working_hours, overtime_hours, late_minutes,
                        base_amount, overtime_amount, penalty_amount, deductions, gross_amount, net_amount,
                        version, approved_by, approved_at, rejection_reason, paid_at, locked_at,
                        payment_method, payment_reference, created_at)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (salary.user_id, salary.company_id, salary.month, salary.year)
                    + _values(salary)
                    + (to_db_datetime(salary.created_at),),
                )
                salary_id = int(cur.lastrowid)
                self._write_breakdowns(cur, salary_id, salary.breakdowns)
                return salary_id
        except mysql.connector.IntegrityError as exc:
            if exc.errno == errorcode.ER_DUP_ENTRY:
                raise DuplicateRecordError("Salary already exists for this period") from exc
            raise

    def update(self, salary: Salary) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE salaries
                SET salary_type=%s, status=%s, total_days=%s, approved_days=%s, leave_days=%s,
                    absent_days=%s, working_hours=%s, overtime_hours=%s, late_minutes=%s,
                    base_amount=%s, overtime_amount=%s, penalty_amount=%s, deductions=%s,
                    gross_amount=%s, net_amount=%s, version=%s, approved_by=%s, approved_at=%s,
                    rejection_reason=%s, paid_at=%s, locked_at=%s, payment_method=%s,
                    payment_reference=%s
                WHERE salary_id=%s AND locked_at IS NULL
                """,
                _values(salary) + (salary.salary_id,),
            )
            if cur.rowcount == 0:
                cur.execute("SELECT locked_at FROM salaries WHERE salary_id=%s", (salary.salary_id,))
                r = fetchone(cur)
                if r and r["locked_at"] is not None:
                    raise SalaryLocked()
            self._write_breakdowns(cur, salary.salary_id, salary.breakdowns)
