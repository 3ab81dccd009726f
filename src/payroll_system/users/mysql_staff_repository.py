from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import Role, SalaryType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import StaffProfile
from .repository import StaffRepository

_COLUMNS = """
    user_id, company_id, full_name, role, salary_type, base_salary, daily_rate,
    hourly_rate, overtime_rate, pf_esi_applicable, is_active
"""


def _optional_decimal(value) -> Optional[Decimal]:
    return Decimal(str(value)) if value is not None else None


def _to_profile(r: dict) -> StaffProfile:
    return StaffProfile(
        user_id=int(r["user_id"]),
        company_id=int(r["company_id"]),
        full_name=r["full_name"],
        role=Role(r["role"]),
        salary_type=SalaryType(r["salary_type"]),
        base_salary=Decimal(str(r["base_salary"] or 0)),
        daily_rate=_optional_decimal(r.get("daily_rate")),
        hourly_rate=_optional_decimal(r.get("hourly_rate")),
        overtime_rate=_optional_decimal(r.get("overtime_rate")),
        pf_esi_applicable=bool(r["pf_esi_applicable"]),
        is_active=bool(r["is_active"]),
    )


class MySQLStaffRepository(StaffRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[StaffProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM staff_profiles WHERE user_id=%s", (user_id,))
            r = fetchone(cur)
            return _to_profile(r) if r else None

    def list_active_staff(self, company_id: int) -> Sequence[StaffProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM staff_profiles
                WHERE company_id=%s AND role=%s AND is_active=1
                ORDER BY user_id
                """,
                (company_id, Role.STAFF.value),
            )
            return [_to_profile(r) for r in fetchall(cur)]

    def list_reviewer_ids(self, company_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id FROM staff_profiles
                WHERE company_id=%s AND role IN (%s, %s) AND is_active=1
                """,
                (company_id, Role.MANAGER.value, Role.ADMIN.value),
            )
            return [int(r["user_id"]) for r in fetchall(cur)]
