from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, normalize_mysql_time
from .model import CompanySettings
from .repository import CompanyRepository


def _parse_off_days(value: Optional[str]) -> tuple[int, ...]:
    if not value:
        return ()
    return tuple(sorted(int(v) for v in value.split(",") if v.strip()))


class MySQLCompanyRepository(CompanyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, company_id: int) -> Optional[CompanySettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM companies WHERE company_id=%s", (company_id,))
            r = fetchone(cur)
            if not r:
                return None
            return CompanySettings(
                company_id=int(r["company_id"]),
                name=r["name"],
                owner_id=int(r["owner_id"]) if r.get("owner_id") is not None else None,
                timezone=r["timezone"],
                shift_start=normalize_mysql_time(r["shift_start"]),
                shift_end=normalize_mysql_time(r["shift_end"]),
                grace_minutes=int(r["grace_minutes"]),
                min_working_hours=float(r["min_working_hours"]),
                max_daily_hours=float(r["max_daily_hours"]),
                overtime_threshold_hours=float(r["overtime_threshold_hours"]),
                half_day_threshold_hours=float(r["half_day_threshold_hours"]),
                location_radius_meters=int(r["location_radius_meters"]),
                pf_percentage=Decimal(str(r["pf_percentage"])),
                esi_percentage=Decimal(str(r["esi_percentage"])),
                overtime_multiplier=Decimal(str(r["overtime_multiplier"])),
                late_penalty_enabled=bool(r["late_penalty_enabled"]),
                late_penalty_per_minute=Decimal(str(r["late_penalty_per_minute"])),
                absent_penalty_enabled=bool(r["absent_penalty_enabled"]),
                absent_penalty_per_day=Decimal(str(r["absent_penalty_per_day"])),
                weekly_off_days=_parse_off_days(r.get("weekly_off_days")),
            )

    def save_settings(self, settings: CompanySettings) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE companies
                SET name=%s, timezone=%s, shift_start=%s, shift_end=%s, grace_minutes=%s,
                    min_working_hours=%s, max_daily_hours=%s, overtime_threshold_hours=%s,
                    half_day_threshold_hours=%s, location_radius_meters=%s, pf_percentage=%s,
                    esi_percentage=%s, overtime_multiplier=%s, late_penalty_enabled=%s,
                    late_penalty_per_minute=%s, absent_penalty_enabled=%s, absent_penalty_per_day=%s,
                    weekly_off_days=%s
                WHERE company_id=%s
                """,
                (
                    settings.name,
                    settings.timezone,
                    settings.shift_start,
                    settings.shift_end,
                    settings.grace_minutes,
                    settings.min_working_hours,
                    settings.max_daily_hours,
                    settings.overtime_threshold_hours,
                    settings.half_day_threshold_hours,
                    settings.location_radius_meters,
                    settings.pf_percentage,
                    settings.esi_percentage,
                    settings.overtime_multiplier,
                    int(settings.late_penalty_enabled),
                    settings.late_penalty_per_minute,
                    int(settings.absent_penalty_enabled),
                    settings.absent_penalty_per_day,
                    ",".join(str(d) for d in settings.weekly_off_days),
                    settings.company_id,
                ),
            )
