from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.enums import AttendanceStatus
from ..core.exceptions import DuplicateRecordError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, user_id, company_id, attendance_date, status, punch_in, punch_out,
    working_hours, overtime_hours, is_late, late_minutes, punch_in_image, punch_out_image,
    latitude, longitude, approved_by, approved_at, note
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        company_id=int(r["company_id"]),
        attendance_date=r["attendance_date"],
        status=AttendanceStatus(r["status"]),
        punch_in=from_db_datetime(r.get("punch_in")),
        punch_out=from_db_datetime(r.get("punch_out")),
        working_hours=float(r["working_hours"] or 0),
        overtime_hours=float(r["overtime_hours"] or 0),
        is_late=bool(r["is_late"]),
        late_minutes=int(r["late_minutes"] or 0),
        punch_in_image=r.get("punch_in_image"),
        punch_out_image=r.get("punch_out_image"),
        latitude=float(r["latitude"]) if r.get("latitude") is not None else None,
        longitude=float(r["longitude"]) if r.get("longitude") is not None else None,
        approved_by=int(r["approved_by"]) if r.get("approved_by") is not None else None,
        approved_at=from_db_datetime(r.get("approved_at")),
        note=r.get("note"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE attendance_id=%s", (attendance_id,))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_for_user_and_date(self, user_id: int, company_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance
                WHERE user_id=%s AND company_id=%s AND attendance_date=%s
                """,
                (user_id, company_id, attendance_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def find_open_session(self, user_id: int, company_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance
                WHERE user_id=%s AND company_id=%s
                  AND punch_in IS NOT NULL AND punch_out IS NULL
                  AND status IN (%s, %s)
                ORDER BY punch_in DESC
                LIMIT 1
                """,
                (user_id, company_id, AttendanceStatus.PENDING.value, AttendanceStatus.APPROVED.value),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def create(
        self,
        *,
        user_id: int,
        company_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        punch_in: Optional[datetime] = None,
        punch_in_image: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        is_late: bool = False,
        late_minutes: int = 0,
        working_hours: float = 0.0,
        note: Optional[str] = None,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance(user_id, company_id, attendance_date, status, punch_in,
                        punch_in_image, latitude, longitude, is_late, late_minutes, working_hours, note)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        user_id,
                        company_id,
                        attendance_date,
                        status.value,
                        to_db_datetime(punch_in),
                        punch_in_image,
                        latitude,
                        longitude,
                        int(is_late),
                        int(late_minutes),
                        working_hours,
                        note,
                    ),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as exc:
            if exc.errno == errorcode.ER_DUP_ENTRY:
                raise DuplicateRecordError("Attendance already exists for this date") from exc
            raise

    def update(self, record: AttendanceRecord) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET status=%s, punch_in=%s, punch_out=%s, working_hours=%s, overtime_hours=%s,
                    is_late=%s, late_minutes=%s, punch_in_image=%s, punch_out_image=%s,
                    latitude=%s, longitude=%s, approved_by=%s, approved_at=%s, note=%s
                WHERE attendance_id=%s
                """,
                (
                    record.status.value,
                    to_db_datetime(record.punch_in),
                    to_db_datetime(record.punch_out),
                    record.working_hours,
                    record.overtime_hours,
                    int(record.is_late),
                    record.late_minutes,
                    record.punch_in_image,
                    record.punch_out_image,
                    record.latitude,
                    record.longitude,
                    record.approved_by,
                    to_db_datetime(record.approved_at),
                    record.note,
                    record.attendance_id,
                ),
            )
            return cur.rowcount > 0

    def list_for_period(self, *, user_id: int, company_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance
                WHERE user_id=%s AND company_id=%s AND attendance_date BETWEEN %s AND %s
                ORDER BY attendance_date
                """,
                (user_id, company_id, start, end),
            )
            return [_to_record(r) for r in fetchall(cur)]
