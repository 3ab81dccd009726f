from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Sequence

from ..core.enums import CorrectionType, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, normalize_mysql_time, to_db_datetime
from .model import CorrectionRequest
from .repository import CorrectionRepository

_COLUMNS = """
    request_id, user_id, company_id, attendance_id, type, attendance_date, end_date,
    requested_time, approved_time, reason, evidence, status, reviewed_by, reviewed_at,
    review_reason, created_at
"""


def _to_request(r: dict) -> CorrectionRequest:
    return CorrectionRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        company_id=int(r["company_id"]),
        attendance_id=int(r["attendance_id"]) if r.get("attendance_id") is not None else None,
        type=CorrectionType(r["type"]),
        attendance_date=r["attendance_date"],
        end_date=r.get("end_date"),
        requested_time=normalize_mysql_time(r.get("requested_time")),
        approved_time=normalize_mysql_time(r.get("approved_time")),
        reason=r["reason"],
        evidence=r.get("evidence"),
        status=RequestStatus(r["status"]),
        reviewed_by=int(r["reviewed_by"]) if r.get("reviewed_by") is not None else None,
        reviewed_at=from_db_datetime(r.get("reviewed_at")),
        review_reason=r.get("review_reason"),
        created_at=from_db_datetime(r["created_at"]),
    )


class MySQLCorrectionRepository(CorrectionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        company_id: int,
        type: CorrectionType,
        attendance_date: date,
        reason: str,
        created_at: datetime,
        attendance_id: Optional[int] = None,
        end_date: Optional[date] = None,
        requested_time: Optional[time] = None,
        evidence: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO correction_requests(user_id, company_id, attendance_id, type, attendance_date,
                    end_date, requested_time, reason, evidence, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    user_id,
                    company_id,
                    attendance_id,
                    type.value,
                    attendance_date,
                    end_date,
                    requested_time,
                    reason,
                    evidence,
                    RequestStatus.PENDING.value,
                    to_db_datetime(created_at),
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, request_id: int) -> Optional[CorrectionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM correction_requests WHERE request_id=%s", (request_id,))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def find_active(self, *, user_id: int, company_id: int, type: CorrectionType, attendance_date: date) -> Optional[CorrectionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM correction_requests
                WHERE user_id=%s AND company_id=%s AND type=%s AND attendance_date=%s
                  AND status IN (%s, %s)
                LIMIT 1
                """,
                (
                    user_id,
                    company_id,
                    type.value,
                    attendance_date,
                    RequestStatus.PENDING.value,
                    RequestStatus.APPROVED.value,
                ),
            )
            r = fetchone(cur)
            return _to_request(r) if r else None

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        review_reason: Optional[str] = None,
        approved_time: Optional[time] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE correction_requests
                SET status=%s, reviewed_by=%s, reviewed_at=%s, review_reason=%s, approved_time=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    reviewed_by,
                    to_db_datetime(reviewed_at),
                    review_reason,
                    approved_time,
                    request_id,
                    RequestStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def list_for_company(self, company_id: int, *, status: Optional[RequestStatus] = None, limit: int = 200) -> Sequence[CorrectionRequest]:
        sql = f"SELECT {_COLUMNS} FROM correction_requests WHERE company_id=%s"
        params: list = [company_id]
        if status:
            sql += " AND status=%s"
            params.append(status.value)
        sql += " ORDER BY created_at DESC LIMIT %s"
        params.append(int(limit))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_request(r) for r in fetchall(cur)]

    def list_for_user(self, user_id: int, *, limit: int = 200) -> Sequence[CorrectionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM correction_requests
                WHERE user_id=%s
                ORDER BY created_at DESC
                LIMIT %s
                """,
                (user_id, int(limit)),
            )
            return [_to_request(r) for r in fetchall(cur)]
