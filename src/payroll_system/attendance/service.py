from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime, timedelta
from typing import Optional

from ..audit.service import AuditRecorder
from ..common.datetime_utils import hours_between, local_date, local_datetime, now_utc
from ..common.money import round_hours
from ..common.validators import require_non_empty, require_range
from ..companies.model import CompanySettings
from ..companies.repository import CompanyRepository
from ..core.constants import STALE_SESSION_HOURS
from ..core.enums import AttendanceStatus
from ..core.exceptions import (
    AlreadyOpenSession,
    DuplicateRecordError,
    InvalidStatusTransition,
    NoOpenSession,
    NotFoundError,
    PunchInNotAllowed,
    PunchOutNotAllowed,
    ValidationError,
)
from ..notifications.service import Notifier
from ..payroll.recalculation import RecalculationTrigger
from ..users.repository import StaffRepository
from .factory import PunchInStrategyFactory
from .model import AttendanceRecord, Location
from .policy import calculate_hours, get_shift_hours_for_salary, shift_close_at
from .repository import AttendanceRepository
from .transitions import validate_transition

logger = logging.getLogger(__name__)

STALE_NOTE = f"Auto-rejected: session open longer than {STALE_SESSION_HOURS} hours without punch-out"


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        companies: CompanyRepository,
        *,
        staff: Optional[StaffRepository] = None,
        trigger: Optional[RecalculationTrigger] = None,
        notifier: Optional[Notifier] = None,
        audit: Optional[AuditRecorder] = None,
        strategy_factory: Optional[PunchInStrategyFactory] = None,
    ):
        self._attendance = attendance
        self._companies = companies
        self._staff = staff
        self._trigger = trigger
        self._notifier = notifier
        self._audit = audit
        self._factory = strategy_factory or PunchInStrategyFactory()

    def _settings(self, company_id: int) -> CompanySettings:
        settings = self._companies.get_by_id(int(company_id))
        if not settings:
            raise NotFoundError("Company not found")
        return settings

    def _get_record(self, attendance_id: int, company_id: Optional[int] = None) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record or (company_id is not None and record.company_id != int(company_id)):
            raise NotFoundError("Attendance record not found")
        return record

    @staticmethod
    def _is_stale(record: AttendanceRecord, now: datetime) -> bool:
        return record.punch_in is not None and now - record.punch_in > timedelta(hours=STALE_SESSION_HOURS)

    def _close_stale(self, record: AttendanceRecord, now: datetime, settings: CompanySettings) -> AttendanceRecord:
        if record.status == AttendanceStatus.APPROVED:
            # approved days keep status and policy hours; only the session is closed
            closed = dataclasses.replace(
                record,
                punch_out=shift_close_at(
                    record.attendance_date,
                    record.punch_in,
                    shift_start=settings.shift_start,
                    shift_end=settings.shift_end,
                    tz_name=settings.timezone,
                ),
            )
            self._attendance.update(closed)
            logger.warning(
                "Closed stale approved session %s for user=%s at shift end",
                record.attendance_id, record.user_id,
            )
            return closed

        validate_transition(record.status, AttendanceStatus.REJECTED)
        closed = dataclasses.replace(
            record,
            status=AttendanceStatus.REJECTED,
            punch_out=now,
            working_hours=0.0,
            overtime_hours=0.0,
            note=STALE_NOTE,
        )
        self._attendance.update(closed)
        logger.warning(
            "Auto-rejected stale session %s for user=%s (punch_in=%s)",
            record.attendance_id, record.user_id, record.punch_in.isoformat(),
        )
        if self._trigger:
            self._trigger.schedule(user_id=closed.user_id, company_id=closed.company_id, attendance_date=closed.attendance_date)
        return closed

    def punch_in(
        self,
        *,
        user_id: int,
        company_id: int,
        image: str,
        location: Optional[Location] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        image = require_non_empty(image, "image")
        now = now or now_utc()
        settings = self._settings(company_id)
        today = local_date(now, settings.timezone)

        open_session = self._attendance.find_open_session(int(user_id), int(company_id))
        if open_session:
            if not self._is_stale(open_session, now):
                raise AlreadyOpenSession()
            self._close_stale(open_session, now, settings)

        existing = self._attendance.get_for_user_and_date(int(user_id), int(company_id), today)
        if existing and (existing.punch_in is not None or existing.status != AttendanceStatus.PENDING):
            raise PunchInNotAllowed(f"Attendance for today is already recorded ({existing.status.value})")

        shift_start = local_datetime(today, settings.shift_start, settings.timezone)
        strategy = self._factory.for_punch_in(now=now, shift_start=shift_start, grace_minutes=settings.grace_minutes)
        decision = strategy.decide(now=now, shift_start=shift_start, grace_minutes=settings.grace_minutes)

        lat = location.latitude if location else None
        lng = location.longitude if location else None

        if existing:
            # Placeholder backfilled by a correction request.
            record = dataclasses.replace(
                existing,
                punch_in=now,
                punch_in_image=image,
                latitude=lat,
                longitude=lng,
                is_late=decision.is_late,
                late_minutes=decision.late_minutes,
                note=decision.note or existing.note,
            )
            self._attendance.update(record)
        else:
            try:
                attendance_id = self._attendance.create(
                    user_id=int(user_id),
                    company_id=int(company_id),
                    attendance_date=today,
                    status=AttendanceStatus.PENDING,
                    punch_in=now,
                    punch_in_image=image,
                    latitude=lat,
                    longitude=lng,
                    is_late=decision.is_late,
                    late_minutes=decision.late_minutes,
                    note=decision.note,
                )
            except DuplicateRecordError as exc:
                raise AlreadyOpenSession() from exc
            record = self._get_record(attendance_id)

        logger.info("User %s punched in (attendance=%s late=%s)", user_id, record.attendance_id, record.is_late)
        return record

    def punch_out(self, *, user_id: int, company_id: int, image: str, now: Optional[datetime] = None) -> AttendanceRecord:
        image = require_non_empty(image, "image")
        now = now or now_utc()
        settings = self._settings(company_id)

        session = self._attendance.find_open_session(int(user_id), int(company_id))
        if not session:
            raise NoOpenSession()
        if self._is_stale(session, now):
            self._close_stale(session, now, settings)
            raise NoOpenSession("Your previous session expired and was closed; please punch in again")

        worked = hours_between(session.punch_in, now)
        if worked < settings.min_working_hours:
            raise PunchOutNotAllowed(
                f"Minimum working time is {settings.min_working_hours:g} hours (worked {round_hours(worked):g})"
            )
        if worked > settings.max_daily_hours:
            raise PunchOutNotAllowed(f"Working time exceeds the daily maximum of {settings.max_daily_hours:g} hours")

        hours = calculate_hours(
            session.punch_in,
            now,
            shift_start=settings.shift_start,
            shift_end=settings.shift_end,
            overtime_threshold_hours=settings.overtime_threshold_hours,
        )
        record = dataclasses.replace(
            session,
            punch_out=now,
            punch_out_image=image,
            # approved days keep their policy hours
            working_hours=hours.working_hours if session.status == AttendanceStatus.PENDING else session.working_hours,
            overtime_hours=hours.overtime_hours,
        )
        self._attendance.update(record)
        logger.info("User %s punched out (attendance=%s hours=%s)", user_id, record.attendance_id, record.working_hours)

        if record.status == AttendanceStatus.APPROVED and self._trigger:
            self._trigger.schedule(user_id=record.user_id, company_id=record.company_id, attendance_date=record.attendance_date)
        return record

    def set_status(
        self,
        attendance_id: int,
        *,
        new_status: AttendanceStatus,
        approver_id: int,
        company_id: Optional[int] = None,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_utc()
        record = self._get_record(attendance_id, company_id)
        validate_transition(record.status, new_status)
        settings = self._settings(record.company_id)

        updated = self._with_status(record, new_status, settings, approver_id=approver_id, now=now)
        if note:
            updated = dataclasses.replace(updated, note=note)
        self._attendance.update(updated)
        logger.info(
            "Attendance %s %s -> %s by %s",
            record.attendance_id, record.status.value, new_status.value, approver_id,
        )

        self._after_change(updated, action="SET_ATTENDANCE_STATUS", actor_id=approver_id, meta={"from": record.status, "to": new_status})
        return updated

    def update_hours(
        self,
        attendance_id: int,
        *,
        working_hours: float,
        actor_id: int,
        company_id: Optional[int] = None,
        overtime_hours: Optional[float] = None,
    ) -> AttendanceRecord:
        record = self._get_record(attendance_id, company_id)
        if record.status in (AttendanceStatus.REJECTED, AttendanceStatus.ABSENT, AttendanceStatus.LEAVE):
            raise InvalidStatusTransition(f"Hours cannot be edited on a {record.status.value} record")

        hours = round_hours(require_range(working_hours, "working_hours", minimum=0, maximum=24))
        overtime = record.overtime_hours
        if overtime_hours is not None:
            overtime = round_hours(require_range(overtime_hours, "overtime_hours", minimum=0, maximum=24))
        updated = dataclasses.replace(record, working_hours=hours, overtime_hours=overtime)
        self._attendance.update(updated)

        self._after_change(
            updated,
            action="UPDATE_ATTENDANCE_HOURS",
            actor_id=actor_id,
            meta={"previous_hours": record.working_hours, "hours": hours},
            notify=False,
        )
        return updated

    def add_missing_attendance(
        self,
        *,
        user_id: int,
        company_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        actor_id: int,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        """Admin backfill of a day the staff member never punched."""
        now = now or now_utc()
        settings = self._settings(company_id)
        if attendance_date > local_date(now, settings.timezone):
            raise ValidationError("Attendance cannot be added for a future date", field="attendance_date")
        if status == AttendanceStatus.PENDING:
            raise ValidationError("A backfilled day needs a final status", field="status")
        if self._staff is not None:
            member = self._staff.get_by_id(int(user_id))
            if not member or member.company_id != int(company_id):
                raise NotFoundError("Staff member not found")

        try:
            attendance_id = self._attendance.create(
                user_id=int(user_id),
                company_id=int(company_id),
                attendance_date=attendance_date,
                status=AttendanceStatus.PENDING,
                note=note,
            )
        except DuplicateRecordError as exc:
            raise ValidationError("Attendance already exists for this date", field="attendance_date") from exc

        created = self._get_record(attendance_id)
        updated = self._with_status(created, status, settings, approver_id=actor_id, now=now)
        self._attendance.update(updated)
        self._after_change(updated, action="ADD_MISSING_ATTENDANCE", actor_id=actor_id, meta={"status": status})
        return updated

    def get_today(self, *, user_id: int, company_id: int, now: Optional[datetime] = None) -> Optional[AttendanceRecord]:
        settings = self._settings(company_id)
        return self._attendance.get_for_user_and_date(int(user_id), int(company_id), local_date(now or now_utc(), settings.timezone))

    @staticmethod
    def _with_status(
        record: AttendanceRecord,
        status: AttendanceStatus,
        settings: CompanySettings,
        *,
        approver_id: int,
        now: datetime,
    ) -> AttendanceRecord:
        changes: dict = {"status": status, "approved_by": int(approver_id), "approved_at": now}
        if status == AttendanceStatus.APPROVED:
            changes["working_hours"] = get_shift_hours_for_salary(
                settings.shift_start, settings.shift_end, settings.max_daily_hours
            )
        elif status in (AttendanceStatus.ABSENT, AttendanceStatus.LEAVE):
            changes["working_hours"] = 0.0
            changes["overtime_hours"] = 0.0
        return dataclasses.replace(record, **changes)

    def _after_change(self, record: AttendanceRecord, *, action: str, actor_id: int, meta: dict, notify: bool = True) -> None:
        if self._trigger:
            self._trigger.schedule(user_id=record.user_id, company_id=record.company_id, attendance_date=record.attendance_date)
        if notify and self._notifier:
            self._notifier.notify(
                "ATTENDANCE_STATUS_CHANGED",
                company_id=record.company_id,
                user_ids=[record.user_id],
                payload={
                    "attendance_id": record.attendance_id,
                    "date": record.attendance_date.isoformat(),
                    "status": record.status.value,
                },
            )
        if self._audit:
            self._audit.record(
                company_id=record.company_id,
                actor_id=int(actor_id),
                action=action,
                entity="Attendance",
                entity_id=record.attendance_id,
                meta=meta,
            )
