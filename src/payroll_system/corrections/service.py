from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Optional

from ..attendance.model import AttendanceRecord
from ..attendance.policy import get_shift_hours_for_salary, shift_close_at
from ..attendance.repository import AttendanceRepository
from ..attendance.transitions import can_transition, validate_transition
from ..audit.service import AuditRecorder
from ..common.datetime_utils import iter_dates, local_date, local_datetime, now_utc, parse_hhmm
from ..common.validators import require_non_empty
from ..companies.model import CompanySettings
from ..companies.repository import CompanyRepository
from ..core.constants import CORRECTION_WINDOW_DAYS, MAX_LEAVE_RANGE_DAYS
from ..core.enums import AttendanceStatus, CorrectionType, RequestStatus
from ..core.exceptions import (
    DuplicateCorrectionRequest,
    DuplicateRecordError,
    InvalidDateRange,
    NotFoundError,
    RequestAlreadyReviewed,
    ValidationError,
)
from ..database.unit_of_work import UnitOfWork
from ..notifications.service import Notifier
from ..payroll.recalculation import RecalculationTrigger
from ..users.repository import StaffRepository
from .model import ATTENDANCE_TYPES, CorrectionRequest, ReviewOutcome
from .repository import CorrectionRepository

logger = logging.getLogger(__name__)

_PLACEHOLDER_TYPES = {CorrectionType.MISSED_PUNCH_IN, CorrectionType.MISSED_PUNCH_OUT, CorrectionType.ATTENDANCE_MISS}


def _parse_time(value: Any, field: str) -> Optional[time]:
    if value is None or isinstance(value, time):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return parse_hhmm(text)
    except (ValueError, IndexError):
        raise ValidationError("Time must be HH:MM", field=field)


class CorrectionService:
    def __init__(
        self,
        corrections: CorrectionRepository,
        attendance: AttendanceRepository,
        companies: CompanyRepository,
        staff: StaffRepository,
        uow: UnitOfWork,
        *,
        trigger: Optional[RecalculationTrigger] = None,
        notifier: Optional[Notifier] = None,
        audit: Optional[AuditRecorder] = None,
    ):
        self._corrections = corrections
        self._attendance = attendance
        self._companies = companies
        self._staff = staff
        self._uow = uow
        self._trigger = trigger
        self._notifier = notifier
        self._audit = audit

    def _settings(self, company_id: int) -> CompanySettings:
        settings = self._companies.get_by_id(int(company_id))
        if not settings:
            raise NotFoundError("Company not found")
        return settings

    def submit(
        self,
        *,
        user_id: int,
        company_id: int,
        correction_type: CorrectionType | str,
        attendance_date: date,
        reason: str,
        requested_time: Any = None,
        end_date: Optional[date] = None,
        evidence: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CorrectionRequest:
        try:
            kind = CorrectionType(correction_type)
        except ValueError:
            raise ValidationError("Unknown correction type", field="type")
        reason = require_non_empty(reason, "reason")
        req_time = _parse_time(requested_time, "requested_time")
        now = now or now_utc()
        settings = self._settings(company_id)
        today = local_date(now, settings.timezone)

        self._validate_dates(kind, attendance_date, end_date, today)
        if kind in (CorrectionType.MISSED_PUNCH_IN, CorrectionType.MISSED_PUNCH_OUT) and req_time is None:
            raise ValidationError("requested_time is required for missed punches", field="requested_time")
        if kind == CorrectionType.LEAVE_REQUEST:
            end_date = end_date or attendance_date

        with self._uow.transaction():
            if self._corrections.find_active(
                user_id=int(user_id), company_id=int(company_id), type=kind, attendance_date=attendance_date
            ):
                raise DuplicateCorrectionRequest()

            attendance_id = None
            if kind in _PLACEHOLDER_TYPES:
                attendance_id = self._ensure_attendance(int(user_id), int(company_id), attendance_date).attendance_id

            request_id = self._corrections.create(
                user_id=int(user_id),
                company_id=int(company_id),
                type=kind,
                attendance_date=attendance_date,
                end_date=end_date,
                requested_time=req_time,
                reason=reason,
                evidence=evidence,
                attendance_id=attendance_id,
                created_at=now,
            )

        request = self._corrections.get_by_id(request_id)
        logger.info("Correction %s (%s) submitted by user %s for %s", request_id, kind.value, user_id, attendance_date)
        if self._notifier:
            self._notifier.notify(
                "CORRECTION_SUBMITTED",
                company_id=int(company_id),
                user_ids=self._staff.list_reviewer_ids(int(company_id)),
                payload={"request_id": request_id, "type": kind.value, "user_id": int(user_id), "date": attendance_date.isoformat()},
            )
        self._record("SUBMIT_CORRECTION", request, int(user_id), {"type": kind})
        return request

    def review(
        self,
        request_id: int,
        *,
        decision: RequestStatus | str,
        reviewer_id: int,
        company_id: Optional[int] = None,
        approved_time: Any = None,
        review_reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ReviewOutcome:
        try:
            decision = RequestStatus(decision)
        except ValueError:
            raise ValidationError("Unknown decision", field="decision")
        if decision == RequestStatus.PENDING:
            raise ValidationError("Decision must be APPROVED or REJECTED", field="decision")
        approved = _parse_time(approved_time, "approved_time")
        review_reason = (review_reason or "").strip() or None
        now = now or now_utc()

        with self._uow.transaction():
            request = self._corrections.get_by_id(int(request_id))
            if not request or (company_id is not None and request.company_id != int(company_id)):
                raise NotFoundError("Correction request not found")
            if request.status != RequestStatus.PENDING:
                raise RequestAlreadyReviewed()

            affected: tuple[date, ...] = ()
            if decision == RequestStatus.APPROVED and request.type in ATTENDANCE_TYPES:
                affected = self._apply(request, approved, reviewer_id=int(reviewer_id), now=now)

            if not self._corrections.decide(
                request_id=request.request_id,
                status=decision,
                reviewed_by=int(reviewer_id),
                reviewed_at=now,
                review_reason=review_reason,
                approved_time=approved or request.requested_time,
            ):
                raise RequestAlreadyReviewed()

        reviewed = self._corrections.get_by_id(request.request_id)
        logger.info("Correction %s %s by %s (days affected=%s)", request_id, decision.value, reviewer_id, len(affected))

        if self._trigger:
            for year, month in sorted({(d.year, d.month) for d in affected}):
                self._trigger.schedule_period(user_id=request.user_id, company_id=request.company_id, month=month, year=year)
        if self._notifier:
            self._notifier.notify(
                "CORRECTION_REVIEWED",
                company_id=request.company_id,
                user_ids=[request.user_id],
                payload={"request_id": request.request_id, "type": request.type.value, "status": decision.value, "reason": review_reason},
            )
        self._record("REVIEW_CORRECTION", reviewed, int(reviewer_id), {"decision": decision, "dates": list(affected)})
        return ReviewOutcome(request=reviewed, affected_dates=affected)

    def list_pending(self, *, company_id: int) -> list[CorrectionRequest]:
        return list(self._corrections.list_for_company(int(company_id), status=RequestStatus.PENDING))

    def list_mine(self, *, user_id: int) -> list[CorrectionRequest]:
        return list(self._corrections.list_for_user(int(user_id)))

    @staticmethod
    def _validate_dates(kind: CorrectionType, start: date, end: Optional[date], today: date) -> None:
        if start < today - timedelta(days=CORRECTION_WINDOW_DAYS):
            raise InvalidDateRange(f"Date must be within the last {CORRECTION_WINDOW_DAYS} days", field="attendance_date")
        if kind != CorrectionType.LEAVE_REQUEST:
            if start > today:
                raise InvalidDateRange("Date cannot be in the future", field="attendance_date")
            if end is not None:
                raise InvalidDateRange("Only leave requests take an end date", field="end_date")
            return
        end = end or start
        if end < start:
            raise InvalidDateRange("End date must be on or after the start date", field="end_date")
        if (end - start).days + 1 > MAX_LEAVE_RANGE_DAYS:
            raise InvalidDateRange(f"Leave cannot exceed {MAX_LEAVE_RANGE_DAYS} days", field="end_date")

    def _ensure_attendance(self, user_id: int, company_id: int, day: date) -> AttendanceRecord:
        existing = self._attendance.get_for_user_and_date(user_id, company_id, day)
        if existing:
            return existing
        try:
            attendance_id = self._attendance.create(
                user_id=user_id,
                company_id=company_id,
                attendance_date=day,
                status=AttendanceStatus.PENDING,
                note="Created for correction request",
            )
        except DuplicateRecordError:
            return self._attendance.get_for_user_and_date(user_id, company_id, day)
        return self._attendance.get_by_id(attendance_id)

    def _apply(self, request: CorrectionRequest, approved_time: Optional[time], *, reviewer_id: int, now: datetime) -> tuple[date, ...]:
        settings = self._settings(request.company_id)

        if request.type == CorrectionType.LEAVE_REQUEST:
            return self._apply_leave(request, settings, reviewer_id=reviewer_id, now=now)

        record = self._ensure_attendance(request.user_id, request.company_id, request.attendance_date)
        changes: dict[str, Any] = {}
        if request.type in (CorrectionType.MISSED_PUNCH_IN, CorrectionType.MISSED_PUNCH_OUT):
            at = approved_time or request.requested_time
            if at is None:
                raise ValidationError("approved_time is required", field="approved_time")
            stamp = local_datetime(request.attendance_date, at, settings.timezone)
            if request.type == CorrectionType.MISSED_PUNCH_IN:
                if record.punch_out and stamp >= record.punch_out:
                    raise ValidationError("Punch-in must be before punch-out", field="approved_time")
                changes["punch_in"] = stamp
                if record.punch_out is None:
                    # an approved backfill is a closed day, not an open session
                    changes["punch_out"] = shift_close_at(
                        request.attendance_date,
                        stamp,
                        shift_start=settings.shift_start,
                        shift_end=settings.shift_end,
                        tz_name=settings.timezone,
                    )
            else:
                if record.punch_in and stamp <= record.punch_in:
                    raise ValidationError("Punch-out must be after punch-in", field="approved_time")
                changes["punch_out"] = stamp

        if record.status != AttendanceStatus.APPROVED:
            validate_transition(record.status, AttendanceStatus.APPROVED)
            changes.update(status=AttendanceStatus.APPROVED, approved_by=reviewer_id, approved_at=now)
        changes["working_hours"] = get_shift_hours_for_salary(settings.shift_start, settings.shift_end, settings.max_daily_hours)

        self._attendance.update(dataclasses.replace(record, **changes))
        return (request.attendance_date,)

    def _apply_leave(self, request: CorrectionRequest, settings: CompanySettings, *, reviewer_id: int, now: datetime) -> tuple[date, ...]:
        affected: list[date] = []
        for day in iter_dates(request.attendance_date, request.end_date or request.attendance_date):
            record = self._attendance.get_for_user_and_date(request.user_id, request.company_id, day)
            if record is None:
                attendance_id = self._attendance.create(
                    user_id=request.user_id,
                    company_id=request.company_id,
                    attendance_date=day,
                    status=AttendanceStatus.PENDING,
                    note=request.reason,
                )
                record = self._attendance.get_by_id(attendance_id)
            elif record.status == AttendanceStatus.LEAVE:
                continue
            elif not can_transition(record.status, AttendanceStatus.LEAVE):
                logger.info("Leave not applied to %s for user %s (status %s)", day, request.user_id, record.status.value)
                continue

            self._attendance.update(
                dataclasses.replace(
                    record,
                    status=AttendanceStatus.LEAVE,
                    working_hours=0.0,
                    overtime_hours=0.0,
                    approved_by=reviewer_id,
                    approved_at=now,
                    note=record.note or request.reason,
                )
            )
            affected.append(day)
        return tuple(affected)

    def _record(self, action: str, request: CorrectionRequest, actor_id: int, meta: dict) -> None:
        if self._audit:
            self._audit.record(
                company_id=request.company_id,
                actor_id=actor_id,
                action=action,
                entity="CorrectionRequest",
                entity_id=request.request_id,
                meta=meta,
            )
