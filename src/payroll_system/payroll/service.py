from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..audit.service import AuditRecorder
from ..common.datetime_utils import local_date, month_bounds, now_utc
from ..common.money import to_money
from ..common.validators import require_non_empty
from ..companies.model import CompanySettings
from ..companies.repository import CompanyRepository
from ..core.enums import SalaryStatus
from ..core.exceptions import (
    DomainError,
    DuplicateRecordError,
    InvalidSalaryStatus,
    NotFoundError,
    SalaryAlreadyExists,
    SalaryLocked,
    SalaryNotFound,
    ValidationError,
)
from ..database.unit_of_work import UnitOfWork
from ..users.model import StaffProfile
from ..users.repository import StaffRepository
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import BatchGenerationResult, Salary, SalaryCalculationResult
from .repository import SalaryRepository

logger = logging.getLogger(__name__)


def _validate_period(month: int, year: int) -> None:
    if not 1 <= int(month) <= 12:
        raise ValidationError("month must be between 1 and 12", field="month")
    if not 2000 <= int(year) <= 2100:
        raise ValidationError("year is out of range", field="year")


def _apply_result(salary: Salary, result: SalaryCalculationResult) -> Salary:
    s = result.summary
    return dataclasses.replace(
        salary,
        total_days=s.total_days,
        approved_days=s.approved_days,
        leave_days=s.leave_days,
        absent_days=s.absent_days,
        working_hours=s.working_hours,
        overtime_hours=s.overtime_hours,
        late_minutes=s.late_minutes,
        base_amount=result.base_amount,
        overtime_amount=result.overtime_amount,
        penalty_amount=result.penalty_amount,
        deductions=result.deductions,
        gross_amount=result.gross_amount,
        net_amount=result.net_amount,
        breakdowns=result.breakdowns,
    )


def synthesize_salary(staff: StaffProfile, *, month: int, year: int, now: datetime) -> Salary:
    """Placeholder obligation from the configured base rate, used when money moves before generation."""
    base = to_money(staff.base_salary)
    return Salary(
        salary_id=0,
        user_id=staff.user_id,
        company_id=staff.company_id,
        month=int(month),
        year=int(year),
        salary_type=staff.salary_type,
        status=SalaryStatus.PENDING,
        base_amount=base,
        gross_amount=base,
        net_amount=base,
        created_at=now,
        breakdowns=(),
    )


class SalaryService:
    def __init__(
        self,
        salaries: SalaryRepository,
        attendance: AttendanceRepository,
        staff: StaffRepository,
        companies: CompanyRepository,
        uow: UnitOfWork,
        *,
        calculator: Optional[PayrollCalculator] = None,
        audit: Optional[AuditRecorder] = None,
    ):
        self._salaries = salaries
        self._attendance = attendance
        self._staff = staff
        self._companies = companies
        self._uow = uow
        self._calculator = calculator or StandardPayrollCalculator()
        self._audit = audit

    def _load_context(self, user_id: int, company_id: int) -> tuple[StaffProfile, CompanySettings]:
        staff = self._staff.get_by_id(int(user_id))
        if not staff or staff.company_id != int(company_id):
            raise NotFoundError("Staff member not found")
        settings = self._companies.get_by_id(int(company_id))
        if not settings:
            raise NotFoundError("Company not found")
        return staff, settings

    def get_salary(self, salary_id: int, *, company_id: Optional[int] = None) -> Salary:
        salary = self._salaries.get_by_id(int(salary_id))
        if not salary or (company_id is not None and salary.company_id != int(company_id)):
            raise SalaryNotFound()
        return salary

    def list_for_period(self, *, company_id: int, month: int, year: int) -> list[Salary]:
        _validate_period(month, year)
        return list(self._salaries.list_for_period(company_id=int(company_id), month=int(month), year=int(year)))

    def calculate(self, *, user_id: int, company_id: int, month: int, year: int, now: Optional[datetime] = None) -> SalaryCalculationResult:
        """Compute a period's salary from current attendance without persisting anything."""
        _validate_period(month, year)
        staff, settings = self._load_context(user_id, company_id)
        now = now or now_utc()
        start, end = month_bounds(int(month), int(year))
        records = self._attendance.list_for_period(user_id=staff.user_id, company_id=staff.company_id, start=start, end=end)
        return self._calculator.calculate(
            staff=staff,
            settings=settings,
            records=records,
            month=int(month),
            year=int(year),
            as_of=local_date(now, settings.timezone),
        )

    def generate_salary(
        self,
        *,
        user_id: int,
        company_id: int,
        month: int,
        year: int,
        actor_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Salary:
        now = now or now_utc()
        result = self.calculate(user_id=user_id, company_id=company_id, month=month, year=year, now=now)
        staff = self._staff.get_by_id(int(user_id))

        with self._uow.transaction():
            if self._salaries.get_for_period(user_id=int(user_id), company_id=int(company_id), month=int(month), year=int(year)):
                raise SalaryAlreadyExists()
            draft = _apply_result(
                Salary(
                    salary_id=0,
                    user_id=int(user_id),
                    company_id=int(company_id),
                    month=int(month),
                    year=int(year),
                    salary_type=staff.salary_type,
                    created_at=now,
                ),
                result,
            )
            try:
                salary_id = self._salaries.create(draft)
            except DuplicateRecordError as exc:
                raise SalaryAlreadyExists() from exc

        salary = dataclasses.replace(draft, salary_id=salary_id)
        logger.info(
            "Generated salary %s for user=%s %02d/%s net=%s",
            salary_id, user_id, int(month), year, salary.net_amount,
        )
        self._record("GENERATE_SALARY", salary, actor_id, {"net": salary.net_amount})
        return salary

    def recalculate_salary(self, salary_id: int, *, actor_id: Optional[int] = None, now: Optional[datetime] = None) -> Salary:
        now = now or now_utc()
        current = self._salaries.get_by_id(int(salary_id))
        if not current:
            raise SalaryNotFound()
        if current.is_frozen:
            raise SalaryLocked()

        result = self.calculate(
            user_id=current.user_id, company_id=current.company_id, month=current.month, year=current.year, now=now
        )

        with self._uow.transaction():
            current = self._salaries.get_by_id(int(salary_id), for_update=True)
            if not current:
                raise SalaryNotFound()
            if current.is_frozen:
                raise SalaryLocked()
            updated = dataclasses.replace(
                _apply_result(current, result),
                status=SalaryStatus.PENDING,
                version=current.version + 1,
                approved_by=None,
                approved_at=None,
                rejection_reason=None,
            )
            self._salaries.update(updated)

        logger.info(
            "Recalculated salary %s v%s net %s -> %s",
            salary_id, updated.version, current.net_amount, updated.net_amount,
        )
        self._record(
            "RECALCULATE_SALARY",
            updated,
            actor_id,
            {"previous_net": current.net_amount, "net": updated.net_amount, "version": updated.version},
        )
        return updated

    def approve_salary(self, salary_id: int, *, approver_id: int, now: Optional[datetime] = None) -> Salary:
        now = now or now_utc()
        with self._uow.transaction():
            salary = self._salaries.get_by_id(int(salary_id), for_update=True)
            if not salary:
                raise SalaryNotFound()
            if salary.is_locked:
                raise SalaryLocked()
            if salary.status != SalaryStatus.PENDING:
                raise InvalidSalaryStatus(f"Only PENDING salaries can be approved (current: {salary.status.value})")
            updated = dataclasses.replace(salary, status=SalaryStatus.APPROVED, approved_by=int(approver_id), approved_at=now)
            self._salaries.update(updated)

        self._record("APPROVE_SALARY", updated, approver_id, {"net": updated.net_amount})
        return updated

    def reject_salary(self, salary_id: int, *, approver_id: int, reason: str, now: Optional[datetime] = None) -> Salary:
        reason = require_non_empty(reason, "reason")
        now = now or now_utc()
        with self._uow.transaction():
            salary = self._salaries.get_by_id(int(salary_id), for_update=True)
            if not salary:
                raise SalaryNotFound()
            if salary.is_frozen:
                raise SalaryLocked()
            if salary.status not in (SalaryStatus.PENDING, SalaryStatus.APPROVED):
                raise InvalidSalaryStatus(f"Cannot reject a {salary.status.value} salary")
            updated = dataclasses.replace(
                salary,
                status=SalaryStatus.REJECTED,
                approved_by=int(approver_id),
                approved_at=now,
                rejection_reason=reason,
            )
            self._salaries.update(updated)

        self._record("REJECT_SALARY", updated, approver_id, {"reason": reason})
        return updated

    def generate_for_company(
        self,
        *,
        company_id: int,
        month: int,
        year: int,
        actor_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> BatchGenerationResult:
        _validate_period(month, year)
        processed = skipped = 0
        errors: list[tuple[int, str]] = []

        for staff in self._staff.list_active_staff(int(company_id)):
            if self._salaries.get_for_period(user_id=staff.user_id, company_id=int(company_id), month=int(month), year=int(year)):
                skipped += 1
                continue
            try:
                self.generate_salary(
                    user_id=staff.user_id, company_id=company_id, month=month, year=year, actor_id=actor_id, now=now
                )
                processed += 1
            except SalaryAlreadyExists:
                skipped += 1
            except DomainError as exc:
                errors.append((staff.user_id, str(exc)))
            except Exception as exc:
                logger.exception("Salary generation failed for user %s", staff.user_id)
                errors.append((staff.user_id, str(exc)))

        logger.info(
            "Batch salary generation company=%s %02d/%s processed=%s skipped=%s errors=%s",
            company_id, int(month), year, processed, skipped, len(errors),
        )
        return BatchGenerationResult(processed=processed, skipped=skipped, errors=tuple(errors))

    def _record(self, action: str, salary: Salary, actor_id: Optional[int], meta: dict) -> None:
        if self._audit:
            self._audit.record(
                company_id=salary.company_id,
                actor_id=actor_id,
                action=action,
                entity="Salary",
                entity_id=salary.salary_id,
                meta=meta,
            )
