from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ...attendance.model import AttendanceRecord
from ...common.datetime_utils import iter_dates, month_bounds
from ...common.money import round_hours, to_money
from ...companies.model import CompanySettings
from ...core.constants import HOURS_PER_MONTH_FALLBACK
from ...core.enums import AttendanceStatus, BreakdownType, SalaryType
from ...users.model import StaffProfile
from ..deductions import DeductionPolicy, StatutoryDeductionPolicy
from ..model import AttendanceSummary, SalaryBreakdown, SalaryCalculationResult
from .base import PayrollCalculator


def summarize_attendance(
    records: Sequence[AttendanceRecord],
    *,
    settings: CompanySettings,
    month: int,
    year: int,
    as_of: date,
) -> AttendanceSummary:
    """Aggregate one month of attendance.

    Only APPROVED rows earn pay. Eligible days that have already elapsed
    without any row count as absent, as do explicit ABSENT rows. Half days
    are reported only; every APPROVED row is a full approved day.
    """

    start, end = month_bounds(month, year)
    off_days = set(settings.weekly_off_days)
    eligible = [d for d in iter_dates(start, end) if d.weekday() not in off_days]

    approved = [r for r in records if r.status == AttendanceStatus.APPROVED]
    recorded_dates = {r.attendance_date for r in records}
    unrecorded = sum(1 for d in eligible if d < as_of and d not in recorded_dates)

    return AttendanceSummary(
        total_days=len(eligible),
        approved_days=len(approved),
        half_days=sum(1 for r in approved if r.working_hours < settings.half_day_threshold_hours),
        leave_days=sum(1 for r in records if r.status == AttendanceStatus.LEAVE),
        absent_days=unrecorded + sum(1 for r in records if r.status == AttendanceStatus.ABSENT),
        rejected_days=sum(1 for r in records if r.status == AttendanceStatus.REJECTED),
        working_hours=round_hours(sum(r.working_hours for r in approved)),
        overtime_hours=round_hours(sum(r.overtime_hours for r in approved)),
        late_minutes=sum(r.late_minutes for r in approved if r.is_late),
    )


def overtime_rate(staff: StaffProfile, settings: CompanySettings) -> Decimal:
    if staff.overtime_rate:
        return Decimal(staff.overtime_rate)
    hourly = Decimal(staff.hourly_rate) if staff.hourly_rate else Decimal(staff.base_salary) / HOURS_PER_MONTH_FALLBACK
    return hourly * Decimal(settings.overtime_multiplier)


class StandardPayrollCalculator(PayrollCalculator):
    """Base pay by salary type, plus overtime, minus penalties, minus deductions."""

    def __init__(self, *, deduction_policy: Optional[DeductionPolicy] = None):
        self._deductions = deduction_policy or StatutoryDeductionPolicy()

    def calculate(
        self,
        *,
        staff: StaffProfile,
        settings: CompanySettings,
        records: Sequence[AttendanceRecord],
        month: int,
        year: int,
        as_of: date,
    ) -> SalaryCalculationResult:
        summary = summarize_attendance(records, settings=settings, month=month, year=year, as_of=as_of)
        lines: list[SalaryBreakdown] = []

        base = self._base_amount(staff, summary)
        lines.append(self._base_line(staff, summary, base))

        ot_amount = Decimal("0.00")
        if summary.overtime_hours > 0:
            rate = overtime_rate(staff, settings)
            ot_amount = to_money(rate * Decimal(str(summary.overtime_hours)))
            lines.append(
                SalaryBreakdown(
                    type=BreakdownType.OVERTIME,
                    description=f"Overtime {summary.overtime_hours}h",
                    amount=ot_amount,
                    quantity=summary.overtime_hours,
                    rate=to_money(rate),
                )
            )

        penalty = Decimal("0.00")
        if settings.late_penalty_enabled and summary.late_minutes > 0:
            late = to_money(Decimal(settings.late_penalty_per_minute) * summary.late_minutes)
            penalty += late
            lines.append(
                SalaryBreakdown(
                    type=BreakdownType.LATE_PENALTY,
                    description=f"Late {summary.late_minutes} min",
                    amount=late,
                    quantity=summary.late_minutes,
                    rate=Decimal(settings.late_penalty_per_minute),
                )
            )
        if settings.absent_penalty_enabled and summary.absent_days > 0:
            absent = to_money(Decimal(settings.absent_penalty_per_day) * summary.absent_days)
            penalty += absent
            lines.append(
                SalaryBreakdown(
                    type=BreakdownType.ABSENT_PENALTY,
                    description=f"Absent {summary.absent_days} days",
                    amount=absent,
                    quantity=summary.absent_days,
                    rate=Decimal(settings.absent_penalty_per_day),
                )
            )

        gross = max(Decimal("0.00"), to_money(base + ot_amount - penalty))
        deduction_lines = list(self._deductions.deductions_for(gross=gross, staff=staff, settings=settings))
        deductions = to_money(sum((line.amount for line in deduction_lines), Decimal("0")))
        lines.extend(deduction_lines)

        return SalaryCalculationResult(
            summary=summary,
            base_amount=base,
            overtime_amount=ot_amount,
            penalty_amount=penalty,
            gross_amount=gross,
            deductions=deductions,
            net_amount=to_money(gross - deductions),
            breakdowns=tuple(lines),
        )

    @staticmethod
    def _base_amount(staff: StaffProfile, summary: AttendanceSummary) -> Decimal:
        if staff.salary_type == SalaryType.DAILY:
            return to_money(Decimal(staff.daily_rate or 0) * summary.approved_days)
        if staff.salary_type == SalaryType.HOURLY:
            return to_money(Decimal(staff.hourly_rate or 0) * Decimal(str(summary.working_hours)))
        if summary.total_days == 0:
            return Decimal("0.00")
        days = min(summary.approved_days, summary.total_days)
        return to_money(Decimal(staff.base_salary) * days / summary.total_days)

    @staticmethod
    def _base_line(staff: StaffProfile, summary: AttendanceSummary, amount: Decimal) -> SalaryBreakdown:
        if staff.salary_type == SalaryType.HOURLY:
            return SalaryBreakdown(
                type=BreakdownType.BASE_SALARY,
                description=f"{summary.working_hours}h @ hourly rate",
                amount=amount,
                quantity=summary.working_hours,
                rate=Decimal(staff.hourly_rate or 0),
            )
        rate = Decimal(staff.daily_rate or 0) if staff.salary_type == SalaryType.DAILY else Decimal(staff.base_salary)
        return SalaryBreakdown(
            type=BreakdownType.BASE_SALARY,
            description=f"{summary.approved_days} of {summary.total_days} days",
            amount=amount,
            quantity=summary.approved_days,
            rate=rate,
        )
