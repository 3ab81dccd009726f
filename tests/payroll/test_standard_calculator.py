from datetime import date
from decimal import Decimal

from payroll_system.attendance.model import AttendanceRecord
from payroll_system.common.datetime_utils import iter_dates
from payroll_system.companies.model import CompanySettings
from payroll_system.core.enums import AttendanceStatus, BreakdownType, SalaryType
from payroll_system.payroll.calculator.standard_calculator import StandardPayrollCalculator, summarize_attendance
from payroll_system.payroll.deductions import NoDeductionPolicy
from payroll_system.users.model import StaffProfile

SETTINGS = CompanySettings(company_id=1, name="Acme", timezone="UTC")
END_OF_APRIL = date(2024, 5, 1)


def working_days(count, start=date(2024, 4, 1)):
    days = [d for d in iter_dates(start, date(2024, 4, 30)) if d.weekday() != 6]
    return days[:count]


def approved(day, hours=9.0, **kwargs):
    return AttendanceRecord(
        attendance_id=day.day,
        user_id=7,
        company_id=1,
        attendance_date=day,
        status=AttendanceStatus.APPROVED,
        working_hours=hours,
        **kwargs,
    )


def staff(**kwargs):
    return StaffProfile(user_id=7, company_id=1, full_name="Worker", **kwargs)


def calculate(profile, records, settings=SETTINGS, as_of=END_OF_APRIL, **kwargs):
    return StandardPayrollCalculator(**kwargs).calculate(
        staff=profile, settings=settings, records=records, month=4, year=2024, as_of=as_of
    )


def test_daily_rate_times_approved_days():
    result = calculate(
        staff(salary_type=SalaryType.DAILY, daily_rate=Decimal("1000")),
        [approved(d) for d in working_days(20)],
    )

    assert result.gross_amount == Decimal("20000.00")
    assert result.net_amount == Decimal("20000.00")
    assert result.summary.approved_days == 20
    assert result.summary.absent_days == 6


def test_monthly_salary_is_prorated_over_eligible_days():
    profile = staff(salary_type=SalaryType.MONTHLY, base_salary=Decimal("26000"))

    full = calculate(profile, [approved(d) for d in working_days(26)])
    half = calculate(profile, [approved(d) for d in working_days(13)])

    assert full.summary.total_days == 26
    assert full.base_amount == Decimal("26000.00")
    assert half.base_amount == Decimal("13000.00")


def test_short_approved_days_are_reported_but_paid_in_full():
    days = working_days(2)
    result = calculate(
        staff(salary_type=SalaryType.DAILY, daily_rate=Decimal("1000")),
        [approved(days[0]), approved(days[1], hours=3.0)],
    )

    assert result.summary.half_days == 1
    assert result.summary.approved_days == 2
    assert result.base_amount == Decimal("2000.00")


def test_hourly_uses_approved_hours():
    result = calculate(
        staff(salary_type=SalaryType.HOURLY, hourly_rate=Decimal("200")),
        [approved(d) for d in working_days(2)],
    )

    assert result.base_amount == Decimal("3600.00")


def test_pending_and_leave_days_are_not_paid():
    days = working_days(3)
    records = [
        approved(days[0]),
        AttendanceRecord(attendance_id=90, user_id=7, company_id=1, attendance_date=days[1], status=AttendanceStatus.PENDING),
        AttendanceRecord(attendance_id=91, user_id=7, company_id=1, attendance_date=days[2], status=AttendanceStatus.LEAVE),
    ]

    result = calculate(staff(salary_type=SalaryType.DAILY, daily_rate=Decimal("1000")), records)

    assert result.base_amount == Decimal("1000.00")
    assert result.summary.leave_days == 1


def test_overtime_uses_staff_rate():
    result = calculate(
        staff(salary_type=SalaryType.DAILY, daily_rate=Decimal("1000"), overtime_rate=Decimal("100")),
        [approved(working_days(1)[0], overtime_hours=2.0)],
    )

    overtime = [b for b in result.breakdowns if b.type == BreakdownType.OVERTIME]
    assert result.overtime_amount == Decimal("200.00")
    assert overtime[0].quantity == 2.0


def test_pf_and_esi_for_applicable_staff():
    result = calculate(
        staff(salary_type=SalaryType.DAILY, daily_rate=Decimal("1000"), pf_esi_applicable=True),
        [approved(d) for d in working_days(20)],
    )

    assert result.deductions == Decimal("2550.00")
    assert result.net_amount == Decimal("17450.00")
    types = {b.type for b in result.breakdowns}
    assert {BreakdownType.PF_DEDUCTION, BreakdownType.ESI_DEDUCTION} <= types


def test_deduction_policy_is_injectable():
    result = calculate(
        staff(salary_type=SalaryType.DAILY, daily_rate=Decimal("1000"), pf_esi_applicable=True),
        [approved(d) for d in working_days(20)],
        deduction_policy=NoDeductionPolicy(),
    )

    assert result.net_amount == result.gross_amount == Decimal("20000.00")


def test_penalties_when_enabled():
    settings = CompanySettings(
        company_id=1,
        name="Acme",
        timezone="UTC",
        late_penalty_enabled=True,
        late_penalty_per_minute=Decimal("2"),
        absent_penalty_enabled=True,
        absent_penalty_per_day=Decimal("100"),
    )
    first = working_days(1)[0]

    result = calculate(
        staff(salary_type=SalaryType.DAILY, daily_rate=Decimal("1000")),
        [approved(first, is_late=True, late_minutes=15)],
        settings=settings,
        as_of=date(2024, 4, 10),
    )

    # Apr 2-9 without a record, Sunday the 7th excluded
    assert result.summary.absent_days == 7
    assert result.penalty_amount == Decimal("730.00")
    assert result.gross_amount == Decimal("270.00")


def test_gross_never_negative():
    settings = CompanySettings(
        company_id=1, name="Acme", timezone="UTC", absent_penalty_enabled=True, absent_penalty_per_day=Decimal("5000")
    )

    result = calculate(staff(salary_type=SalaryType.DAILY, daily_rate=Decimal("1000")), [], settings=settings)

    assert result.gross_amount == Decimal("0.00")
    assert result.net_amount == Decimal("0.00")


def test_future_days_are_not_absent():
    summary = summarize_attendance([], settings=SETTINGS, month=4, year=2024, as_of=date(2024, 4, 3))

    assert summary.absent_days == 2
    assert summary.total_days == 26
