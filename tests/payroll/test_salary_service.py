from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from payroll_system.common.datetime_utils import iter_dates
from payroll_system.core.enums import AttendanceStatus, SalaryStatus
from payroll_system.core.exceptions import (
    InvalidSalaryStatus,
    SalaryAlreadyExists,
    SalaryLocked,
    SalaryNotFound,
    ValidationError,
)

NOW = datetime(2024, 5, 2, 10, 0, tzinfo=timezone.utc)


def approve_days(env, count, user_id=7, start=date(2024, 4, 1)):
    days = [d for d in iter_dates(start, date(2024, 4, 30)) if d.weekday() != 6][:count]
    for day in days:
        env.attendance.create(
            user_id=user_id, company_id=1, attendance_date=day, status=AttendanceStatus.APPROVED, working_hours=9.0
        )
    return days


def generate(env, user_id=7):
    return env.salary_service.generate_salary(user_id=user_id, company_id=1, month=4, year=2024, actor_id=100, now=NOW)


def test_generate_salary_from_approved_days(env):
    approve_days(env, 20)

    salary = generate(env)

    assert salary.status == SalaryStatus.PENDING
    assert salary.gross_amount == Decimal("20000.00")
    assert salary.net_amount == Decimal("20000.00")
    assert salary.approved_days == 20
    assert env.salaries.get_by_id(salary.salary_id).breakdowns == salary.breakdowns
    assert "GENERATE_SALARY" in env.audit_repo.actions()


def test_short_day_still_counts_as_full_approved_day(env):
    days = approve_days(env, 20)
    salary = generate(env)
    short = env.attendance.get_for_user_and_date(7, 1, days[0])

    env.attendance_service.update_hours(short.attendance_id, working_hours=3.0, actor_id=100)

    recalculated = env.salaries.get_by_id(salary.salary_id)
    assert recalculated.version == salary.version + 1
    assert recalculated.approved_days == 20
    assert recalculated.gross_amount == Decimal("20000.00")


def test_generate_twice_fails(env):
    approve_days(env, 1)
    generate(env)

    with pytest.raises(SalaryAlreadyExists):
        generate(env)


def test_generate_validates_period(env):
    with pytest.raises(ValidationError):
        env.salary_service.generate_salary(user_id=7, company_id=1, month=13, year=2024, now=NOW)


def test_recalculate_picks_up_new_attendance(env):
    approve_days(env, 20)
    salary = generate(env)
    env.attendance.create(
        user_id=7, company_id=1, attendance_date=date(2024, 4, 30), status=AttendanceStatus.APPROVED, working_hours=9.0
    )

    updated = env.salary_service.recalculate_salary(salary.salary_id, now=NOW)

    assert updated.net_amount == Decimal("21000.00")
    assert updated.version == 2


def test_recalculate_resets_approval(env):
    approve_days(env, 5)
    salary = generate(env)
    env.salary_service.approve_salary(salary.salary_id, approver_id=100, now=NOW)

    updated = env.salary_service.recalculate_salary(salary.salary_id, now=NOW)

    assert updated.status == SalaryStatus.PENDING
    assert updated.approved_by is None


def test_approve_only_pending(env):
    approve_days(env, 5)
    salary = generate(env)
    env.salary_service.approve_salary(salary.salary_id, approver_id=100, now=NOW)

    with pytest.raises(InvalidSalaryStatus):
        env.salary_service.approve_salary(salary.salary_id, approver_id=100, now=NOW)


def test_reject_requires_reason(env):
    approve_days(env, 5)
    salary = generate(env)

    with pytest.raises(ValidationError):
        env.salary_service.reject_salary(salary.salary_id, approver_id=100, reason=" ")

    rejected = env.salary_service.reject_salary(salary.salary_id, approver_id=100, reason="Wrong rate", now=NOW)
    assert rejected.status == SalaryStatus.REJECTED
    assert rejected.rejection_reason == "Wrong rate"


def test_locked_salary_is_immutable(env):
    days = approve_days(env, 20)
    salary = generate(env)
    env.salary_service.approve_salary(salary.salary_id, approver_id=100, now=NOW)
    env.ledger_service.mark_salary_paid(salary.salary_id, payment_date=date(2024, 5, 2), method="BANK", actor_id=100, now=NOW)
    paid = env.salaries.get_by_id(salary.salary_id)

    with pytest.raises(SalaryLocked):
        env.salary_service.recalculate_salary(salary.salary_id, now=NOW)
    with pytest.raises(SalaryLocked):
        env.salary_service.reject_salary(salary.salary_id, approver_id=100, reason="late change", now=NOW)
    record = env.attendance.get_for_user_and_date(7, 1, days[0])
    env.attendance_service.set_status(record.attendance_id, new_status=AttendanceStatus.ABSENT, approver_id=100, now=NOW)

    assert env.salaries.get_by_id(salary.salary_id) == paid


def test_get_salary_checks_company(env):
    approve_days(env, 1)
    salary = generate(env)

    with pytest.raises(SalaryNotFound):
        env.salary_service.get_salary(salary.salary_id, company_id=2)


def test_generate_for_company_skips_existing(env):
    approve_days(env, 3)

    first = env.salary_service.generate_for_company(company_id=1, month=4, year=2024, actor_id=100, now=NOW)
    second = env.salary_service.generate_for_company(company_id=1, month=4, year=2024, actor_id=100, now=NOW)

    assert (first.processed, first.skipped, first.errors) == (3, 0, ())
    assert (second.processed, second.skipped) == (0, 3)


def test_list_for_period(env):
    approve_days(env, 2)
    salary = generate(env)

    listed = env.salary_service.list_for_period(company_id=1, month=4, year=2024)

    assert [s.salary_id for s in listed] == [salary.salary_id]
    assert env.salary_service.list_for_period(company_id=1, month=5, year=2024) == []
