from datetime import date, datetime, timezone

from payroll_system.attendance.service import AttendanceService
from payroll_system.common.tasks import InlineTaskRunner
from payroll_system.core.enums import AttendanceStatus, SalaryStatus
from payroll_system.payroll.recalculation import RecalculationAction, RecalculationTrigger

NOW = datetime(2024, 5, 2, 10, 0, tzinfo=timezone.utc)


def add_day(env, day, status=AttendanceStatus.APPROVED):
    return env.attendance.create(user_id=7, company_id=1, attendance_date=day, status=status, working_hours=9.0)


def test_generates_when_no_salary_exists(env):
    add_day(env, date(2024, 4, 1))

    outcome = env.recalculation.run(user_id=7, company_id=1, month=4, year=2024)

    assert outcome.action == RecalculationAction.GENERATED
    assert env.salaries.get_by_id(outcome.salary_id).net_amount == 1000


def test_recalculates_pending_salary(env):
    add_day(env, date(2024, 4, 1))
    salary = env.salary_service.generate_salary(user_id=7, company_id=1, month=4, year=2024, now=NOW)
    add_day(env, date(2024, 4, 2))

    outcome = env.recalculation.run(user_id=7, company_id=1, month=4, year=2024)

    assert outcome.action == RecalculationAction.RECALCULATED
    assert env.salaries.get_by_id(salary.salary_id).net_amount == 2000


def test_skips_approved_salary(env):
    add_day(env, date(2024, 4, 1))
    salary = env.salary_service.generate_salary(user_id=7, company_id=1, month=4, year=2024, now=NOW)
    env.salary_service.approve_salary(salary.salary_id, approver_id=100, now=NOW)
    add_day(env, date(2024, 4, 2))

    outcome = env.recalculation.run(user_id=7, company_id=1, month=4, year=2024)

    assert outcome.action == RecalculationAction.SKIPPED
    stored = env.salaries.get_by_id(salary.salary_id)
    assert stored.status == SalaryStatus.APPROVED
    assert stored.net_amount == 1000


def test_failure_is_reported_not_raised(env):
    outcome = env.recalculation.run(user_id=999, company_id=1, month=4, year=2024)

    assert outcome.action == RecalculationAction.FAILED


class ExplodingSalaryService:
    def generate_salary(self, **kwargs):
        raise RuntimeError("database unavailable")

    def recalculate_salary(self, salary_id, **kwargs):
        raise RuntimeError("database unavailable")


def test_attendance_change_survives_recalculation_failure(env):
    trigger = RecalculationTrigger(env.salaries, ExplodingSalaryService(), InlineTaskRunner())
    service = AttendanceService(env.attendance, env.companies, trigger=trigger)
    attendance_id = add_day(env, date(2024, 4, 1), status=AttendanceStatus.PENDING)

    record = service.set_status(attendance_id, new_status=AttendanceStatus.APPROVED, approver_id=100)

    assert record.status == AttendanceStatus.APPROVED
    assert env.attendance.get_by_id(attendance_id).status == AttendanceStatus.APPROVED
    assert env.salaries.items == {}


def test_schedule_uses_attendance_month(env):
    submitted = []

    class RecordingRunner:
        def submit(self, name, fn, *args, **kwargs):
            submitted.append((name, kwargs))

    trigger = RecalculationTrigger(env.salaries, env.salary_service, RecordingRunner())
    trigger.schedule(user_id=7, company_id=1, attendance_date=date(2024, 3, 31))

    assert submitted == [("recalculate:7:2024-03", {"user_id": 7, "company_id": 1, "month": 3, "year": 2024})]
