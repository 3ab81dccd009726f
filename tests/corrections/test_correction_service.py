from datetime import date, datetime, time, timezone

import pytest

from payroll_system.core.enums import AttendanceStatus, CorrectionType, RequestStatus
from payroll_system.core.exceptions import (
    DuplicateCorrectionRequest,
    InvalidDateRange,
    NotFoundError,
    RequestAlreadyReviewed,
    ValidationError,
)

NOW = datetime(2024, 4, 20, 12, 0, tzinfo=timezone.utc)


def submit(env, kind, day, **kwargs):
    kwargs.setdefault("reason", "Forgot to punch")
    return env.correction_service.submit(
        user_id=7, company_id=1, correction_type=kind, attendance_date=day, now=NOW, **kwargs
    )


def review(env, request_id, decision="APPROVED", **kwargs):
    return env.correction_service.review(request_id, decision=decision, reviewer_id=101, company_id=1, now=NOW, **kwargs)


def test_submit_attendance_miss_creates_placeholder_and_notifies_reviewers(env):
    request = submit(env, CorrectionType.ATTENDANCE_MISS, date(2024, 4, 15))

    assert request.status == RequestStatus.PENDING
    placeholder = env.attendance.get_by_id(request.attendance_id)
    assert placeholder.status == AttendanceStatus.PENDING
    assert placeholder.attendance_date == date(2024, 4, 15)
    submitted = [n for n in env.sender.sent if n.event == "CORRECTION_SUBMITTED"]
    assert sorted(n.user_id for n in submitted) == [100, 101]


def test_submit_outside_window_fails(env):
    with pytest.raises(InvalidDateRange):
        submit(env, CorrectionType.ATTENDANCE_MISS, date(2024, 4, 12))

    submit(env, CorrectionType.ATTENDANCE_MISS, date(2024, 4, 13))


def test_submit_future_date_only_allowed_for_leave(env):
    with pytest.raises(InvalidDateRange):
        submit(env, CorrectionType.ATTENDANCE_MISS, date(2024, 4, 21))

    leave = submit(env, CorrectionType.LEAVE_REQUEST, date(2024, 4, 25), end_date=date(2024, 4, 26))
    assert leave.end_date == date(2024, 4, 26)


def test_leave_range_is_validated(env):
    with pytest.raises(InvalidDateRange):
        submit(env, CorrectionType.LEAVE_REQUEST, date(2024, 4, 25), end_date=date(2024, 4, 24))
    with pytest.raises(InvalidDateRange):
        submit(env, CorrectionType.LEAVE_REQUEST, date(2024, 4, 25), end_date=date(2024, 5, 30))


def test_end_date_only_for_leave(env):
    with pytest.raises(InvalidDateRange):
        submit(env, CorrectionType.ATTENDANCE_MISS, date(2024, 4, 15), end_date=date(2024, 4, 16))


def test_missed_punch_requires_time(env):
    with pytest.raises(ValidationError) as exc:
        submit(env, CorrectionType.MISSED_PUNCH_IN, date(2024, 4, 15))

    assert exc.value.field == "requested_time"


def test_duplicate_request_is_rejected(env):
    submit(env, CorrectionType.ATTENDANCE_MISS, date(2024, 4, 15))

    with pytest.raises(DuplicateCorrectionRequest):
        submit(env, CorrectionType.ATTENDANCE_MISS, date(2024, 4, 15))


def test_approve_attendance_miss_approves_day_and_generates_salary(env):
    request = submit(env, CorrectionType.ATTENDANCE_MISS, date(2024, 4, 15))

    outcome = review(env, request.request_id)

    assert outcome.request.status == RequestStatus.APPROVED
    assert outcome.affected_dates == (date(2024, 4, 15),)
    record = env.attendance.get_by_id(request.attendance_id)
    assert record.status == AttendanceStatus.APPROVED
    assert record.working_hours == 9.0
    assert env.salaries.get_for_period(user_id=7, company_id=1, month=4, year=2024) is not None
    assert "CORRECTION_REVIEWED" in env.sender.events()


def test_second_review_is_rejected_not_reapplied(env):
    request = submit(env, CorrectionType.ATTENDANCE_MISS, date(2024, 4, 15))
    review(env, request.request_id)

    with pytest.raises(RequestAlreadyReviewed):
        review(env, request.request_id)
    with pytest.raises(RequestAlreadyReviewed):
        review(env, request.request_id, decision="REJECTED")


def test_approve_missed_punch_in_uses_requested_time(env):
    request = submit(env, CorrectionType.MISSED_PUNCH_IN, date(2024, 4, 16), requested_time="09:00")

    review(env, request.request_id)

    record = env.attendance.get_by_id(request.attendance_id)
    assert record.punch_in == datetime(2024, 4, 16, 9, 0, tzinfo=timezone.utc)
    assert record.status == AttendanceStatus.APPROVED
    assert env.corrections.get_by_id(request.request_id).approved_time == time(9, 0)


def test_approved_missed_punch_in_does_not_block_next_punch_in(env):
    request = submit(env, CorrectionType.MISSED_PUNCH_IN, date(2024, 4, 19), requested_time="09:00")
    review(env, request.request_id)

    corrected = env.attendance.get_by_id(request.attendance_id)
    assert corrected.punch_out == datetime(2024, 4, 19, 18, 0, tzinfo=timezone.utc)
    assert env.attendance.find_open_session(7, 1) is None

    fresh = env.attendance_service.punch_in(
        user_id=7, company_id=1, image="a.jpg", now=datetime(2024, 4, 20, 8, 45, tzinfo=timezone.utc)
    )

    assert fresh.attendance_date == date(2024, 4, 20)
    assert env.attendance.get_by_id(request.attendance_id).status == AttendanceStatus.APPROVED


def test_missed_punch_out_before_punch_in_rolls_back(env):
    env.attendance.create(
        user_id=7,
        company_id=1,
        attendance_date=date(2024, 4, 17),
        status=AttendanceStatus.PENDING,
        punch_in=datetime(2024, 4, 17, 9, 0, tzinfo=timezone.utc),
    )
    request = submit(env, CorrectionType.MISSED_PUNCH_OUT, date(2024, 4, 17), requested_time="08:00")

    with pytest.raises(ValidationError):
        review(env, request.request_id)

    assert env.corrections.get_by_id(request.request_id).status == RequestStatus.PENDING
    assert env.attendance.get_by_id(request.attendance_id).punch_out is None


def test_approve_leave_skips_days_that_cannot_become_leave(env):
    env.attendance_service.add_missing_attendance(
        user_id=7, company_id=1, attendance_date=date(2024, 4, 19), status=AttendanceStatus.ABSENT, actor_id=100, now=NOW
    )
    request = submit(env, CorrectionType.LEAVE_REQUEST, date(2024, 4, 18), end_date=date(2024, 4, 20), reason="Family")

    outcome = review(env, request.request_id)

    assert outcome.affected_dates == (date(2024, 4, 18), date(2024, 4, 20))
    assert env.attendance.get_for_user_and_date(7, 1, date(2024, 4, 18)).status == AttendanceStatus.LEAVE
    assert env.attendance.get_for_user_and_date(7, 1, date(2024, 4, 19)).status == AttendanceStatus.ABSENT


def test_reject_leaves_attendance_untouched(env):
    request = submit(env, CorrectionType.ATTENDANCE_MISS, date(2024, 4, 15))

    outcome = review(env, request.request_id, decision="REJECTED", review_reason="No evidence")

    assert outcome.request.status == RequestStatus.REJECTED
    assert outcome.request.review_reason == "No evidence"
    assert outcome.affected_dates == ()
    assert env.attendance.get_by_id(request.attendance_id).status == AttendanceStatus.PENDING


def test_support_request_has_no_attendance_effect(env):
    request = submit(env, CorrectionType.SUPPORT_REQUEST, date(2024, 4, 19), reason="Laptop broken")

    outcome = review(env, request.request_id)

    assert outcome.affected_dates == ()
    assert request.attendance_id is None


def test_review_validates_decision_and_company(env):
    request = submit(env, CorrectionType.ATTENDANCE_MISS, date(2024, 4, 15))

    with pytest.raises(ValidationError):
        review(env, request.request_id, decision="PENDING")
    with pytest.raises(NotFoundError):
        env.correction_service.review(request.request_id, decision="APPROVED", reviewer_id=101, company_id=2, now=NOW)


def test_listing(env):
    first = submit(env, CorrectionType.ATTENDANCE_MISS, date(2024, 4, 15))
    submit(env, CorrectionType.ATTENDANCE_MISS, date(2024, 4, 16))
    review(env, first.request_id)

    assert [r.attendance_date for r in env.correction_service.list_pending(company_id=1)] == [date(2024, 4, 16)]
    assert len(env.correction_service.list_mine(user_id=7)) == 2
