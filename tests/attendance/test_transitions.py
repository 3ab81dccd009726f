import pytest

from payroll_system.attendance.transitions import can_transition, validate_transition
from payroll_system.core.enums import AttendanceStatus as S
from payroll_system.core.exceptions import (
    AlreadyInStatus,
    CannotApproveRejected,
    CannotRejectApproved,
    InvalidStatusTransition,
)


@pytest.mark.parametrize(
    "current,target",
    [
        (S.PENDING, S.APPROVED),
        (S.PENDING, S.REJECTED),
        (S.PENDING, S.LEAVE),
        (S.APPROVED, S.ABSENT),
        (S.REJECTED, S.LEAVE),
    ],
)
def test_allowed_transitions(current, target):
    assert can_transition(current, target)
    validate_transition(current, target)


def test_approved_cannot_be_rejected():
    with pytest.raises(CannotRejectApproved):
        validate_transition(S.APPROVED, S.REJECTED)


def test_rejected_cannot_be_approved():
    with pytest.raises(CannotApproveRejected):
        validate_transition(S.REJECTED, S.APPROVED)


def test_same_status_is_rejected():
    with pytest.raises(AlreadyInStatus):
        validate_transition(S.PENDING, S.PENDING)


@pytest.mark.parametrize("target", [S.PENDING, S.APPROVED, S.REJECTED, S.ABSENT])
def test_leave_is_terminal(target):
    with pytest.raises(InvalidStatusTransition):
        validate_transition(S.LEAVE, target)


def test_nothing_returns_to_pending():
    with pytest.raises(InvalidStatusTransition):
        validate_transition(S.APPROVED, S.PENDING)
