from __future__ import annotations

from ..core.enums import AttendanceStatus
from ..core.exceptions import AlreadyInStatus, CannotApproveRejected, CannotRejectApproved, InvalidStatusTransition

_S = AttendanceStatus

ALLOWED_TRANSITIONS: dict[AttendanceStatus, frozenset[AttendanceStatus]] = {
    _S.PENDING: frozenset({_S.APPROVED, _S.REJECTED, _S.ABSENT, _S.LEAVE}),
    _S.APPROVED: frozenset({_S.ABSENT, _S.LEAVE}),
    _S.REJECTED: frozenset({_S.ABSENT, _S.LEAVE}),
    _S.ABSENT: frozenset(),
    _S.LEAVE: frozenset(),
}


def can_transition(current: AttendanceStatus, target: AttendanceStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def validate_transition(current: AttendanceStatus, target: AttendanceStatus) -> None:
    if current == target:
        raise AlreadyInStatus(f"Attendance is already {target.value}")
    if current == _S.REJECTED and target == _S.APPROVED:
        raise CannotApproveRejected()
    if current == _S.APPROVED and target == _S.REJECTED:
        raise CannotRejectApproved()
    if not can_transition(current, target):
        raise InvalidStatusTransition(f"Cannot change attendance from {current.value} to {target.value}")
