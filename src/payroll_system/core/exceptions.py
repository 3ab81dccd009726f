from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "DOMAIN_ERROR"
    http_status = 400

    def __init__(self, message: str = "", *, code: Optional[str] = None):
        super().__init__(message or self.__class__.__doc__ or self.code)
        if code:
            self.code = code

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str = "", *, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "FORBIDDEN"
    http_status = 403


class NotFoundError(DomainError):
    """Requested entity does not exist in this company."""

    code = "NOT_FOUND"
    http_status = 404


class DuplicateRecordError(DomainError):
    """A unique key was violated on insert."""

    code = "DUPLICATE_RECORD"
    http_status = 409


# attendance

class AlreadyOpenSession(DomainError):
    """You already have an open attendance session."""

    code = "ALREADY_PUNCHED_IN"
    http_status = 409


class NoOpenSession(DomainError):
    """No active attendance session found."""

    code = "NO_ACTIVE_SESSION"


class PunchInNotAllowed(DomainError):
    code = "PUNCH_IN_NOT_ALLOWED"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class PunchOutNotAllowed(DomainError):
    code = "PUNCH_OUT_NOT_ALLOWED"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class AlreadyInStatus(DomainError):
    """Attendance already has the requested status."""

    code = "ALREADY_IN_STATUS"


class CannotRejectApproved(DomainError):
    """Approved attendance cannot be rejected."""

    code = "CANNOT_REJECT_APPROVED"


class CannotApproveRejected(DomainError):
    """Rejected attendance cannot be approved."""

    code = "CANNOT_APPROVE_REJECTED"


class InvalidStatusTransition(DomainError):
    """Attendance status change is not allowed."""

    code = "INVALID_STATUS_TRANSITION"


# payroll

class SalaryAlreadyExists(DomainError):
    """Salary already generated for this period."""

    code = "SALARY_ALREADY_EXISTS"
    http_status = 409


class SalaryNotFound(NotFoundError):
    """Salary not found."""

    code = "SALARY_NOT_FOUND"


class SalaryLocked(DomainError):
    """Salary is locked and cannot be modified."""

    code = "SALARY_LOCKED"
    http_status = 409


class NotApprovedOrAlreadyPaid(DomainError):
    """Salary is not approved or is already paid."""

    code = "NOT_APPROVED_OR_ALREADY_PAID"
    http_status = 409


class AlreadySettled(DomainError):
    """Salary has no remaining balance to pay."""

    code = "ALREADY_SETTLED"
    http_status = 409


class InvalidSalaryStatus(DomainError):
    """Salary is not in a status that allows this action."""

    code = "INVALID_SALARY_STATUS"
    http_status = 409


# cashbook

class CannotReassignLinkedTransaction(DomainError):
    """A salary-linked cashbook entry cannot be moved to another staff member."""

    code = "CANNOT_REASSIGN_LINKED_TRANSACTION"


# corrections

class DuplicateCorrectionRequest(DomainError):
    """A request of this type already exists for this date."""

    code = "DUPLICATE_CORRECTION_REQUEST"
    http_status = 409


class InvalidDateRange(ValidationError):
    code = "INVALID_DATE_RANGE"


class RequestAlreadyReviewed(DomainError):
    """Request has already been reviewed."""

    code = "REQUEST_ALREADY_REVIEWED"
    http_status = 409
