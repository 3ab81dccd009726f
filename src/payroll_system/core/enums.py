from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Company roles used for authorization."""

    STAFF = "STAFF"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


class AttendanceStatus(str, Enum):
    """Attendance record status persisted in the database."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ABSENT = "ABSENT"
    LEAVE = "LEAVE"


class SalaryStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    PAID = "PAID"
    REJECTED = "REJECTED"


class SalaryType(str, Enum):
    MONTHLY = "MONTHLY"
    DAILY = "DAILY"
    HOURLY = "HOURLY"


class BreakdownType(str, Enum):
    BASE_SALARY = "BASE_SALARY"
    OVERTIME = "OVERTIME"
    LATE_PENALTY = "LATE_PENALTY"
    ABSENT_PENALTY = "ABSENT_PENALTY"
    PF_DEDUCTION = "PF_DEDUCTION"
    ESI_DEDUCTION = "ESI_DEDUCTION"


class LedgerEntryType(str, Enum):
    PAYMENT = "PAYMENT"
    RECOVERY = "RECOVERY"
    DEDUCTION = "DEDUCTION"


class CashDirection(str, Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class CashTransactionType(str, Enum):
    SALARY_PAYMENT = "SALARY_PAYMENT"
    ADVANCE = "ADVANCE"
    RECOVERY = "RECOVERY"
    EXPENSE = "EXPENSE"
    INCOME = "INCOME"
    ADJUSTMENT = "ADJUSTMENT"


class PaymentMode(str, Enum):
    CASH = "CASH"
    BANK = "BANK"
    UPI = "UPI"
    CHEQUE = "CHEQUE"

    @classmethod
    def normalize(cls, value: str | None) -> "PaymentMode":
        """Map free-form client input onto a supported mode (BANK by default)."""

        raw = (value or "").strip().upper()
        if raw == "ONLINE":
            return cls.BANK
        try:
            return cls(raw)
        except ValueError:
            return cls.BANK


class CorrectionType(str, Enum):
    MISSED_PUNCH_IN = "MISSED_PUNCH_IN"
    MISSED_PUNCH_OUT = "MISSED_PUNCH_OUT"
    ATTENDANCE_MISS = "ATTENDANCE_MISS"
    LEAVE_REQUEST = "LEAVE_REQUEST"
    SUPPORT_REQUEST = "SUPPORT_REQUEST"
    SALARY_REQUEST = "SALARY_REQUEST"


class RequestStatus(str, Enum):
    """Review workflow status for correction requests."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
