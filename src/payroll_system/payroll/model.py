from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import BreakdownType, LedgerEntryType, SalaryStatus, SalaryType

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class SalaryBreakdown:
    """One line of a salary computation."""

    type: BreakdownType
    description: str
    amount: Decimal
    quantity: Optional[float] = None
    rate: Optional[Decimal] = None


@dataclass(frozen=True)
class Salary:
    """Monthly salary obligation for one staff member."""

    salary_id: int
    user_id: int
    company_id: int
    month: int
    year: int
    salary_type: SalaryType
    status: SalaryStatus = SalaryStatus.PENDING
    total_days: int = 0
    approved_days: int = 0
    leave_days: int = 0
    absent_days: int = 0
    working_hours: float = 0.0
    overtime_hours: float = 0.0
    late_minutes: int = 0
    base_amount: Decimal = ZERO
    overtime_amount: Decimal = ZERO
    penalty_amount: Decimal = ZERO
    deductions: Decimal = ZERO
    gross_amount: Decimal = ZERO
    net_amount: Decimal = ZERO
    version: int = 1
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    paid_at: Optional[datetime] = None
    locked_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    created_at: Optional[datetime] = None
    breakdowns: tuple[SalaryBreakdown, ...] = field(default_factory=tuple)

    @property
    def is_locked(self) -> bool:
        return self.locked_at is not None

    @property
    def is_frozen(self) -> bool:
        """Locked or paid rows must never be recomputed or paid into."""
        return self.is_locked or self.status == SalaryStatus.PAID


@dataclass(frozen=True)
class LedgerEntry:
    entry_id: int
    salary_id: int
    user_id: int
    company_id: int
    type: LedgerEntryType
    amount: Decimal
    reason: Optional[str] = None
    cashbook_entry_id: Optional[int] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class AttendanceSummary:
    total_days: int
    approved_days: int
    half_days: int
    leave_days: int
    absent_days: int
    rejected_days: int
    working_hours: float
    overtime_hours: float
    late_minutes: int


@dataclass(frozen=True)
class SalaryCalculationResult:
    summary: AttendanceSummary
    base_amount: Decimal
    overtime_amount: Decimal
    penalty_amount: Decimal
    gross_amount: Decimal
    deductions: Decimal
    net_amount: Decimal
    breakdowns: tuple[SalaryBreakdown, ...]


@dataclass(frozen=True)
class LedgerTotals:
    """Derived ledger position of one salary; nothing here is stored."""

    salary_id: int
    net_amount: Decimal
    paid: Decimal
    recovered: Decimal
    deducted: Decimal
    balance: Decimal

    @property
    def owed_to_staff(self) -> Decimal:
        return self.balance if self.balance > 0 else ZERO

    @property
    def owed_by_staff(self) -> Decimal:
        return -self.balance if self.balance < 0 else ZERO


@dataclass(frozen=True)
class BatchGenerationResult:
    processed: int
    skipped: int
    errors: tuple[tuple[int, str], ...] = ()
