from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Optional

from ..audit.service import AuditRecorder
from ..cashbook.model import CashbookEntry
from ..cashbook.repository import CashbookRepository
from ..common.datetime_utils import local_date, local_datetime, now_utc
from ..common.validators import require_amount
from ..companies.model import CompanySettings
from ..companies.repository import CompanyRepository
from ..core.enums import CashDirection, CashTransactionType, LedgerEntryType, PaymentMode, SalaryStatus
from ..core.exceptions import (
    AlreadySettled,
    NotApprovedOrAlreadyPaid,
    NotFoundError,
    SalaryLocked,
    SalaryNotFound,
)
from ..database.unit_of_work import UnitOfWork
from ..notifications.service import Notifier
from ..users.repository import StaffRepository
from .model import LedgerEntry, LedgerTotals, Salary
from .reconciliation import calculate_salary_balance, summarize_ledger
from .repository import LedgerRepository, SalaryRepository
from .service import synthesize_salary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Movement:
    ledger_type: LedgerEntryType
    direction: CashDirection
    transaction_type: CashTransactionType
    sign: int
    label: str


_PAYMENT = _Movement(LedgerEntryType.PAYMENT, CashDirection.DEBIT, CashTransactionType.ADVANCE, 1, "Salary payment")
_RECOVERY = _Movement(LedgerEntryType.RECOVERY, CashDirection.CREDIT, CashTransactionType.RECOVERY, -1, "Recovery")
_DEDUCTION = _Movement(LedgerEntryType.DEDUCTION, CashDirection.CREDIT, CashTransactionType.EXPENSE, -1, "Deduction")


@dataclass(frozen=True)
class MoneyMovementResult:
    salary_id: int
    ledger_entry_id: int
    cashbook_entry_id: int
    amount: Decimal
    balance: Decimal


@dataclass(frozen=True)
class MarkPaidResult:
    salary: Salary
    amount_paid: Decimal
    ledger_entry_id: int
    cashbook_entry_id: int


def ledger_reason(transaction_type: CashTransactionType, description: Optional[str]) -> str:
    return f"{transaction_type.value}: {description}" if description else transaction_type.value


class LedgerService:
    """Money movements against a salary, each written to the cashbook and the ledger together."""

    def __init__(
        self,
        salaries: SalaryRepository,
        ledger: LedgerRepository,
        cashbook: CashbookRepository,
        staff: StaffRepository,
        companies: CompanyRepository,
        uow: UnitOfWork,
        *,
        notifier: Optional[Notifier] = None,
        audit: Optional[AuditRecorder] = None,
    ):
        self._salaries = salaries
        self._ledger = ledger
        self._cashbook = cashbook
        self._staff = staff
        self._companies = companies
        self._uow = uow
        self._notifier = notifier
        self._audit = audit

    def _settings(self, company_id: int) -> CompanySettings:
        settings = self._companies.get_by_id(int(company_id))
        if not settings:
            raise NotFoundError("Company not found")
        return settings

    @staticmethod
    def _entry_timestamp(day: date, now: datetime, settings: CompanySettings) -> datetime:
        """Backdate to the transaction day, keeping the real instant for same-day entries."""
        if day == local_date(now, settings.timezone):
            return now
        return local_datetime(day, time(12, 0), settings.timezone)

    def record_payment(self, *, company_id: int, user_id: int, amount: Any, actor_id: int, **options: Any) -> MoneyMovementResult:
        """Money given to staff: cashbook DEBIT (ADVANCE) plus a positive PAYMENT ledger row."""
        return self._move(_PAYMENT, company_id=company_id, user_id=user_id, amount=amount, actor_id=actor_id, **options)

    def record_recovery(self, *, company_id: int, user_id: int, amount: Any, actor_id: int, **options: Any) -> MoneyMovementResult:
        """Money taken back from staff: cashbook CREDIT plus a negative RECOVERY ledger row."""
        return self._move(_RECOVERY, company_id=company_id, user_id=user_id, amount=amount, actor_id=actor_id, **options)

    def record_deduction(self, *, company_id: int, user_id: int, amount: Any, actor_id: int, **options: Any) -> MoneyMovementResult:
        return self._move(_DEDUCTION, company_id=company_id, user_id=user_id, amount=amount, actor_id=actor_id, **options)

    def _move(
        self,
        kind: _Movement,
        *,
        company_id: int,
        user_id: int,
        amount: Any,
        actor_id: int,
        transaction_date: Optional[date] = None,
        payment_mode: Optional[str] = None,
        description: Optional[str] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> MoneyMovementResult:
        value = require_amount(amount)
        now = now or now_utc()
        settings = self._settings(company_id)
        staff = self._staff.get_by_id(int(user_id))
        if not staff or staff.company_id != int(company_id):
            raise NotFoundError("Staff member not found")

        transaction_date = transaction_date or local_date(now, settings.timezone)
        month = int(month or transaction_date.month)
        year = int(year or transaction_date.year)
        mode = PaymentMode.normalize(payment_mode)
        description = (description or "").strip() or f"{kind.label} {month:02d}/{year}"

        with self._uow.transaction():
            salary = self._salaries.get_for_period(user_id=staff.user_id, company_id=staff.company_id, month=month, year=year)
            if salary is None:
                draft = synthesize_salary(staff, month=month, year=year, now=now)
                salary = dataclasses.replace(draft, salary_id=self._salaries.create(draft))
                logger.info("Synthesized salary %s for user=%s %02d/%s", salary.salary_id, staff.user_id, month, year)
            else:
                salary = self._salaries.get_by_id(salary.salary_id, for_update=True)
            if salary.is_frozen:
                raise SalaryLocked()

            cashbook_id = self._cashbook.create(
                CashbookEntry(
                    entry_id=0,
                    company_id=staff.company_id,
                    user_id=staff.user_id,
                    transaction_type=kind.transaction_type,
                    direction=kind.direction,
                    amount=value,
                    payment_mode=mode,
                    transaction_date=transaction_date,
                    reference=str(salary.salary_id),
                    description=description,
                    created_by=int(actor_id),
                    created_at=now,
                )
            )
            ledger_id = self._ledger.create(
                LedgerEntry(
                    entry_id=0,
                    salary_id=salary.salary_id,
                    user_id=staff.user_id,
                    company_id=staff.company_id,
                    type=kind.ledger_type,
                    amount=value * kind.sign,
                    reason=ledger_reason(kind.transaction_type, description),
                    cashbook_entry_id=cashbook_id,
                    created_by=int(actor_id),
                    created_at=self._entry_timestamp(transaction_date, now, settings),
                )
            )
            balance = calculate_salary_balance(salary.net_amount, self._ledger.list_for_salary(salary.salary_id))

        logger.info(
            "%s of %s recorded for salary %s (cashbook=%s ledger=%s balance=%s)",
            kind.ledger_type.value, value, salary.salary_id, cashbook_id, ledger_id, balance,
        )
        if self._audit:
            self._audit.record(
                company_id=staff.company_id,
                actor_id=int(actor_id),
                action=f"RECORD_{kind.ledger_type.value}",
                entity="SalaryLedger",
                entity_id=ledger_id,
                meta={"salary_id": salary.salary_id, "cashbook_entry_id": cashbook_id, "amount": value},
            )
        return MoneyMovementResult(
            salary_id=salary.salary_id,
            ledger_entry_id=ledger_id,
            cashbook_entry_id=cashbook_id,
            amount=value,
            balance=balance,
        )

    def mark_salary_paid(
        self,
        salary_id: int,
        *,
        payment_date: date,
        method: Optional[str],
        actor_id: int,
        reference: Optional[str] = None,
        notify: bool = False,
        now: Optional[datetime] = None,
    ) -> MarkPaidResult:
        now = now or now_utc()
        mode = PaymentMode.normalize(method)

        with self._uow.transaction():
            salary = self._salaries.get_by_id(int(salary_id), for_update=True)
            if not salary:
                raise SalaryNotFound()
            if salary.status != SalaryStatus.APPROVED or salary.is_locked:
                raise NotApprovedOrAlreadyPaid()

            settings = self._settings(salary.company_id)
            remaining = calculate_salary_balance(salary.net_amount, self._ledger.list_for_salary(salary.salary_id))
            if remaining <= 0:
                raise AlreadySettled()

            description = f"Salary {salary.month:02d}/{salary.year}"
            cashbook_id = self._cashbook.create(
                CashbookEntry(
                    entry_id=0,
                    company_id=salary.company_id,
                    user_id=salary.user_id,
                    transaction_type=CashTransactionType.SALARY_PAYMENT,
                    direction=CashDirection.DEBIT,
                    amount=remaining,
                    payment_mode=mode,
                    transaction_date=payment_date,
                    reference=str(salary.salary_id),
                    description=description,
                    notes=reference,
                    created_by=int(actor_id),
                    created_at=now,
                )
            )
            ledger_id = self._ledger.create(
                LedgerEntry(
                    entry_id=0,
                    salary_id=salary.salary_id,
                    user_id=salary.user_id,
                    company_id=salary.company_id,
                    type=LedgerEntryType.PAYMENT,
                    amount=remaining,
                    reason=ledger_reason(CashTransactionType.SALARY_PAYMENT, description),
                    cashbook_entry_id=cashbook_id,
                    created_by=int(actor_id),
                    created_at=self._entry_timestamp(payment_date, now, settings),
                )
            )
            paid = dataclasses.replace(
                salary,
                status=SalaryStatus.PAID,
                paid_at=self._entry_timestamp(payment_date, now, settings),
                locked_at=now,
                payment_method=mode.value,
                payment_reference=reference,
            )
            self._salaries.update(paid)

        logger.info("Salary %s paid and locked (amount=%s)", salary_id, remaining)
        if notify and self._notifier:
            self._notifier.notify(
                "SALARY_PAID",
                company_id=paid.company_id,
                user_ids=[paid.user_id],
                payload={"salary_id": paid.salary_id, "month": paid.month, "year": paid.year, "amount": str(remaining)},
            )
        if self._audit:
            self._audit.record(
                company_id=paid.company_id,
                actor_id=int(actor_id),
                action="MARK_SALARY_PAID",
                entity="Salary",
                entity_id=paid.salary_id,
                meta={"amount": remaining, "method": mode.value, "reference": reference},
            )
        return MarkPaidResult(salary=paid, amount_paid=remaining, ledger_entry_id=ledger_id, cashbook_entry_id=cashbook_id)

    def get_ledger(self, salary_id: int, *, company_id: Optional[int] = None) -> tuple[Salary, list[LedgerEntry], LedgerTotals]:
        salary = self._salaries.get_by_id(int(salary_id))
        if not salary or (company_id is not None and salary.company_id != int(company_id)):
            raise SalaryNotFound()
        entries = list(self._ledger.list_for_salary(salary.salary_id))
        return salary, entries, summarize_ledger(salary, entries)
