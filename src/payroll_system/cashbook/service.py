from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from ..audit.service import AuditRecorder
from ..common.datetime_utils import now_utc, parse_iso_date
from ..common.money import to_money
from ..common.validators import require_amount, require_non_empty
from ..companies.repository import CompanyRepository
from ..core.enums import CashDirection, CashTransactionType, LedgerEntryType, PaymentMode, Role
from ..core.exceptions import (
    AuthorizationError,
    CannotReassignLinkedTransaction,
    NotFoundError,
    SalaryLocked,
    ValidationError,
)
from ..database.unit_of_work import UnitOfWork
from ..payroll.ledger_service import ledger_reason
from ..payroll.model import LedgerEntry
from ..payroll.repository import LedgerRepository, SalaryRepository
from ..users.repository import StaffRepository
from .links import resolve_linked_ledger
from .model import CashbookBalance, CashbookEntry
from .repository import CashbookRepository

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = {
    "amount",
    "direction",
    "transaction_type",
    "payment_mode",
    "transaction_date",
    "description",
    "notes",
    "reference",
    "user_id",
}


def ledger_type_for(direction: CashDirection, transaction_type: CashTransactionType) -> LedgerEntryType:
    if direction == CashDirection.DEBIT:
        return LedgerEntryType.PAYMENT
    if transaction_type == CashTransactionType.EXPENSE:
        return LedgerEntryType.DEDUCTION
    return LedgerEntryType.RECOVERY


def parse_user_id(raw: Any) -> Optional[int]:
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError("user_id must be a number", field="user_id")


def signed_ledger_amount(amount: Decimal, direction: CashDirection) -> Decimal:
    """DEBIT (money to staff) is positive in the ledger, CREDIT is negative."""
    return abs(amount) if direction == CashDirection.DEBIT else -abs(amount)


class CashbookService:
    def __init__(
        self,
        cashbook: CashbookRepository,
        ledger: LedgerRepository,
        salaries: SalaryRepository,
        companies: CompanyRepository,
        uow: UnitOfWork,
        *,
        staff: Optional[StaffRepository] = None,
        audit: Optional[AuditRecorder] = None,
    ):
        self._cashbook = cashbook
        self._ledger = ledger
        self._salaries = salaries
        self._companies = companies
        self._uow = uow
        self._staff = staff
        self._audit = audit

    def _get_entry(self, entry_id: int, company_id: int, *, for_update: bool = False) -> CashbookEntry:
        entry = self._cashbook.get_by_id(int(entry_id), for_update=for_update)
        if not entry or entry.company_id != int(company_id):
            raise NotFoundError("Cashbook entry not found")
        return entry

    def _check_staff(self, user_id: Optional[int], company_id: int) -> None:
        if user_id is None or self._staff is None:
            return
        member = self._staff.get_by_id(user_id)
        if not member or member.company_id != int(company_id):
            raise NotFoundError("Staff member not found")

    def _ensure_unlocked(self, linked: list[LedgerEntry]) -> None:
        for salary_id in {e.salary_id for e in linked}:
            salary = self._salaries.get_by_id(salary_id, for_update=True)
            if salary and salary.is_frozen:
                raise SalaryLocked()

    def add_entry(
        self,
        *,
        company_id: int,
        actor_id: int,
        direction: str,
        transaction_type: str,
        amount: Any,
        payment_mode: Optional[str] = None,
        transaction_date: Optional[date] = None,
        description: Optional[str] = None,
        user_id: Optional[int] = None,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CashbookEntry:
        """General company entry (income, expense, ...) with no salary ledger counterpart."""
        now = now or now_utc()
        user_id = parse_user_id(user_id)
        self._check_staff(user_id, company_id)
        entry = CashbookEntry(
            entry_id=0,
            company_id=int(company_id),
            user_id=user_id,
            transaction_type=self._parse(CashTransactionType, transaction_type, "transaction_type"),
            direction=self._parse(CashDirection, direction, "direction"),
            amount=require_amount(amount),
            payment_mode=PaymentMode.normalize(payment_mode),
            transaction_date=transaction_date or now.date(),
            reference=reference,
            description=require_non_empty(description, "description"),
            notes=notes,
            created_by=int(actor_id),
            created_at=now,
        )
        entry = dataclasses.replace(entry, entry_id=self._cashbook.create(entry))
        self._record("CREATE_CASHBOOK_ENTRY", entry, actor_id, {"amount": entry.amount, "direction": entry.direction.value})
        return entry

    def get_linked_ledger(self, entry_id: int, *, company_id: int) -> list[LedgerEntry]:
        return resolve_linked_ledger(self._get_entry(entry_id, company_id), self._ledger)

    def edit_entry(self, entry_id: int, *, company_id: int, actor_id: int, changes: dict[str, Any]) -> CashbookEntry:
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            field = sorted(unknown)[0]
            raise ValidationError(f"Field {field!r} cannot be edited", field=field)

        with self._uow.transaction():
            entry = self._get_entry(entry_id, company_id, for_update=True)
            if entry.is_reversed or entry.reversal_of is not None:
                raise ValidationError("Reversed entries cannot be edited", field="entry_id")
            updated = self._apply_changes(entry, changes)
            linked = resolve_linked_ledger(entry, self._ledger)

            if linked:
                if updated.user_id != entry.user_id:
                    raise CannotReassignLinkedTransaction()
                if updated.reference != entry.reference:
                    updated = dataclasses.replace(updated, reference=entry.reference)
                self._ensure_unlocked(linked)
            elif updated.user_id != entry.user_id:
                self._check_staff(updated.user_id, company_id)

            self._cashbook.update(updated)
            direction_flipped = updated.direction != entry.direction
            for ledger_entry in linked:
                self._ledger.update(
                    dataclasses.replace(
                        ledger_entry,
                        type=(
                            ledger_type_for(updated.direction, updated.transaction_type)
                            if direction_flipped
                            else ledger_entry.type
                        ),
                        amount=signed_ledger_amount(updated.amount, updated.direction),
                        reason=ledger_reason(updated.transaction_type, updated.description),
                        cashbook_entry_id=updated.entry_id,
                    )
                )

        logger.info("Cashbook entry %s edited by %s (linked ledger rows=%s)", entry_id, actor_id, len(linked))
        self._record(
            "EDIT_CASHBOOK_ENTRY",
            updated,
            actor_id,
            {"fields": sorted(changes), "previous_amount": entry.amount, "amount": updated.amount},
        )
        return updated

    def delete_entry(self, entry_id: int, *, company_id: int, actor_id: int, actor_role: Role) -> None:
        company = self._companies.get_by_id(int(company_id))
        if actor_role != Role.ADMIN or (company and company.owner_id is not None and company.owner_id != int(actor_id)):
            raise AuthorizationError("Only the company owner can delete cashbook entries")

        with self._uow.transaction():
            entry = self._get_entry(entry_id, company_id, for_update=True)
            linked = resolve_linked_ledger(entry, self._ledger)
            self._ensure_unlocked(linked)
            for ledger_entry in linked:
                self._ledger.delete(ledger_entry.entry_id)
            self._cashbook.delete(entry.entry_id)

        logger.warning("Cashbook entry %s hard-deleted by %s (ledger rows=%s)", entry_id, actor_id, len(linked))
        self._record(
            "DELETE_CASHBOOK_ENTRY",
            entry,
            actor_id,
            {"amount": entry.amount, "ledger_entry_ids": [e.entry_id for e in linked]},
        )

    def reverse_entry(
        self,
        entry_id: int,
        *,
        company_id: int,
        actor_id: int,
        reason: str,
        now: Optional[datetime] = None,
    ) -> CashbookEntry:
        reason = require_non_empty(reason, "reason")
        now = now or now_utc()

        with self._uow.transaction():
            entry = self._get_entry(entry_id, company_id, for_update=True)
            if entry.is_reversed:
                raise ValidationError("Entry is already reversed", field="entry_id")
            if entry.reversal_of is not None:
                raise ValidationError("A reversal entry cannot be reversed", field="entry_id")
            if resolve_linked_ledger(entry, self._ledger):
                raise ValidationError("Salary-linked entries must be edited or deleted, not reversed", field="entry_id")

            opposite = CashDirection.CREDIT if entry.direction == CashDirection.DEBIT else CashDirection.DEBIT
            reversal = CashbookEntry(
                entry_id=0,
                company_id=entry.company_id,
                user_id=entry.user_id,
                transaction_type=CashTransactionType.ADJUSTMENT,
                direction=opposite,
                amount=entry.amount,
                payment_mode=entry.payment_mode,
                transaction_date=now.date(),
                reference=f"REVERSAL-{entry.entry_id}",
                description=f"Reversal of entry {entry.entry_id}: {reason}",
                created_by=int(actor_id),
                created_at=now,
                reversal_of=entry.entry_id,
            )
            reversal = dataclasses.replace(reversal, entry_id=self._cashbook.create(reversal))
            self._cashbook.update(dataclasses.replace(entry, is_reversed=True))

        self._record("REVERSE_CASHBOOK_ENTRY", entry, actor_id, {"reason": reason, "reversal_id": reversal.entry_id})
        return reversal

    def get_balance(self, *, company_id: int, start: Optional[date] = None, end: Optional[date] = None) -> CashbookBalance:
        entries = [e for e in self._cashbook.list_for_company(int(company_id), start=start, end=end) if e.counts_toward_balance]
        credit = sum((e.amount for e in entries if e.direction == CashDirection.CREDIT), Decimal("0"))
        debit = sum((e.amount for e in entries if e.direction == CashDirection.DEBIT), Decimal("0"))
        return CashbookBalance(
            company_id=int(company_id),
            total_credit=to_money(credit),
            total_debit=to_money(debit),
            balance=to_money(credit - debit),
            entry_count=len(entries),
        )

    def list_entries(self, *, company_id: int, start: Optional[date] = None, end: Optional[date] = None) -> list[CashbookEntry]:
        return list(self._cashbook.list_for_company(int(company_id), start=start, end=end))

    def _apply_changes(self, entry: CashbookEntry, changes: dict[str, Any]) -> CashbookEntry:
        parsed: dict[str, Any] = {}
        for key, raw in changes.items():
            if key == "amount":
                parsed[key] = require_amount(raw)
            elif key == "direction":
                parsed[key] = self._parse(CashDirection, raw, key)
            elif key == "transaction_type":
                parsed[key] = self._parse(CashTransactionType, raw, key)
            elif key == "payment_mode":
                parsed[key] = PaymentMode.normalize(raw)
            elif key == "transaction_date":
                try:
                    parsed[key] = raw if isinstance(raw, date) else parse_iso_date(str(raw))
                except ValueError:
                    raise ValidationError("transaction_date must be YYYY-MM-DD", field=key)
            elif key == "user_id":
                parsed[key] = parse_user_id(raw)
            else:
                parsed[key] = raw
        return dataclasses.replace(entry, **parsed)

    @staticmethod
    def _parse(enum_cls, raw: Any, field: str):
        try:
            return enum_cls(str(raw).upper())
        except ValueError:
            raise ValidationError(f"Invalid {field}", field=field)

    def _record(self, action: str, entry: CashbookEntry, actor_id: int, meta: dict) -> None:
        if self._audit:
            self._audit.record(
                company_id=entry.company_id,
                actor_id=int(actor_id),
                action=action,
                entity="CashbookEntry",
                entity_id=entry.entry_id,
                meta=meta,
            )
