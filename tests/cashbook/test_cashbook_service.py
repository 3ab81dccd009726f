from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from payroll_system.cashbook.model import CashbookEntry
from payroll_system.core.enums import (
    AttendanceStatus,
    CashDirection,
    CashTransactionType,
    LedgerEntryType,
    PaymentMode,
    Role,
)
from payroll_system.core.exceptions import (
    AuthorizationError,
    CannotReassignLinkedTransaction,
    NotFoundError,
    SalaryLocked,
    ValidationError,
)
from payroll_system.payroll.model import LedgerEntry
from payroll_system.users.model import StaffProfile

NOW = datetime(2024, 5, 2, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def payment(env):
    for day in (1, 2, 3):
        env.attendance.create(
            user_id=7, company_id=1, attendance_date=date(2024, 4, day), status=AttendanceStatus.APPROVED, working_hours=9.0
        )
    env.salary_service.generate_salary(user_id=7, company_id=1, month=4, year=2024, now=NOW)
    return env.ledger_service.record_payment(
        company_id=1, user_id=7, amount="2000", actor_id=100, month=4, year=2024, transaction_date=date(2024, 4, 30), now=NOW
    )


def add_income(env, amount="5000", **kwargs):
    kwargs.setdefault("description", "Client invoice")
    return env.cashbook_service.add_entry(
        company_id=1, actor_id=100, direction="credit", transaction_type="income", amount=amount, now=NOW, **kwargs
    )


def balance(env, salary_id):
    return env.ledger_service.get_ledger(salary_id)[2].balance


def test_add_general_entry(env):
    entry = add_income(env, payment_mode="cheque")

    assert entry.entry_id > 0
    assert entry.direction == CashDirection.CREDIT
    assert entry.payment_mode == PaymentMode.CHEQUE
    assert entry.transaction_date == date(2024, 5, 2)
    assert env.ledger.items == {}


def test_add_entry_requires_description_and_valid_enums(env):
    with pytest.raises(ValidationError):
        add_income(env, description=" ")
    with pytest.raises(ValidationError):
        env.cashbook_service.add_entry(
            company_id=1, actor_id=100, direction="sideways", transaction_type="income", amount="1", description="x"
        )


def test_add_entry_validates_staff_member(env):
    env.staff.add(StaffProfile(user_id=55, company_id=2, full_name="Elsewhere"))

    with pytest.raises(ValidationError) as exc:
        add_income(env, user_id="abc")
    assert exc.value.field == "user_id"
    with pytest.raises(NotFoundError):
        add_income(env, user_id=55)

    entry = add_income(env, user_id="7")
    assert entry.user_id == 7


def test_edit_general_entry_rejects_staff_of_other_company(env):
    env.staff.add(StaffProfile(user_id=55, company_id=2, full_name="Elsewhere"))
    entry = add_income(env)

    with pytest.raises(NotFoundError):
        env.cashbook_service.edit_entry(entry.entry_id, company_id=1, actor_id=100, changes={"user_id": 55})
    with pytest.raises(ValidationError):
        env.cashbook_service.edit_entry(entry.entry_id, company_id=1, actor_id=100, changes={"user_id": "x7"})

    assert env.cashbook.get_by_id(entry.entry_id).user_id is None


def test_edit_linked_amount_updates_ledger(env, payment):
    env.cashbook_service.edit_entry(payment.cashbook_entry_id, company_id=1, actor_id=100, changes={"amount": "1500"})

    ledger_entry = env.ledger.items[payment.ledger_entry_id]
    assert ledger_entry.amount == Decimal("1500.00")
    assert ledger_entry.type == LedgerEntryType.PAYMENT
    assert balance(env, payment.salary_id) == Decimal("1500.00")


def test_edit_direction_flip_changes_ledger_type(env, payment):
    env.cashbook_service.edit_entry(
        payment.cashbook_entry_id, company_id=1, actor_id=100, changes={"direction": "CREDIT", "transaction_type": "RECOVERY"}
    )

    ledger_entry = env.ledger.items[payment.ledger_entry_id]
    assert ledger_entry.type == LedgerEntryType.RECOVERY
    assert ledger_entry.amount == Decimal("-2000.00")
    assert balance(env, payment.salary_id) == Decimal("5000.00")


def test_edit_cannot_reassign_linked_entry(env, payment):
    with pytest.raises(CannotReassignLinkedTransaction):
        env.cashbook_service.edit_entry(payment.cashbook_entry_id, company_id=1, actor_id=100, changes={"user_id": 101})

    assert env.cashbook.get_by_id(payment.cashbook_entry_id).user_id == 7


def test_edit_rejects_unknown_fields(env, payment):
    with pytest.raises(ValidationError):
        env.cashbook_service.edit_entry(payment.cashbook_entry_id, company_id=1, actor_id=100, changes={"company_id": 2})


def test_edit_blocked_once_salary_is_paid(env, payment):
    env.salary_service.approve_salary(payment.salary_id, approver_id=100, now=NOW)
    env.ledger_service.mark_salary_paid(payment.salary_id, payment_date=date(2024, 5, 2), method="CASH", actor_id=100, now=NOW)

    with pytest.raises(SalaryLocked):
        env.cashbook_service.edit_entry(payment.cashbook_entry_id, company_id=1, actor_id=100, changes={"amount": "10"})
    with pytest.raises(SalaryLocked):
        env.cashbook_service.delete_entry(payment.cashbook_entry_id, company_id=1, actor_id=100, actor_role=Role.ADMIN)

    assert env.cashbook.get_by_id(payment.cashbook_entry_id).amount == Decimal("2000.00")


def test_delete_requires_company_owner(env, payment):
    with pytest.raises(AuthorizationError):
        env.cashbook_service.delete_entry(payment.cashbook_entry_id, company_id=1, actor_id=101, actor_role=Role.MANAGER)
    with pytest.raises(AuthorizationError):
        env.cashbook_service.delete_entry(payment.cashbook_entry_id, company_id=1, actor_id=101, actor_role=Role.ADMIN)


def test_delete_removes_cashbook_and_ledger_rows(env, payment):
    env.cashbook_service.delete_entry(payment.cashbook_entry_id, company_id=1, actor_id=100, actor_role=Role.ADMIN)

    assert env.cashbook.get_by_id(payment.cashbook_entry_id) is None
    assert payment.ledger_entry_id not in env.ledger.items
    assert balance(env, payment.salary_id) == Decimal("3000.00")
    assert "DELETE_CASHBOOK_ENTRY" in env.audit_repo.actions()


def test_entry_of_other_company_is_not_found(env, payment):
    with pytest.raises(NotFoundError):
        env.cashbook_service.edit_entry(payment.cashbook_entry_id, company_id=2, actor_id=100, changes={"amount": "1"})


def test_reverse_general_entry(env):
    entry = add_income(env)

    reversal = env.cashbook_service.reverse_entry(entry.entry_id, company_id=1, actor_id=100, reason="Bounced", now=NOW)

    assert reversal.direction == CashDirection.DEBIT
    assert reversal.transaction_type == CashTransactionType.ADJUSTMENT
    assert reversal.reversal_of == entry.entry_id
    assert env.cashbook.get_by_id(entry.entry_id).is_reversed
    totals = env.cashbook_service.get_balance(company_id=1)
    assert totals.balance == Decimal("0.00")
    assert totals.entry_count == 0

    with pytest.raises(ValidationError):
        env.cashbook_service.reverse_entry(entry.entry_id, company_id=1, actor_id=100, reason="again", now=NOW)
    with pytest.raises(ValidationError):
        env.cashbook_service.reverse_entry(reversal.entry_id, company_id=1, actor_id=100, reason="again", now=NOW)


def test_salary_linked_entry_cannot_be_reversed(env, payment):
    with pytest.raises(ValidationError):
        env.cashbook_service.reverse_entry(payment.cashbook_entry_id, company_id=1, actor_id=100, reason="oops", now=NOW)


def test_balance_is_credit_minus_debit(env, payment):
    add_income(env, "5000")

    totals = env.cashbook_service.get_balance(company_id=1)

    assert totals.total_credit == Decimal("5000.00")
    assert totals.total_debit == Decimal("2000.00")
    assert totals.balance == Decimal("3000.00")
    assert env.cashbook_service.get_balance(company_id=1, start=date(2024, 5, 1)).balance == Decimal("5000.00")


def test_legacy_entry_without_direct_link_is_resolved(env, payment):
    legacy_id = env.ledger.create(
        LedgerEntry(
            entry_id=0,
            salary_id=payment.salary_id,
            user_id=7,
            company_id=1,
            type=LedgerEntryType.PAYMENT,
            amount=Decimal("300.00"),
        )
    )
    cash_id = env.cashbook.create(
        CashbookEntry(
            entry_id=0,
            company_id=1,
            user_id=7,
            transaction_type=CashTransactionType.ADVANCE,
            direction=CashDirection.DEBIT,
            amount=Decimal("300.00"),
            payment_mode=PaymentMode.CASH,
            transaction_date=date(2024, 4, 20),
            reference=str(payment.salary_id),
            description="Old advance",
        )
    )

    linked = env.cashbook_service.get_linked_ledger(cash_id, company_id=1)
    assert [e.entry_id for e in linked] == [legacy_id]

    env.cashbook_service.edit_entry(cash_id, company_id=1, actor_id=100, changes={"amount": "350"})
    assert env.ledger.items[legacy_id].amount == Decimal("350.00")
    assert env.ledger.items[legacy_id].cashbook_entry_id == cash_id
