from datetime import date
from decimal import Decimal

from payroll_system.cashbook.links import resolve_linked_ledger
from payroll_system.cashbook.model import CashbookEntry
from payroll_system.core.enums import CashDirection, CashTransactionType, LedgerEntryType, PaymentMode
from payroll_system.payroll.model import LedgerEntry


class StubLedger:
    def __init__(self, entries):
        self.entries = entries

    def list_by_cashbook_entry(self, cashbook_entry_id):
        return [e for e in self.entries if e.cashbook_entry_id == cashbook_entry_id]

    def list_unlinked_for_salary(self, *, salary_id, user_id):
        return [e for e in self.entries if e.salary_id == salary_id and e.user_id == user_id and e.cashbook_entry_id is None]


def ledger_entry(entry_id, amount, cashbook_entry_id=None, user_id=7):
    return LedgerEntry(
        entry_id=entry_id,
        salary_id=5,
        user_id=user_id,
        company_id=1,
        type=LedgerEntryType.PAYMENT,
        amount=Decimal(amount),
        cashbook_entry_id=cashbook_entry_id,
    )


def cash(amount="300", reference="5", entry_id=40, user_id=7):
    return CashbookEntry(
        entry_id=entry_id,
        company_id=1,
        user_id=user_id,
        transaction_type=CashTransactionType.ADVANCE,
        direction=CashDirection.DEBIT,
        amount=Decimal(amount),
        payment_mode=PaymentMode.CASH,
        transaction_date=date(2024, 4, 1),
        reference=reference,
    )


def test_direct_link_wins():
    ledger = StubLedger([ledger_entry(1, "300"), ledger_entry(2, "999", cashbook_entry_id=40)])

    assert [e.entry_id for e in resolve_linked_ledger(cash(), ledger)] == [2]


def test_legacy_match_prefers_same_amount():
    ledger = StubLedger([ledger_entry(1, "100"), ledger_entry(2, "300")])

    assert [e.entry_id for e in resolve_linked_ledger(cash(), ledger)] == [2]


def test_legacy_match_falls_back_to_first_candidate():
    ledger = StubLedger([ledger_entry(1, "100"), ledger_entry(2, "200")])

    assert [e.entry_id for e in resolve_linked_ledger(cash(), ledger)] == [1]


def test_non_numeric_reference_or_missing_user_has_no_link():
    ledger = StubLedger([ledger_entry(1, "300")])

    assert resolve_linked_ledger(cash(reference="REVERSAL-3"), ledger) == []
    assert resolve_linked_ledger(cash(user_id=None), ledger) == []
    assert resolve_linked_ledger(cash(reference="6"), ledger) == []
