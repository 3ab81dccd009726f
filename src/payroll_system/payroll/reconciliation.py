"""Derived salary balances.

The balance of a salary is never stored. It is recomputed from the net
obligation and the ledger every time it is read:

    balance = net + sum(|RECOVERY|) + sum(|DEDUCTION|) - sum(PAYMENT)

A positive balance is still owed to the staff member; a negative one means
the staff member has been overpaid and owes the company.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from ..common.money import to_money
from ..core.enums import LedgerEntryType
from .model import LedgerEntry, LedgerTotals, Salary


def _totals(entries: Iterable[LedgerEntry]) -> tuple[Decimal, Decimal, Decimal]:
    paid = recovered = deducted = Decimal("0")
    for e in entries:
        if e.type == LedgerEntryType.PAYMENT:
            paid += Decimal(e.amount)
        elif e.type == LedgerEntryType.RECOVERY:
            recovered += abs(Decimal(e.amount))
        elif e.type == LedgerEntryType.DEDUCTION:
            deducted += abs(Decimal(e.amount))
    return to_money(paid), to_money(recovered), to_money(deducted)


def calculate_salary_balance(net_amount: Decimal, entries: Iterable[LedgerEntry]) -> Decimal:
    paid, recovered, deducted = _totals(entries)
    return to_money(Decimal(net_amount) + recovered + deducted - paid)


def summarize_ledger(salary: Salary, entries: Iterable[LedgerEntry]) -> LedgerTotals:
    entries = list(entries)
    paid, recovered, deducted = _totals(entries)
    return LedgerTotals(
        salary_id=salary.salary_id,
        net_amount=to_money(salary.net_amount),
        paid=paid,
        recovered=recovered,
        deducted=deducted,
        balance=calculate_salary_balance(salary.net_amount, entries),
    )
