from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import CashDirection, CashTransactionType, PaymentMode


@dataclass(frozen=True)
class CashbookEntry:
    """Company-wide money movement. Amount is unsigned; direction carries the sign."""

    entry_id: int
    company_id: int
    transaction_type: CashTransactionType
    direction: CashDirection
    amount: Decimal
    payment_mode: PaymentMode
    transaction_date: date
    user_id: Optional[int] = None
    reference: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    is_reversed: bool = False
    reversal_of: Optional[int] = None

    @property
    def counts_toward_balance(self) -> bool:
        return not self.is_reversed and self.reversal_of is None


@dataclass(frozen=True)
class CashbookBalance:
    company_id: int
    total_credit: Decimal
    total_debit: Decimal
    balance: Decimal
    entry_count: int
