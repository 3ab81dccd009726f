from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..core.enums import Role, SalaryType


@dataclass(frozen=True)
class StaffProfile:
    """Pay-relevant view of a company member."""

    user_id: int
    company_id: int
    full_name: str
    role: Role = Role.STAFF
    salary_type: SalaryType = SalaryType.MONTHLY
    base_salary: Decimal = Decimal("0")
    daily_rate: Optional[Decimal] = None
    hourly_rate: Optional[Decimal] = None
    overtime_rate: Optional[Decimal] = None
    pf_esi_applicable: bool = False
    is_active: bool = True
