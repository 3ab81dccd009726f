from __future__ import annotations

from decimal import Decimal
from typing import Protocol, Sequence

from ..common.money import to_money
from ..companies.model import CompanySettings
from ..core.enums import BreakdownType
from ..users.model import StaffProfile
from .model import SalaryBreakdown


class DeductionPolicy(Protocol):
    """Turns gross pay into statutory or contractual deduction lines."""

    def deductions_for(self, *, gross: Decimal, staff: StaffProfile, settings: CompanySettings) -> Sequence[SalaryBreakdown]:
        raise NotImplementedError


class StatutoryDeductionPolicy(DeductionPolicy):
    """PF and ESI as percentages of gross for profiles marked applicable."""

    def deductions_for(self, *, gross: Decimal, staff: StaffProfile, settings: CompanySettings) -> Sequence[SalaryBreakdown]:
        if not staff.pf_esi_applicable or gross <= 0:
            return []
        lines = []
        for kind, pct in (
            (BreakdownType.PF_DEDUCTION, settings.pf_percentage),
            (BreakdownType.ESI_DEDUCTION, settings.esi_percentage),
        ):
            amount = to_money(gross * Decimal(pct) / 100)
            if amount > 0:
                label = "PF" if kind == BreakdownType.PF_DEDUCTION else "ESI"
                lines.append(SalaryBreakdown(type=kind, description=f"{label} @ {pct}%", amount=amount, rate=Decimal(pct)))
        return lines


class NoDeductionPolicy(DeductionPolicy):
    def deductions_for(self, *, gross: Decimal, staff: StaffProfile, settings: CompanySettings) -> Sequence[SalaryBreakdown]:
        return []
