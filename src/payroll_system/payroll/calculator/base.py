from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Sequence

from ...attendance.model import AttendanceRecord
from ...companies.model import CompanySettings
from ...users.model import StaffProfile
from ..model import SalaryCalculationResult


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def calculate(
        self,
        *,
        staff: StaffProfile,
        settings: CompanySettings,
        records: Sequence[AttendanceRecord],
        month: int,
        year: int,
        as_of: date,
    ) -> SalaryCalculationResult:
        raise NotImplementedError
