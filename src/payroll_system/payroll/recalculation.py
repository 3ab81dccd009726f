from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..common.tasks import TaskRunner
from ..core.enums import SalaryStatus
from ..core.exceptions import SalaryAlreadyExists, SalaryLocked
from .repository import SalaryRepository
from .service import SalaryService

logger = logging.getLogger(__name__)


class RecalculationAction(str, enum.Enum):
    RECALCULATED = "RECALCULATED"
    GENERATED = "GENERATED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class RecalculationOutcome:
    user_id: int
    company_id: int
    month: int
    year: int
    action: RecalculationAction
    salary_id: Optional[int] = None
    detail: Optional[str] = None


class RecalculationTrigger:
    """Re-derives a period's salary after its attendance changed.

    ``schedule`` hands the work to the task runner and returns immediately;
    ``run`` never raises so a failing recalculation cannot fail the
    attendance write that caused it.
    """

    def __init__(self, salaries: SalaryRepository, salary_service: SalaryService, tasks: TaskRunner):
        self._salaries = salaries
        self._salary_service = salary_service
        self._tasks = tasks

    def schedule(self, *, user_id: int, company_id: int, attendance_date: date) -> None:
        self.schedule_period(user_id=user_id, company_id=company_id, month=attendance_date.month, year=attendance_date.year)

    def schedule_period(self, *, user_id: int, company_id: int, month: int, year: int) -> None:
        self._tasks.submit(
            f"recalculate:{user_id}:{year}-{month:02d}",
            self.run,
            user_id=int(user_id),
            company_id=int(company_id),
            month=int(month),
            year=int(year),
        )

    def run(self, *, user_id: int, company_id: int, month: int, year: int) -> RecalculationOutcome:
        def outcome(action: RecalculationAction, salary_id: Optional[int] = None, detail: Optional[str] = None):
            return RecalculationOutcome(user_id, company_id, month, year, action, salary_id, detail)

        try:
            salary = self._salaries.get_for_period(user_id=user_id, company_id=company_id, month=month, year=year)
            if salary is None:
                created = self._salary_service.generate_salary(user_id=user_id, company_id=company_id, month=month, year=year)
                return outcome(RecalculationAction.GENERATED, created.salary_id)

            if salary.status != SalaryStatus.PENDING or salary.is_locked:
                logger.info(
                    "Skipping recalculation of salary %s (status=%s locked=%s)",
                    salary.salary_id, salary.status.value, salary.is_locked,
                )
                return outcome(RecalculationAction.SKIPPED, salary.salary_id, salary.status.value)

            updated = self._salary_service.recalculate_salary(salary.salary_id)
            return outcome(RecalculationAction.RECALCULATED, updated.salary_id)
        except (SalaryLocked, SalaryAlreadyExists) as exc:
            # Lost a race with payment or another trigger.
            logger.info("Recalculation for user=%s %02d/%s skipped: %s", user_id, month, year, exc)
            return outcome(RecalculationAction.SKIPPED, detail=exc.code)
        except Exception as exc:
            logger.exception("Recalculation failed for user=%s %02d/%s", user_id, month, year)
            return outcome(RecalculationAction.FAILED, detail=str(exc))
