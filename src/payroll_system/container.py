from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import PunchInStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditRepository
from .audit.service import AuditRecorder
from .cashbook.mysql_cashbook_repository import MySQLCashbookRepository
from .cashbook.repository import CashbookRepository
from .cashbook.service import CashbookService
from .common.tasks import TaskRunner, ThreadPoolTaskRunner
from .companies.mysql_company_repository import MySQLCompanyRepository
from .companies.repository import CompanyRepository
from .companies.service import CompanySettingsService
from .corrections.mysql_correction_repository import MySQLCorrectionRepository
from .corrections.repository import CorrectionRepository
from .corrections.service import CorrectionService
from .database.connection import DBConfig, DatabaseConnection
from .database.unit_of_work import MySQLUnitOfWork, UnitOfWork
from .notifications.service import LoggingNotificationSender, NotificationSender, Notifier
from .payroll.calculator.standard_calculator import StandardPayrollCalculator
from .payroll.deductions import DeductionPolicy
from .payroll.ledger_service import LedgerService
from .payroll.mysql_ledger_repository import MySQLLedgerRepository
from .payroll.mysql_salary_repository import MySQLSalaryRepository
from .payroll.recalculation import RecalculationTrigger
from .payroll.repository import LedgerRepository, SalaryRepository
from .payroll.service import SalaryService
from .users.mysql_staff_repository import MySQLStaffRepository
from .users.repository import StaffRepository


@dataclass(frozen=True)
class Container:
    companies_repo: CompanyRepository
    staff_repo: StaffRepository
    attendance_repo: AttendanceRepository
    corrections_repo: CorrectionRepository
    salaries_repo: SalaryRepository
    ledger_repo: LedgerRepository
    cashbook_repo: CashbookRepository
    uow: UnitOfWork
    tasks: TaskRunner

    notifier: Notifier
    audit: AuditRecorder
    recalculation: RecalculationTrigger

    company_service: CompanySettingsService
    attendance_service: AttendanceService
    correction_service: CorrectionService
    salary_service: SalaryService
    ledger_service: LedgerService
    cashbook_service: CashbookService

    conn: Optional[DatabaseConnection] = None


def build_services(
    *,
    companies: CompanyRepository,
    staff: StaffRepository,
    attendance: AttendanceRepository,
    corrections: CorrectionRepository,
    salaries: SalaryRepository,
    ledger: LedgerRepository,
    cashbook: CashbookRepository,
    audit_repo: AuditRepository,
    uow: UnitOfWork,
    tasks: TaskRunner,
    sender: Optional[NotificationSender] = None,
    deduction_policy: Optional[DeductionPolicy] = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    notifier = Notifier(sender or LoggingNotificationSender(), tasks)
    audit = AuditRecorder(audit_repo, tasks)

    salary_service = SalaryService(
        salaries,
        attendance,
        staff,
        companies,
        uow,
        calculator=StandardPayrollCalculator(deduction_policy=deduction_policy),
        audit=audit,
    )
    recalculation = RecalculationTrigger(salaries, salary_service, tasks)

    return Container(
        companies_repo=companies,
        staff_repo=staff,
        attendance_repo=attendance,
        corrections_repo=corrections,
        salaries_repo=salaries,
        ledger_repo=ledger,
        cashbook_repo=cashbook,
        uow=uow,
        tasks=tasks,
        notifier=notifier,
        audit=audit,
        recalculation=recalculation,
        company_service=CompanySettingsService(companies, audit=audit),
        attendance_service=AttendanceService(
            attendance,
            companies,
            staff=staff,
            trigger=recalculation,
            notifier=notifier,
            audit=audit,
            strategy_factory=PunchInStrategyFactory(),
        ),
        correction_service=CorrectionService(
            corrections, attendance, companies, staff, uow, trigger=recalculation, notifier=notifier, audit=audit
        ),
        salary_service=salary_service,
        ledger_service=LedgerService(salaries, ledger, cashbook, staff, companies, uow, notifier=notifier, audit=audit),
        cashbook_service=CashbookService(cashbook, ledger, salaries, companies, uow, staff=staff, audit=audit),
        conn=conn,
    )


def build_container(
    *,
    db_config: dict,
    tasks: Optional[TaskRunner] = None,
    sender: Optional[NotificationSender] = None,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return build_services(
        companies=MySQLCompanyRepository(conn),
        staff=MySQLStaffRepository(conn),
        attendance=MySQLAttendanceRepository(conn),
        corrections=MySQLCorrectionRepository(conn),
        salaries=MySQLSalaryRepository(conn),
        ledger=MySQLLedgerRepository(conn),
        cashbook=MySQLCashbookRepository(conn),
        audit_repo=MySQLAuditRepository(conn),
        uow=MySQLUnitOfWork(conn),
        tasks=tasks or ThreadPoolTaskRunner(),
        sender=sender,
        conn=conn,
    )
