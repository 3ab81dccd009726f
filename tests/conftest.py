from __future__ import annotations

import copy
import dataclasses
from contextlib import contextmanager
from datetime import time
from decimal import Decimal

import pytest

from payroll_system.common.tasks import InlineTaskRunner
from payroll_system.companies.model import CompanySettings
from payroll_system.container import build_services
from payroll_system.core.enums import AttendanceStatus, RequestStatus, Role, SalaryType
from payroll_system.core.exceptions import DuplicateRecordError, SalaryLocked
from payroll_system.attendance.model import AttendanceRecord
from payroll_system.corrections.model import CorrectionRequest
from payroll_system.users.model import StaffProfile


class FakeCompanies:
    def __init__(self):
        self.items: dict[int, CompanySettings] = {}

    def get_by_id(self, company_id):
        return self.items.get(int(company_id))

    def save_settings(self, settings):
        self.items[settings.company_id] = settings


class FakeStaff:
    def __init__(self):
        self.items: dict[int, StaffProfile] = {}

    def add(self, profile: StaffProfile) -> StaffProfile:
        self.items[profile.user_id] = profile
        return profile

    def get_by_id(self, user_id):
        return self.items.get(int(user_id))

    def list_active_staff(self, company_id):
        return [p for p in self.items.values() if p.company_id == int(company_id) and p.is_active]

    def list_reviewer_ids(self, company_id):
        return [
            p.user_id
            for p in self.items.values()
            if p.company_id == int(company_id) and p.role in (Role.MANAGER, Role.ADMIN)
        ]


class FakeAttendance:
    def __init__(self):
        self._next_id = 1
        self.items: dict[int, AttendanceRecord] = {}

    def get_by_id(self, attendance_id):
        return self.items.get(int(attendance_id))

    def get_for_user_and_date(self, user_id, company_id, attendance_date):
        for r in self.items.values():
            if r.user_id == user_id and r.company_id == company_id and r.attendance_date == attendance_date:
                return r
        return None

    def find_open_session(self, user_id, company_id):
        open_rows = [
            r
            for r in self.items.values()
            if r.user_id == user_id
            and r.company_id == company_id
            and r.is_open
            and r.status in (AttendanceStatus.PENDING, AttendanceStatus.APPROVED)
        ]
        return max(open_rows, key=lambda r: r.punch_in, default=None)

    def create(self, *, user_id, company_id, attendance_date, status, **fields):
        if self.get_for_user_and_date(user_id, company_id, attendance_date):
            raise DuplicateRecordError()
        attendance_id = self._next_id
        self._next_id += 1
        self.items[attendance_id] = AttendanceRecord(
            attendance_id=attendance_id,
            user_id=user_id,
            company_id=company_id,
            attendance_date=attendance_date,
            status=status,
            **fields,
        )
        return attendance_id

    def update(self, record):
        if record.attendance_id not in self.items:
            return False
        self.items[record.attendance_id] = record
        return True

    def list_for_period(self, *, user_id, company_id, start, end):
        return sorted(
            (
                r
                for r in self.items.values()
                if r.user_id == user_id and r.company_id == company_id and start <= r.attendance_date <= end
            ),
            key=lambda r: r.attendance_date,
        )


class FakeCorrections:
    def __init__(self):
        self._next_id = 1
        self.items: dict[int, CorrectionRequest] = {}

    def create(self, *, user_id, company_id, type, attendance_date, reason, created_at, **fields):
        request_id = self._next_id
        self._next_id += 1
        self.items[request_id] = CorrectionRequest(
            request_id=request_id,
            user_id=user_id,
            company_id=company_id,
            type=type,
            attendance_date=attendance_date,
            reason=reason,
            status=RequestStatus.PENDING,
            created_at=created_at,
            **fields,
        )
        return request_id

    def get_by_id(self, request_id):
        return self.items.get(int(request_id))

    def find_active(self, *, user_id, company_id, type, attendance_date):
        for r in self.items.values():
            if (
                r.user_id == user_id
                and r.company_id == company_id
                and r.type == type
                and r.attendance_date == attendance_date
                and r.status in (RequestStatus.PENDING, RequestStatus.APPROVED)
            ):
                return r
        return None

    def decide(self, *, request_id, status, reviewed_by, reviewed_at, review_reason=None, approved_time=None):
        req = self.items.get(int(request_id))
        if not req or req.status != RequestStatus.PENDING:
            return False
        self.items[req.request_id] = dataclasses.replace(
            req,
            status=status,
            reviewed_by=reviewed_by,
            reviewed_at=reviewed_at,
            review_reason=review_reason,
            approved_time=approved_time,
        )
        return True

    def list_for_company(self, company_id, *, status=None, limit=200):
        rows = [r for r in self.items.values() if r.company_id == company_id and (status is None or r.status == status)]
        return rows[:limit]

    def list_for_user(self, user_id, *, limit=200):
        return [r for r in self.items.values() if r.user_id == user_id][:limit]


class FakeSalaries:
    def __init__(self):
        self._next_id = 1
        self.items = {}

    def get_by_id(self, salary_id, *, for_update=False):
        return self.items.get(int(salary_id))

    def get_for_period(self, *, user_id, company_id, month, year):
        for s in self.items.values():
            if s.user_id == user_id and s.company_id == company_id and s.month == month and s.year == year:
                return s
        return None

    def list_for_period(self, *, company_id, month, year):
        return [s for s in self.items.values() if s.company_id == company_id and s.month == month and s.year == year]

    def create(self, salary):
        if self.get_for_period(user_id=salary.user_id, company_id=salary.company_id, month=salary.month, year=salary.year):
            raise DuplicateRecordError()
        salary_id = self._next_id
        self._next_id += 1
        self.items[salary_id] = dataclasses.replace(salary, salary_id=salary_id)
        return salary_id

    def update(self, salary):
        if self.items[salary.salary_id].is_locked:
            raise SalaryLocked()
        self.items[salary.salary_id] = salary


class FakeLedger:
    def __init__(self):
        self._next_id = 1
        self.items = {}

    def create(self, entry):
        entry_id = self._next_id
        self._next_id += 1
        self.items[entry_id] = dataclasses.replace(entry, entry_id=entry_id)
        return entry_id

    def list_for_salary(self, salary_id):
        return [e for e in self.items.values() if e.salary_id == salary_id]

    def list_by_cashbook_entry(self, cashbook_entry_id):
        return [e for e in self.items.values() if e.cashbook_entry_id == cashbook_entry_id]

    def list_unlinked_for_salary(self, *, salary_id, user_id):
        return [
            e for e in self.items.values() if e.salary_id == salary_id and e.user_id == user_id and e.cashbook_entry_id is None
        ]

    def update(self, entry):
        self.items[entry.entry_id] = entry

    def delete(self, entry_id):
        self.items.pop(entry_id, None)


class FakeCashbook:
    def __init__(self):
        self._next_id = 1
        self.items = {}

    def get_by_id(self, entry_id, *, for_update=False):
        return self.items.get(int(entry_id))

    def create(self, entry):
        entry_id = self._next_id
        self._next_id += 1
        self.items[entry_id] = dataclasses.replace(entry, entry_id=entry_id)
        return entry_id

    def update(self, entry):
        self.items[entry.entry_id] = entry

    def delete(self, entry_id):
        self.items.pop(entry_id, None)

    def list_for_company(self, company_id, *, start=None, end=None):
        return [
            e
            for e in self.items.values()
            if e.company_id == company_id
            and (start is None or e.transaction_date >= start)
            and (end is None or e.transaction_date <= end)
        ]


class FakeAudit:
    def __init__(self):
        self.events = []

    def add(self, event):
        self.events.append(event)
        return len(self.events)

    def actions(self):
        return [e.action for e in self.events]


class RecordingSender:
    def __init__(self):
        self.sent = []

    def send(self, notification):
        self.sent.append(notification)

    def events(self):
        return [n.event for n in self.sent]


class InMemoryUnitOfWork:
    """Snapshots repository state and restores it when the block raises."""

    def __init__(self, *repos):
        self._repos = repos
        self.commits = 0
        self.rollbacks = 0

    @contextmanager
    def transaction(self):
        snapshot = [copy.deepcopy(repo.__dict__) for repo in self._repos]
        try:
            yield
        except Exception:
            for repo, state in zip(self._repos, snapshot):
                repo.__dict__.clear()
                repo.__dict__.update(state)
            self.rollbacks += 1
            raise
        self.commits += 1


class Env:
    """Wired services over in-memory repositories."""

    def __init__(self, *, sender=None, deduction_policy=None):
        self.companies = FakeCompanies()
        self.staff = FakeStaff()
        self.attendance = FakeAttendance()
        self.corrections = FakeCorrections()
        self.salaries = FakeSalaries()
        self.ledger = FakeLedger()
        self.cashbook = FakeCashbook()
        self.audit_repo = FakeAudit()
        self.sender = sender or RecordingSender()
        self.uow = InMemoryUnitOfWork(
            self.attendance, self.corrections, self.salaries, self.ledger, self.cashbook
        )
        self.container = build_services(
            companies=self.companies,
            staff=self.staff,
            attendance=self.attendance,
            corrections=self.corrections,
            salaries=self.salaries,
            ledger=self.ledger,
            cashbook=self.cashbook,
            audit_repo=self.audit_repo,
            uow=self.uow,
            tasks=InlineTaskRunner(),
            sender=self.sender,
            deduction_policy=deduction_policy,
        )

    def __getattr__(self, name):
        return getattr(self.container, name)


@pytest.fixture
def env():
    e = Env()
    e.companies.save_settings(
        CompanySettings(
            company_id=1,
            name="Acme",
            owner_id=100,
            timezone="UTC",
            shift_start=time(9, 0),
            shift_end=time(18, 0),
            grace_minutes=10,
        )
    )
    e.staff.add(StaffProfile(user_id=100, company_id=1, full_name="Owner", role=Role.ADMIN))
    e.staff.add(StaffProfile(user_id=101, company_id=1, full_name="Manager", role=Role.MANAGER))
    e.staff.add(
        StaffProfile(
            user_id=7,
            company_id=1,
            full_name="Daily Worker",
            salary_type=SalaryType.DAILY,
            base_salary=Decimal("26000"),
            daily_rate=Decimal("1000"),
        )
    )
    return e
