"""
Shared fixtures: an in-memory database seeded with a Geneva office
(MON-FRI, 2026-01-01 public holiday), its staff, leave types, balances
and a one-step MANAGER workflow.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from leave_engine.config.settings import Settings
from leave_engine.db.init_db import drop_db, init_db
from leave_engine.db.session import build_session_factory
from leave_engine.models import (
    Employee,
    ExceptionalLeaveRule,
    LeaveBalance,
    LeaveTypeConfig,
    Office,
    PublicHoliday,
    Team,
    WorkflowConfig,
    WorkflowStep,
)
from leave_engine.models.common.enums import BalanceType, WorkflowStepType
from leave_engine.repositories.leave.leave_balance_repository import LeaveBalanceRepository
from leave_engine.services.base import InMemoryAuditLogger, InMemoryNotificationDispatcher
from leave_engine.services.leave import LeaveLifecycleService

# Monday 2026-02-16, 09:00 in Geneva
FIXED_NOW = datetime(2026, 2, 16, 8, 0, tzinfo=timezone.utc)
TODAY = date(2026, 2, 16)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    drop_db(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    db = build_session_factory(engine)()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def settings():
    return Settings(_env_file=None, DEFAULT_WORKFLOW_STEPS=["MANAGER"], ALLOW_NEGATIVE_BALANCE=False)


@pytest.fixture
def audit():
    return InMemoryAuditLogger()


@pytest.fixture
def notifier():
    return InMemoryNotificationDispatcher()


def _employee(office, email, first_name, roles, hire_date=date(2024, 3, 1), team=None):
    return Employee(
        email=email,
        first_name=first_name,
        last_name="Test",
        office_id=office.id,
        team_id=team.id if team else None,
        hire_date=hire_date,
        roles=roles,
        is_active=True,
    )


def _balance(user, year=2026, total="25", balance_type=BalanceType.ANNUAL):
    return LeaveBalance(
        user_id=user.id,
        year=year,
        balance_type=balance_type,
        total_days=Decimal(total),
        used_days=Decimal("0"),
        pending_days=Decimal("0"),
        carried_over_days=Decimal("0"),
    )


@pytest.fixture
def org(session):
    """Seeded organization; attributes hold the ORM rows."""
    geneva = Office(
        name="Geneva",
        country="CH",
        city="Geneva",
        default_annual_leave=Decimal("25"),
        default_offered_days=Decimal("2"),
        min_notice_days=2,
        max_carry_over_days=Decimal("10"),
        carry_over_deadline="03-31",
        probation_months=3,
        sick_leave_justif_from_day=2,
        working_days=["MON", "TUE", "WED", "THU", "FRI"],
        is_active=True,
    )
    lisbon = Office(
        name="Lisbon",
        country="PT",
        city="Lisbon",
        working_days=["MON", "TUE", "WED", "THU", "FRI"],
        is_active=True,
    )
    session.add_all([geneva, lisbon])
    session.flush()

    session.add(PublicHoliday(office_id=geneva.id, date=date(2026, 1, 1), name="New Year"))

    manager = _employee(geneva, "manager@merid.test", "Maya", ["EMPLOYEE", "MANAGER"])
    hr = _employee(geneva, "hr@merid.test", "Hugo", ["EMPLOYEE", "HR"], hire_date=date(2020, 1, 6))
    hr2 = _employee(geneva, "hr2@merid.test", "Helene", ["EMPLOYEE", "HR"], hire_date=date(2021, 1, 4))
    admin = _employee(geneva, "admin@merid.test", "Ada", ["EMPLOYEE", "ADMIN"])
    outsider = _employee(lisbon, "lisbon@merid.test", "Luis", ["EMPLOYEE"])
    session.add_all([manager, hr, hr2, admin, outsider])
    session.flush()

    team = Team(name="Engineering", office_id=geneva.id, manager_id=manager.id)
    session.add(team)
    session.flush()

    employee = _employee(geneva, "employee@merid.test", "Emma", ["EMPLOYEE"], team=team)
    colleague = _employee(geneva, "colleague@merid.test", "Carl", ["EMPLOYEE"], team=team)
    newcomer = _employee(
        geneva, "newcomer@merid.test", "Nina", ["EMPLOYEE"], hire_date=date(2026, 1, 1), team=team
    )
    session.add_all([employee, colleague, newcomer])
    session.flush()

    annual = LeaveTypeConfig(
        office_id=geneva.id, code="ANNUAL", label="Annual leave",
        deducts_from_balance=True, balance_type=BalanceType.ANNUAL, is_active=True,
    )
    sick = LeaveTypeConfig(
        office_id=geneva.id, code="SICK", label="Sick leave", attachment_from_day=3,
        deducts_from_balance=False, balance_type=BalanceType.ANNUAL, is_active=True,
    )
    exceptional = LeaveTypeConfig(
        office_id=geneva.id, code="EXCEPTIONAL", label="Exceptional leave",
        deducts_from_balance=True, balance_type=BalanceType.ANNUAL, is_active=True,
    )
    unpaid = LeaveTypeConfig(
        office_id=geneva.id, code="UNPAID", label="Unpaid leave",
        deducts_from_balance=False, balance_type=BalanceType.ANNUAL, is_active=True,
    )
    offered = LeaveTypeConfig(
        office_id=geneva.id, code="OFFERED", label="Offered day",
        deducts_from_balance=True, balance_type=BalanceType.OFFERED, is_active=True,
    )
    certified = LeaveTypeConfig(
        office_id=geneva.id, code="TRAINING", label="Training", requires_attachment=True,
        deducts_from_balance=False, balance_type=BalanceType.ANNUAL, is_active=True,
    )
    retired = LeaveTypeConfig(
        office_id=geneva.id, code="SABBATICAL", label="Sabbatical",
        deducts_from_balance=False, balance_type=BalanceType.ANNUAL, is_active=False,
    )
    lisbon_annual = LeaveTypeConfig(
        office_id=lisbon.id, code="ANNUAL", label="Ferias",
        deducts_from_balance=True, balance_type=BalanceType.ANNUAL, is_active=True,
    )
    session.add_all([annual, sick, exceptional, unpaid, offered, certified, retired, lisbon_annual])
    session.flush()

    wedding = ExceptionalLeaveRule(
        office_id=geneva.id, reason_code="WEDDING", label="Wedding",
        max_days=Decimal("3"), is_active=True,
    )
    session.add(wedding)

    workflow = WorkflowConfig(office_id=geneva.id, is_active=True)
    workflow.steps.append(
        WorkflowStep(step_order=1, step_type=WorkflowStepType.MANAGER, is_required=True)
    )
    session.add(workflow)

    session.add_all([
        _balance(employee),
        _balance(employee, total="2", balance_type=BalanceType.OFFERED),
        _balance(colleague),
        _balance(newcomer),
        _balance(manager),
    ])
    session.commit()

    return SimpleNamespace(
        geneva=geneva,
        lisbon=lisbon,
        manager=manager,
        hr=hr,
        hr2=hr2,
        admin=admin,
        outsider=outsider,
        team=team,
        employee=employee,
        colleague=colleague,
        newcomer=newcomer,
        annual=annual,
        sick=sick,
        exceptional=exceptional,
        unpaid=unpaid,
        offered=offered,
        certified=certified,
        retired=retired,
        lisbon_annual=lisbon_annual,
        wedding=wedding,
        workflow=workflow,
    )


@pytest.fixture
def two_step_workflow(session, org):
    """Turn the Geneva workflow into MANAGER then HR."""
    org.workflow.steps.append(
        WorkflowStep(step_order=2, step_type=WorkflowStepType.HR, is_required=True)
    )
    session.commit()
    return org.workflow


@pytest.fixture
def lifecycle(session, org, settings, audit, notifier):
    return LeaveLifecycleService.from_session(
        session,
        notification_dispatcher=notifier,
        audit_logger=audit,
        settings=settings,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def balance_of(session):
    """Fresh read of a balance row."""
    repo = LeaveBalanceRepository(session)

    def _get(user, year=2026, balance_type=BalanceType.ANNUAL):
        return repo.find_balance(user.id, year, balance_type, refresh=True)

    return _get
