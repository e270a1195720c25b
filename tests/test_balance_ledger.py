"""Balance ledger operations and yearly seeding."""

from datetime import date
from decimal import Decimal

import pytest

from leave_engine.core.exceptions import PersistenceError, StateConflictError, ValidationError
from leave_engine.models import Employee
from leave_engine.models.common.enums import BalanceType, MovementType
from leave_engine.repositories.leave.leave_balance_repository import LeaveBalanceRepository
from leave_engine.services.base import AuditAction, ErrorCode
from leave_engine.services.leave import (
    BalanceLedger,
    BalanceService,
    compute_carry_over,
    compute_prorata,
)
from leave_engine.services.office import SqlAlchemyEmployeeDirectory, SqlAlchemyOfficeConfigProvider


@pytest.fixture
def repo(session):
    return LeaveBalanceRepository(session)


@pytest.fixture
def ledger(repo):
    return BalanceLedger(repo)


def assert_remaining_identity(balance):
    assert balance.remaining == (
        balance.total_days + balance.carried_over_days - balance.used_days - balance.pending_days
    )


def test_reserve_then_consume(session, org, ledger):
    user = org.employee.id
    reserved = ledger.reserve(user, 2026, BalanceType.ANNUAL, Decimal("3"))
    assert reserved.pending_days == Decimal("3")
    assert reserved.remaining == Decimal("22")
    assert_remaining_identity(reserved)

    consumed = ledger.consume(user, 2026, BalanceType.ANNUAL, Decimal("3"))
    session.commit()
    assert consumed.pending_days == Decimal("0")
    assert consumed.used_days == Decimal("3")
    assert consumed.remaining == Decimal("22")
    assert_remaining_identity(consumed)


def test_reserve_then_release_restores_balance(org, ledger):
    user = org.employee.id
    ledger.reserve(user, 2026, BalanceType.ANNUAL, Decimal("2.5"))
    released = ledger.release(user, 2026, BalanceType.ANNUAL, Decimal("2.5"))
    assert released.pending_days == Decimal("0")
    assert released.used_days == Decimal("0")
    assert released.remaining == Decimal("25")
    assert_remaining_identity(released)


def test_release_or_consume_beyond_pending_is_a_conflict(org, ledger):
    with pytest.raises(StateConflictError):
        ledger.release(org.employee.id, 2026, BalanceType.ANNUAL, Decimal("1"))
    with pytest.raises(StateConflictError):
        ledger.consume(org.employee.id, 2026, BalanceType.ANNUAL, Decimal("1"))


def test_missing_row_raises_persistence_error(org, ledger):
    with pytest.raises(PersistenceError):
        ledger.reserve(org.hr.id, 2026, BalanceType.ANNUAL, Decimal("1"))


def test_non_positive_days_are_rejected(org, ledger):
    with pytest.raises(ValueError):
        ledger.reserve(org.employee.id, 2026, BalanceType.ANNUAL, Decimal("0"))


def test_reserve_never_overdraws_the_balance(session, org, ledger, repo):
    user = org.employee.id
    ledger.reserve(user, 2026, BalanceType.OFFERED, Decimal("1.5"))

    with pytest.raises(ValidationError) as exc:
        ledger.reserve(user, 2026, BalanceType.OFFERED, Decimal("1"))

    assert exc.value.rule_codes == ["INSUFFICIENT_BALANCE"]
    assert exc.value.message == "Insufficient balance: 1 days requested, 0.5 remaining"
    balance = repo.find_balance(user, 2026, BalanceType.OFFERED, refresh=True)
    assert balance.pending_days == Decimal("1.5")


def test_reserve_may_go_negative_when_allowed(org, repo):
    ledger = BalanceLedger(repo, allow_negative=True)

    balance = ledger.reserve(org.employee.id, 2026, BalanceType.OFFERED, Decimal("3"))

    assert balance.remaining == Decimal("-1")
    assert_remaining_identity(balance)


def test_every_operation_writes_a_movement(session, org, ledger, repo):
    balance = repo.find_balance(org.employee.id, 2026, BalanceType.ANNUAL)
    ledger.reserve(org.employee.id, 2026, BalanceType.ANNUAL, Decimal("1"))
    ledger.consume(org.employee.id, 2026, BalanceType.ANNUAL, Decimal("1"))
    ledger.reserve(org.employee.id, 2026, BalanceType.ANNUAL, Decimal("2"))
    ledger.release(org.employee.id, 2026, BalanceType.ANNUAL, Decimal("2"))
    session.commit()

    kinds = sorted(m.movement_type.value for m in repo.find_movements_for_balance(balance.id))
    assert kinds == ["CONSUME", "RELEASE", "RESERVE", "RESERVE"]


@pytest.mark.parametrize(
    "hire_date, expected",
    [
        (date(2020, 5, 1), "25"),
        (date(2026, 1, 1), "25.0"),
        (date(2026, 7, 15), "12.5"),
        (date(2026, 12, 1), "2.1"),
        (date(2027, 1, 1), "0"),
        (None, "25"),
    ],
)
def test_prorata_by_hire_month(hire_date, expected):
    assert compute_prorata(Decimal("25"), hire_date, 2026) == Decimal(expected)


def test_carry_over_is_capped_and_never_negative():
    assert compute_carry_over(Decimal("14"), Decimal("10")) == Decimal("10")
    assert compute_carry_over(Decimal("3.5"), Decimal("10")) == Decimal("3.5")
    assert compute_carry_over(Decimal("-2"), Decimal("10")) == Decimal("0")
    assert compute_carry_over(None, Decimal("10")) == Decimal("0")


@pytest.fixture
def balance_service(session, repo, audit):
    return BalanceService(
        repo,
        session,
        SqlAlchemyOfficeConfigProvider(session),
        SqlAlchemyEmployeeDirectory(session),
        audit,
    )


def test_seed_year_with_carry_over(session, org, repo, balance_service, audit):
    previous = repo.find_balance(org.employee.id, 2026, BalanceType.ANNUAL)
    previous.used_days = Decimal("12")
    session.commit()

    result = balance_service.seed_year(org.employee.id, 2027, actor_id=org.hr.id)

    assert result.is_success
    by_type = {b.balance_type: b for b in result.data}
    annual = by_type[BalanceType.ANNUAL]
    assert annual.total_days == Decimal("25")
    assert annual.carried_over_days == Decimal("10")
    assert annual.remaining == Decimal("35")
    assert by_type[BalanceType.OFFERED].total_days == Decimal("2")
    assert audit.actions() == [AuditAction.BALANCE_SEEDED, AuditAction.BALANCE_SEEDED]

    movements = repo.find_movements_for_balance(annual.id)
    assert sorted((m.movement_type, m.days) for m in movements) == [
        (MovementType.CARRY_OVER, Decimal("10")),
        (MovementType.SEED, Decimal("25")),
    ]


def test_seed_year_prorates_new_hires_and_is_idempotent(session, org, balance_service):
    summer_hire = Employee(
        email="summer@merid.test",
        first_name="Sam",
        last_name="Test",
        office_id=org.geneva.id,
        hire_date=date(2026, 7, 15),
        roles=["EMPLOYEE"],
        is_active=True,
    )
    session.add(summer_hire)
    session.commit()

    first = balance_service.seed_year(summer_hire.id, 2026)
    assert first.metadata["created"] == 2
    annual = next(b for b in first.data if b.balance_type == BalanceType.ANNUAL)
    assert annual.total_days == Decimal("12.5")
    assert annual.carried_over_days == Decimal("0")

    again = balance_service.seed_year(summer_hire.id, 2026)
    assert again.is_success
    assert again.metadata["created"] == 0
    assert len(again.data) == 2


def test_seed_year_for_unknown_employee(balance_service):
    result = balance_service.seed_year("missing", 2026)
    assert not result.is_success
    assert result.error.code == ErrorCode.NOT_FOUND


def test_get_balances_reports_remaining(org, ledger, balance_service):
    ledger.reserve(org.employee.id, 2026, BalanceType.ANNUAL, Decimal("3"), None)

    result = balance_service.get_balances(org.employee.id, 2026)

    assert result.metadata["count"] == 2
    annual, offered = result.data
    assert annual.balance_type == BalanceType.ANNUAL
    assert annual.remaining == Decimal("22")
    assert offered.remaining == Decimal("2")
