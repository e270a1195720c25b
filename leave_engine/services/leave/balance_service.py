"""
Balance service.

Yearly seeding of ANNUAL and OFFERED rows with hire-month prorating
and capped carry-over, plus balance reads.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sqlalchemy.orm import Session

from leave_engine.core.exceptions import ResourceNotFoundError
from leave_engine.models.common.enums import BalanceType, MovementType
from leave_engine.models.leave import LeaveBalance
from leave_engine.repositories.leave.leave_balance_repository import LeaveBalanceRepository
from leave_engine.schemas.leave.leave_balance import LeaveBalanceResponse
from leave_engine.services.base.audit_service import (
    AuditAction,
    AuditEntry,
    AuditLogger,
    record_safely,
)
from leave_engine.services.base.base_service import BaseService
from leave_engine.services.base.service_result import ServiceResult
from leave_engine.services.office.config_provider import OfficeConfigProvider
from leave_engine.services.office.employee_directory import EmployeeDirectory

TENTH = Decimal("0.1")
ZERO = Decimal("0")


def compute_prorata(annual_days: Decimal, hire_date: Optional[date], year: int) -> Decimal:
    """
    Annual allocation for ``year`` given the hire date.

    Employees hired during the year get annual / 12 for each month from
    their hire month to December, rounded half-up to 0.1 day.
    """
    annual_days = Decimal(annual_days)
    if hire_date is None or hire_date.year < year:
        return annual_days
    if hire_date.year > year:
        return ZERO
    months = 12 - (hire_date.month - 1)
    return (annual_days / 12 * months).quantize(TENTH, rounding=ROUND_HALF_UP)


def compute_carry_over(previous_remaining: Optional[Decimal], max_carry_over: Decimal) -> Decimal:
    """min(max(previous remaining, 0), cap)"""
    if previous_remaining is None:
        return ZERO
    return min(max(Decimal(previous_remaining), ZERO), Decimal(max_carry_over))


class BalanceService(BaseService[LeaveBalance, LeaveBalanceRepository]):
    """Seeds and reads leave balances."""

    def __init__(
        self,
        repository: LeaveBalanceRepository,
        db_session: Session,
        config_provider: OfficeConfigProvider,
        employee_directory: EmployeeDirectory,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(repository, db_session)
        self.config_provider = config_provider
        self.employee_directory = employee_directory
        self.audit_logger = audit_logger

    def seed_year(
        self,
        user_id: str,
        year: int,
        actor_id: Optional[str] = None,
    ) -> ServiceResult[List[LeaveBalanceResponse]]:
        """
        Create the ANNUAL and OFFERED rows of ``year`` when missing.

        Existing rows are left untouched, so seeding twice is harmless.

        Args:
            user_id: Employee to seed
            year: Balance year
            actor_id: Who triggered the seeding (None for system jobs)

        Returns:
            All balance rows of the employee for the year
        """
        try:
            created = []
            with self.transaction():
                employee = self.employee_directory.get_employee(user_id)
                if employee is None:
                    raise ResourceNotFoundError("Employee", user_id)
                rules = self.config_provider.get_office_rules(employee.office_id)

                if self.repository.find_balance(user_id, year, BalanceType.ANNUAL) is None:
                    previous = self.repository.find_balance(user_id, year - 1, BalanceType.ANNUAL)
                    carry = compute_carry_over(
                        previous.remaining if previous is not None else None,
                        rules.max_carry_over_days,
                    )
                    allocation = compute_prorata(rules.default_annual_leave, employee.hire_date, year)
                    annual = self.repository.create(
                        LeaveBalance(
                            user_id=user_id,
                            year=year,
                            balance_type=BalanceType.ANNUAL,
                            total_days=allocation,
                            used_days=ZERO,
                            pending_days=ZERO,
                            carried_over_days=carry,
                        )
                    )
                    self.repository.add_movement(
                        annual.id, MovementType.SEED, allocation, note=f"Allocation {year}"
                    )
                    if carry > 0:
                        self.repository.add_movement(
                            annual.id, MovementType.CARRY_OVER, carry,
                            note=f"Carried over from {year - 1}",
                        )
                    created.append(annual)

                if self.repository.find_balance(user_id, year, BalanceType.OFFERED) is None:
                    offered_days = Decimal(rules.default_offered_days)
                    offered = self.repository.create(
                        LeaveBalance(
                            user_id=user_id,
                            year=year,
                            balance_type=BalanceType.OFFERED,
                            total_days=offered_days,
                            used_days=ZERO,
                            pending_days=ZERO,
                            carried_over_days=ZERO,
                        )
                    )
                    self.repository.add_movement(
                        offered.id, MovementType.SEED, offered_days, note=f"Offered days {year}"
                    )
                    created.append(offered)

                balances = [
                    LeaveBalanceResponse.model_validate(b)
                    for b in self.repository.find_for_user_year(user_id, year)
                ]

            for balance in created:
                record_safely(
                    self.audit_logger,
                    AuditEntry(
                        actor_id=actor_id,
                        action=AuditAction.BALANCE_SEEDED,
                        entity_type="LeaveBalance",
                        entity_id=balance.id,
                        details={
                            "user_id": user_id,
                            "year": year,
                            "balance_type": balance.balance_type.value,
                            "total_days": str(balance.total_days),
                            "carried_over_days": str(balance.carried_over_days),
                        },
                    ),
                    self._logger,
                )
            self._log_operation("seed balances", user_id, {"year": year, "created": len(created)})
            return ServiceResult.success(
                balances,
                message=f"{len(created)} balance(s) created",
                metadata={"created": len(created)},
            )

        except Exception as e:
            return self._handle_exception(e, "seed balances", user_id)

    def get_balances(self, user_id: str, year: int) -> ServiceResult[List[LeaveBalanceResponse]]:
        try:
            items = [
                LeaveBalanceResponse.model_validate(b)
                for b in self.repository.find_for_user_year(user_id, year)
            ]
            return ServiceResult.success(items, metadata={"count": len(items)})
        except Exception as e:
            return self._handle_exception(e, "get balances", user_id)


__all__ = ["BalanceService", "compute_carry_over", "compute_prorata"]
