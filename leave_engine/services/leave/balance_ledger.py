"""
Balance ledger.

reserve / consume / release move days between the pending and used
columns of one balance row with atomic increments, and append a
movement row for each call. The ledger never commits: it runs inside
the transaction of the lifecycle transition that calls it.
"""

from decimal import Decimal
from typing import List, Optional

from leave_engine.core.exceptions import PersistenceError, StateConflictError, ValidationError
from leave_engine.core.logging import get_logger
from leave_engine.models.common.enums import BalanceType, MovementType
from leave_engine.models.leave import LeaveBalance
from leave_engine.repositories.leave.leave_balance_repository import LeaveBalanceRepository
from leave_engine.schemas.leave.validation import RuleCode, ValidationIssue, format_days
from leave_engine.schemas.office.office_config import BalanceSnapshot


class BalanceLedger:
    """Atomic pending/used bookkeeping on leave balance rows."""

    def __init__(self, repository: LeaveBalanceRepository, allow_negative: bool = False):
        self.repository = repository
        self.allow_negative = allow_negative
        self._logger = get_logger(self.__class__.__name__)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_balance(
        self,
        user_id: str,
        year: int,
        balance_type: BalanceType,
    ) -> Optional[LeaveBalance]:
        return self.repository.find_balance(user_id, year, balance_type, refresh=True)

    def snapshot(
        self,
        user_id: str,
        year: int,
        balance_type: BalanceType,
    ) -> Optional[BalanceSnapshot]:
        """Point-in-time copy of a row, or None when no row exists."""
        balance = self.get_balance(user_id, year, balance_type)
        if balance is None:
            return None
        return BalanceSnapshot.model_validate(balance)

    def get_balances(self, user_id: str, year: int) -> List[LeaveBalance]:
        return self.repository.find_for_user_year(user_id, year)

    # -------------------------------------------------------------------------
    # Ledger operations
    # -------------------------------------------------------------------------

    def reserve(
        self,
        user_id: str,
        year: int,
        balance_type: BalanceType,
        days: Decimal,
        leave_request_id: Optional[str] = None,
    ) -> LeaveBalance:
        """
        pending += days

        Unless negative balances are allowed, the increment only applies
        while at least ``days`` remain, so a reservation committed by a
        concurrent transaction since validation cannot be overdrawn.

        Raises:
            ValidationError: INSUFFICIENT_BALANCE when fewer days remain
        """
        balance = self._require_balance(user_id, year, balance_type)
        days = self._check_days(days)

        min_remaining = None if self.allow_negative else days
        if not self.repository.increment(balance.id, pending=days, min_remaining=min_remaining):
            current = self.get_balance(user_id, year, balance_type)
            if current is None:
                raise PersistenceError("Balance row disappeared during reservation")
            self._logger.warning(
                f"Reservation of {days} day(s) refused",
                extra={"balance_id": balance.id, "remaining": str(current.remaining)},
            )
            issue = ValidationIssue(
                code=RuleCode.INSUFFICIENT_BALANCE,
                message=(
                    f"Insufficient balance: {format_days(days)} days requested, "
                    f"{format_days(current.remaining)} remaining"
                ),
            )
            raise ValidationError(issues=[issue.to_dict()])

        return self._record(balance, MovementType.RESERVE, days, leave_request_id)

    def consume(
        self,
        user_id: str,
        year: int,
        balance_type: BalanceType,
        days: Decimal,
        leave_request_id: Optional[str] = None,
    ) -> LeaveBalance:
        """pending -= days; used += days"""
        balance = self._require_balance(user_id, year, balance_type)
        days = self._check_days(days)

        if not self.repository.increment(balance.id, pending=-days, used=days, min_pending=days):
            raise StateConflictError(
                "Pending days are lower than the reservation being consumed",
                details={"balance_id": balance.id, "days": str(days)},
            )

        return self._record(balance, MovementType.CONSUME, days, leave_request_id)

    def release(
        self,
        user_id: str,
        year: int,
        balance_type: BalanceType,
        days: Decimal,
        leave_request_id: Optional[str] = None,
    ) -> LeaveBalance:
        """pending -= days"""
        balance = self._require_balance(user_id, year, balance_type)
        days = self._check_days(days)

        if not self.repository.increment(balance.id, pending=-days, min_pending=days):
            raise StateConflictError(
                "Pending days are lower than the reservation being released",
                details={"balance_id": balance.id, "days": str(days)},
            )

        return self._record(balance, MovementType.RELEASE, days, leave_request_id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _require_balance(self, user_id: str, year: int, balance_type: BalanceType) -> LeaveBalance:
        balance = self.repository.find_balance(user_id, year, balance_type)
        if balance is None:
            raise PersistenceError(
                f"No {balance_type.value} balance for {year}",
                details={"user_id": user_id, "year": year, "balance_type": balance_type.value},
            )
        return balance

    @staticmethod
    def _check_days(days) -> Decimal:
        days = Decimal(days)
        if days <= 0:
            raise ValueError(f"Ledger operations need a positive day count, got {days}")
        return days

    def _record(
        self,
        balance: LeaveBalance,
        movement_type: MovementType,
        days: Decimal,
        leave_request_id: Optional[str],
    ) -> LeaveBalance:
        self.repository.add_movement(
            balance.id,
            movement_type,
            days,
            leave_request_id=leave_request_id,
        )
        updated = self.repository.find_balance(
            balance.user_id, balance.year, balance.balance_type, refresh=True
        )
        self._logger.info(
            f"Ledger {movement_type.value} {days} day(s)",
            extra={
                "balance_id": balance.id,
                "leave_request_id": leave_request_id,
                "pending_days": str(updated.pending_days),
                "used_days": str(updated.used_days),
            },
        )
        return updated


__all__ = ["BalanceLedger"]
