"""
Leave balance ledger repository.

Balance columns are only ever changed with single UPDATE statements
that add to the stored value.
"""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from leave_engine.core.exceptions import RepositoryError
from leave_engine.models.base import utcnow
from leave_engine.models.common.enums import BalanceType, MovementType
from leave_engine.models.leave import LeaveBalance, LeaveBalanceMovement
from leave_engine.repositories.base.base_repository import BaseRepository

ZERO = Decimal("0")


class LeaveBalanceRepository(BaseRepository[LeaveBalance]):
    """Balance rows and their movements."""

    def __init__(self, db: Session):
        super().__init__(LeaveBalance, db)

    def find_balance(
        self,
        user_id: str,
        year: int,
        balance_type: BalanceType,
        refresh: bool = False,
    ) -> Optional[LeaveBalance]:
        """Balance row for (user, year, type), optionally reloaded from the database."""
        try:
            stmt = select(LeaveBalance).where(
                LeaveBalance.user_id == user_id,
                LeaveBalance.year == year,
                LeaveBalance.balance_type == balance_type,
            )
            if refresh:
                stmt = stmt.execution_options(populate_existing=True)
            return self.db.scalars(stmt).first()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Balance lookup failed: {str(e)}") from e

    def find_for_user_year(self, user_id: str, year: int) -> List[LeaveBalance]:
        return self.find_by_criteria(
            {"user_id": user_id, "year": year},
            order_by=["balance_type"],
        )

    def increment(
        self,
        balance_id: str,
        pending: Decimal = ZERO,
        used: Decimal = ZERO,
        total: Decimal = ZERO,
        carried_over: Decimal = ZERO,
        min_pending: Optional[Decimal] = None,
        min_remaining: Optional[Decimal] = None,
    ) -> bool:
        """
        Atomically add the given deltas to one balance row.

        Args:
            balance_id: Balance row id
            pending, used, total, carried_over: Signed deltas
            min_pending: Only apply when pending_days is at least this value
            min_remaining: Only apply when the remaining days, read in the same
                statement, are at least this value

        Returns:
            True when the row was updated
        """
        values = {"updated_at": utcnow()}
        if pending:
            values["pending_days"] = LeaveBalance.pending_days + pending
        if used:
            values["used_days"] = LeaveBalance.used_days + used
        if total:
            values["total_days"] = LeaveBalance.total_days + total
        if carried_over:
            values["carried_over_days"] = LeaveBalance.carried_over_days + carried_over

        try:
            stmt = update(LeaveBalance).where(LeaveBalance.id == balance_id)
            if min_pending is not None:
                stmt = stmt.where(LeaveBalance.pending_days >= min_pending)
            if min_remaining is not None:
                stmt = stmt.where(
                    LeaveBalance.total_days
                    + LeaveBalance.carried_over_days
                    - LeaveBalance.used_days
                    - LeaveBalance.pending_days
                    >= min_remaining
                )
            result = self.db.execute(
                stmt.values(**values).execution_options(synchronize_session="fetch")
            )
            return result.rowcount == 1
        except SQLAlchemyError as e:
            raise RepositoryError(f"Balance update failed: {str(e)}") from e

    def add_movement(
        self,
        balance_id: str,
        movement_type: MovementType,
        days: Decimal,
        leave_request_id: Optional[str] = None,
        note: Optional[str] = None,
    ) -> LeaveBalanceMovement:
        movement = LeaveBalanceMovement(
            balance_id=balance_id,
            movement_type=movement_type,
            days=days,
            leave_request_id=leave_request_id,
            note=note,
        )
        self.db.add(movement)
        self.db.flush()
        return movement

    def find_movements_for_request(self, leave_request_id: str) -> List[LeaveBalanceMovement]:
        try:
            stmt = (
                select(LeaveBalanceMovement)
                .where(LeaveBalanceMovement.leave_request_id == leave_request_id)
                .order_by(LeaveBalanceMovement.created_at, LeaveBalanceMovement.id)
            )
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            raise RepositoryError(f"Movement lookup failed: {str(e)}") from e

    def find_movements_for_balance(self, balance_id: str) -> List[LeaveBalanceMovement]:
        try:
            stmt = (
                select(LeaveBalanceMovement)
                .where(LeaveBalanceMovement.balance_id == balance_id)
                .order_by(LeaveBalanceMovement.created_at, LeaveBalanceMovement.id)
            )
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            raise RepositoryError(f"Movement lookup failed: {str(e)}") from e
