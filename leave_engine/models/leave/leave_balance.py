"""
Leave balance ledger database models.

Provides the per (user, year, balance type) running totals and the
append-only movement history written by every ledger operation.
"""

from decimal import Decimal

from sqlalchemy import (
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from leave_engine.models.base import TimestampModel
from leave_engine.models.common.enums import BalanceType, MovementType

__all__ = [
    "LeaveBalance",
    "LeaveBalanceMovement",
]


class LeaveBalance(TimestampModel):
    """
    Ledger row for one employee, year and balance type.

    remaining = total + carried over - used - pending
    """

    __tablename__ = "leave_balances"
    __table_args__ = (
        # Ensure unique balance record per user, year and type
        UniqueConstraint(
            "user_id",
            "year",
            "balance_type",
            name="uq_leave_balance_user_year_type"
        ),
        Index("ix_leave_balance_user_year", "user_id", "year"),
        {"comment": "Leave balance ledger"}
    )

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        comment="Employee"
    )

    year: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Balance year"
    )

    balance_type: Mapped[BalanceType] = mapped_column(
        Enum(BalanceType, name="balance_type_enum"),
        nullable=False,
        comment="Balance type"
    )

    # Balance details
    total_days: Mapped[Decimal] = mapped_column(
        Numeric(6, 1),
        nullable=False,
        default=Decimal("0"),
        comment="Days allocated for the year"
    )

    used_days: Mapped[Decimal] = mapped_column(
        Numeric(6, 1),
        nullable=False,
        default=Decimal("0"),
        comment="Days consumed by approved requests"
    )

    pending_days: Mapped[Decimal] = mapped_column(
        Numeric(6, 1),
        nullable=False,
        default=Decimal("0"),
        comment="Days reserved by pending requests"
    )

    carried_over_days: Mapped[Decimal] = mapped_column(
        Numeric(6, 1),
        nullable=False,
        default=Decimal("0"),
        comment="Days carried over from the previous year"
    )

    def __repr__(self) -> str:
        return (
            f"<LeaveBalance(user_id={self.user_id}, year={self.year}, "
            f"type={self.balance_type.value}, remaining={self.remaining})>"
        )

    @property
    def remaining(self) -> Decimal:
        """Days still available."""
        return (
            Decimal(self.total_days)
            + Decimal(self.carried_over_days)
            - Decimal(self.used_days)
            - Decimal(self.pending_days)
        )


class LeaveBalanceMovement(TimestampModel):
    """Append-only record of one ledger operation."""

    __tablename__ = "leave_balance_movements"
    __table_args__ = (
        Index("ix_balance_movement_balance_id", "balance_id"),
        Index("ix_balance_movement_request_id", "leave_request_id"),
        {"comment": "Ledger movements"}
    )

    balance_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("leave_balances.id", ondelete="CASCADE"),
        nullable=False,
        comment="Balance row"
    )

    leave_request_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("leave_requests.id", ondelete="SET NULL"),
        nullable=True,
        comment="Request that caused the movement"
    )

    movement_type: Mapped[MovementType] = mapped_column(
        Enum(MovementType, name="movement_type_enum"),
        nullable=False,
        comment="Movement kind"
    )

    days: Mapped[Decimal] = mapped_column(
        Numeric(6, 1),
        nullable=False,
        comment="Days moved"
    )

    note: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Free-text note"
    )

    def __repr__(self) -> str:
        return (
            f"<LeaveBalanceMovement(balance_id={self.balance_id}, "
            f"type={self.movement_type.value}, days={self.days})>"
        )
