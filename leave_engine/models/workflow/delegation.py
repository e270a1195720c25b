"""
Approval delegation database model.

A delegation transfers one approver's authority to a colleague
for an inclusive date window.
"""

from datetime import date as Date

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date as SQLDate,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from leave_engine.models.base import TimestampModel

__all__ = ["Delegation"]


class Delegation(TimestampModel):
    """Time-boxed transfer of approval authority."""

    __tablename__ = "delegations"
    __table_args__ = (
        CheckConstraint(
            "end_date >= start_date",
            name="ck_delegation_date_range"
        ),
        CheckConstraint(
            "from_user_id <> to_user_id",
            name="ck_delegation_not_self"
        ),
        Index("ix_delegation_from_user_window", "from_user_id", "start_date", "end_date"),
        Index("ix_delegation_to_user", "to_user_id"),
        {"comment": "Approval delegations"}
    )

    from_user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        comment="Delegating approver"
    )

    to_user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        comment="Delegate"
    )

    start_date: Mapped[Date] = mapped_column(
        SQLDate,
        nullable=False,
        comment="First day of delegation"
    )

    end_date: Mapped[Date] = mapped_column(
        SQLDate,
        nullable=False,
        comment="Last day of delegation"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether delegation is in force"
    )

    reason: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Reason"
    )

    def __repr__(self) -> str:
        return (
            f"<Delegation(from={self.from_user_id}, to={self.to_user_id}, "
            f"{self.start_date}..{self.end_date}, active={self.is_active})>"
        )
