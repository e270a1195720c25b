"""
Leave type configuration database models.

Provides per-office leave type definitions and the exceptional
leave rules bounding exceptional absences.
"""

from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from leave_engine.models.base import TimestampModel
from leave_engine.models.common.enums import BalanceType

__all__ = [
    "LeaveTypeConfig",
    "ExceptionalLeaveRule",
]


class LeaveTypeConfig(TimestampModel):
    """
    Leave type configuration per office.

    A type deducts from one balance (ANNUAL or OFFERED) when
    ``deducts_from_balance`` is set.
    """

    __tablename__ = "leave_type_configs"
    __table_args__ = (
        UniqueConstraint(
            "office_id",
            "code",
            name="uq_leave_type_office_code"
        ),
        CheckConstraint(
            "attachment_from_day IS NULL OR attachment_from_day > 0",
            name="ck_leave_type_attachment_from_day_positive"
        ),
        Index("ix_leave_type_office_id", "office_id"),
        {"comment": "Leave types available per office"}
    )

    office_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("offices.id", ondelete="CASCADE"),
        nullable=False,
        comment="Office"
    )

    code: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        comment="Leave type code (ANNUAL, SICK, EXCEPTIONAL, ...)"
    )

    label: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Display label"
    )

    requires_attachment: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether an attachment is always required"
    )

    attachment_from_day: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Duration from which an attachment is required"
    )

    deducts_from_balance: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether approved days are charged to a balance"
    )

    balance_type: Mapped[BalanceType] = mapped_column(
        Enum(BalanceType, name="balance_type_enum"),
        nullable=False,
        default=BalanceType.ANNUAL,
        comment="Balance charged when deducting"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether leave type can be requested"
    )

    def __repr__(self) -> str:
        return f"<LeaveTypeConfig(id={self.id}, office_id={self.office_id}, code={self.code})>"


class ExceptionalLeaveRule(TimestampModel):
    """Per-office maximum duration for one exceptional leave reason."""

    __tablename__ = "exceptional_leave_rules"
    __table_args__ = (
        UniqueConstraint(
            "office_id",
            "reason_code",
            name="uq_exceptional_rule_office_reason"
        ),
        CheckConstraint(
            "max_days > 0",
            name="ck_exceptional_rule_max_days_positive"
        ),
        {"comment": "Exceptional leave reasons and maximum durations"}
    )

    office_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("offices.id", ondelete="CASCADE"),
        nullable=False,
        comment="Office"
    )

    reason_code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Reason code (WEDDING, BIRTH, ...)"
    )

    label: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
        comment="Display label"
    )

    max_days: Mapped[Decimal] = mapped_column(
        Numeric(5, 1),
        nullable=False,
        comment="Maximum days allowed"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether rule is active"
    )

    def __repr__(self) -> str:
        return (
            f"<ExceptionalLeaveRule(office_id={self.office_id}, "
            f"reason={self.reason_code}, max_days={self.max_days})>"
        )
