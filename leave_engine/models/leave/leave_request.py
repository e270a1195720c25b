"""
Leave request and approval step database models.

A leave request walks through its office's ordered approval steps;
each submission creates a fresh cycle of steps whose decisions are
write-once.
"""

from datetime import date as Date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date as SQLDate,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leave_engine.models.base import TimestampModel
from leave_engine.models.common.enums import (
    ApprovalAction,
    BalanceType,
    HalfDay,
    LeaveStatus,
    WorkflowStepType,
)

if TYPE_CHECKING:
    from leave_engine.models.leave.leave_type import ExceptionalLeaveRule, LeaveTypeConfig

__all__ = [
    "LeaveRequest",
    "ApprovalStep",
]


class LeaveRequest(TimestampModel):
    """
    One employee's request for a contiguous date range.

    ``version`` is the optimistic lock column; reservation bookkeeping
    records whether days are currently held on the balance ledger.
    """

    __tablename__ = "leave_requests"
    __table_args__ = (
        CheckConstraint(
            "end_date >= start_date",
            name="ck_leave_request_date_range"
        ),
        CheckConstraint(
            "total_days >= 0",
            name="ck_leave_request_total_days_non_negative"
        ),
        CheckConstraint(
            "reserved_days >= 0",
            name="ck_leave_request_reserved_days_non_negative"
        ),
        Index("ix_leave_request_user_id", "user_id"),
        Index("ix_leave_request_status", "status"),
        Index("ix_leave_request_user_dates", "user_id", "start_date", "end_date"),
        {"comment": "Leave requests"}
    )

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        comment="Requesting employee"
    )

    office_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("offices.id", ondelete="RESTRICT"),
        nullable=False,
        comment="Office of the employee at creation"
    )

    leave_type_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("leave_type_configs.id", ondelete="RESTRICT"),
        nullable=False,
        comment="Leave type"
    )

    # Period
    start_date: Mapped[Date] = mapped_column(
        SQLDate,
        nullable=False,
        comment="First day of leave"
    )

    end_date: Mapped[Date] = mapped_column(
        SQLDate,
        nullable=False,
        comment="Last day of leave"
    )

    start_half_day: Mapped[HalfDay] = mapped_column(
        Enum(HalfDay, name="half_day_enum"),
        nullable=False,
        default=HalfDay.FULL_DAY,
        comment="Half-day flag on the first day"
    )

    end_half_day: Mapped[HalfDay] = mapped_column(
        Enum(HalfDay, name="half_day_enum"),
        nullable=False,
        default=HalfDay.FULL_DAY,
        comment="Half-day flag on the last day"
    )

    total_days: Mapped[Decimal] = mapped_column(
        Numeric(5, 1),
        nullable=False,
        comment="Chargeable days computed by the engine"
    )

    # Status
    status: Mapped[LeaveStatus] = mapped_column(
        Enum(LeaveStatus, name="leave_status_enum"),
        nullable=False,
        default=LeaveStatus.DRAFT,
        comment="Lifecycle status"
    )

    reason: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Free-text reason"
    )

    exceptional_reason_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("exceptional_leave_rules.id", ondelete="RESTRICT"),
        nullable=True,
        comment="Exceptional leave rule (EXCEPTIONAL type only)"
    )

    attachment_refs: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Opaque attachment handles"
    )

    submission_cycle: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Number of times the request was submitted"
    )

    submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Last submission timestamp"
    )

    # Reservation bookkeeping
    reservation_open: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether days are currently held as pending"
    )

    reserved_days: Mapped[Decimal] = mapped_column(
        Numeric(5, 1),
        nullable=False,
        default=Decimal("0"),
        comment="Days held by the open reservation"
    )

    reservation_year: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Balance year of the reservation"
    )

    reservation_balance_type: Mapped[BalanceType | None] = mapped_column(
        Enum(BalanceType, name="balance_type_enum"),
        nullable=True,
        comment="Balance type of the reservation"
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Optimistic lock version"
    )

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    leave_type: Mapped["LeaveTypeConfig"] = relationship(
        "LeaveTypeConfig",
        lazy="select"
    )

    exceptional_reason: Mapped["ExceptionalLeaveRule | None"] = relationship(
        "ExceptionalLeaveRule",
        lazy="select"
    )

    approval_steps: Mapped[list["ApprovalStep"]] = relationship(
        "ApprovalStep",
        back_populates="leave_request",
        cascade="all, delete-orphan",
        order_by=lambda: [ApprovalStep.cycle, ApprovalStep.step_order],
        lazy="select"
    )

    def __repr__(self) -> str:
        return (
            f"<LeaveRequest(id={self.id}, user_id={self.user_id}, "
            f"status={self.status.value}, days={self.total_days})>"
        )

    @property
    def current_steps(self) -> list["ApprovalStep"]:
        """Steps of the latest submission cycle, in order."""
        return [
            step for step in self.approval_steps
            if step.cycle == self.submission_cycle
        ]

    @property
    def actionable_step(self) -> "ApprovalStep | None":
        """Lowest-order undecided step of the current cycle."""
        for step in self.current_steps:
            if step.action is None:
                return step
        return None

    @property
    def has_attachment(self) -> bool:
        return bool(self.attachment_refs)


class ApprovalStep(TimestampModel):
    """
    One ordered step of a request's approval chain.

    ``action`` is written once through a conditional update.
    """

    __tablename__ = "approval_steps"
    __table_args__ = (
        UniqueConstraint(
            "leave_request_id",
            "cycle",
            "step_order",
            name="uq_approval_step_request_cycle_order"
        ),
        CheckConstraint(
            "step_order >= 1",
            name="ck_approval_step_order_positive"
        ),
        Index("ix_approval_step_approver_id", "approver_id"),
        Index("ix_approval_step_request_id", "leave_request_id"),
        {"comment": "Approval steps per leave request"}
    )

    leave_request_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("leave_requests.id", ondelete="CASCADE"),
        nullable=False,
        comment="Leave request"
    )

    cycle: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Submission cycle the step belongs to"
    )

    step_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="1-based position in the chain"
    )

    step_type: Mapped[WorkflowStepType] = mapped_column(
        Enum(WorkflowStepType, name="workflow_step_type_enum"),
        nullable=False,
        comment="Step type"
    )

    is_required: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether step is required"
    )

    approver_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("employees.id", ondelete="RESTRICT"),
        nullable=False,
        comment="Effective approver (may be a delegate)"
    )

    natural_approver_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("employees.id", ondelete="RESTRICT"),
        nullable=False,
        comment="Approver before delegation"
    )

    action: Mapped[ApprovalAction | None] = mapped_column(
        Enum(ApprovalAction, name="approval_action_enum"),
        nullable=True,
        comment="Decision (write-once)"
    )

    comment: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Decision comment"
    )

    decided_by: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("employees.id", ondelete="RESTRICT"),
        nullable=True,
        comment="Employee who recorded the decision"
    )

    decided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Decision timestamp"
    )

    leave_request: Mapped["LeaveRequest"] = relationship(
        "LeaveRequest",
        back_populates="approval_steps",
        lazy="select"
    )

    def __repr__(self) -> str:
        action = self.action.value if self.action else None
        return (
            f"<ApprovalStep(request={self.leave_request_id}, cycle={self.cycle}, "
            f"order={self.step_order}, type={self.step_type.value}, action={action})>"
        )

    @property
    def is_decided(self) -> bool:
        return self.action is not None
