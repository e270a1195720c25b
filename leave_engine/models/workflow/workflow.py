"""
Approval workflow configuration database models.

Each office owns one workflow: an ordered list of step types
that every submitted request passes through.
"""

from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leave_engine.models.base import TimestampModel
from leave_engine.models.common.enums import WorkflowStepType

if TYPE_CHECKING:
    from leave_engine.models.office.office import Office

__all__ = ["WorkflowConfig", "WorkflowStep"]


class WorkflowConfig(TimestampModel):
    """Office approval workflow."""

    __tablename__ = "workflow_configs"
    __table_args__ = (
        {"comment": "Approval workflow per office"},
    )

    office_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("offices.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        comment="Office"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether workflow is active"
    )

    office: Mapped["Office"] = relationship("Office", lazy="select")

    steps: Mapped[list["WorkflowStep"]] = relationship(
        "WorkflowStep",
        back_populates="workflow",
        cascade="all, delete-orphan",
        order_by="WorkflowStep.step_order",
        lazy="select"
    )

    def __repr__(self) -> str:
        return f"<WorkflowConfig(id={self.id}, office_id={self.office_id})>"


class WorkflowStep(TimestampModel):
    """One configured step of an office workflow."""

    __tablename__ = "workflow_steps"
    __table_args__ = (
        UniqueConstraint(
            "workflow_config_id",
            "step_order",
            name="uq_workflow_step_order"
        ),
        CheckConstraint(
            "step_order >= 1",
            name="ck_workflow_step_order_positive"
        ),
        {"comment": "Ordered workflow steps"}
    )

    workflow_config_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("workflow_configs.id", ondelete="CASCADE"),
        nullable=False,
        comment="Workflow"
    )

    step_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="1-based position"
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

    workflow: Mapped["WorkflowConfig"] = relationship(
        "WorkflowConfig",
        back_populates="steps",
        lazy="select"
    )

    def __repr__(self) -> str:
        return f"<WorkflowStep(order={self.step_order}, type={self.step_type.value})>"
