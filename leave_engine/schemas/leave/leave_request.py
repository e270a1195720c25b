"""
Leave request schemas.

Create/update payloads come from callers; ``total_days`` is never
accepted from them and is always computed by the engine.
"""

from __future__ import annotations

from datetime import date as Date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from leave_engine.models.common.enums import (
    ApprovalAction,
    HalfDay,
    LeaveStatus,
    WorkflowStepType,
)
from leave_engine.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
)
from leave_engine.schemas.leave.validation import ValidationIssue

__all__ = [
    "LeaveRequestCreate",
    "LeaveRequestUpdate",
    "LeaveDraft",
    "ApprovalStepResponse",
    "LeaveRequestResponse",
    "DurationPreview",
]


class LeaveRequestCreate(BaseCreateSchema):
    """Employee-initiated leave request."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "user_id": "3f1c2b9e-7d41-4f1e-9a0b-2f4e5d6c7b8a",
                "leave_type_id": "9b8a7c6d-5e4f-4a3b-8c2d-1e0f9a8b7c6d",
                "start_date": "2026-03-02",
                "end_date": "2026-03-06",
                "start_half_day": "FULL_DAY",
                "end_half_day": "MORNING",
                "reason": "Family holiday",
            }
        }
    )

    user_id: str = Field(..., description="Requesting employee")
    leave_type_id: str = Field(..., description="Leave type")
    start_date: Date = Field(..., description="First day of leave")
    end_date: Date = Field(..., description="Last day of leave")
    start_half_day: HalfDay = Field(HalfDay.FULL_DAY, description="Half-day flag on the first day")
    end_half_day: HalfDay = Field(HalfDay.FULL_DAY, description="Half-day flag on the last day")
    reason: Optional[str] = Field(None, max_length=2000, description="Free-text reason")
    exceptional_reason_id: Optional[str] = Field(None, description="Exceptional leave rule")
    attachment_refs: List[str] = Field(default_factory=list, description="Attachment handles")

    @field_validator("attachment_refs")
    @classmethod
    def drop_blank_refs(cls, v: List[str]) -> List[str]:
        return [ref.strip() for ref in v if ref and ref.strip()]


class LeaveRequestUpdate(BaseUpdateSchema):
    """Partial update of a DRAFT or RETURNED request."""

    leave_type_id: Optional[str] = None
    start_date: Optional[Date] = None
    end_date: Optional[Date] = None
    start_half_day: Optional[HalfDay] = None
    end_half_day: Optional[HalfDay] = None
    reason: Optional[str] = Field(None, max_length=2000)
    exceptional_reason_id: Optional[str] = None
    attachment_refs: Optional[List[str]] = None

    @field_validator("attachment_refs")
    @classmethod
    def drop_blank_refs(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        return [ref.strip() for ref in v if ref and ref.strip()]


class LeaveDraft(BaseSchema):
    """A candidate request as the validation engine sees it."""

    user_id: str
    leave_type_id: str
    start_date: Date
    end_date: Date
    start_half_day: HalfDay = HalfDay.FULL_DAY
    end_half_day: HalfDay = HalfDay.FULL_DAY
    total_days: Decimal = Decimal("0")
    exceptional_reason_id: Optional[str] = None
    attachment_refs: List[str] = Field(default_factory=list)
    request_id: Optional[str] = None

    @property
    def has_attachment(self) -> bool:
        return bool(self.attachment_refs)


class ApprovalStepResponse(BaseResponseSchema):
    """Approval step read model."""

    leave_request_id: str
    cycle: int
    step_order: int
    step_type: WorkflowStepType
    is_required: bool
    approver_id: str
    natural_approver_id: str
    action: Optional[ApprovalAction] = None
    comment: Optional[str] = None
    decided_by: Optional[str] = None
    decided_at: Optional[datetime] = None


class LeaveRequestResponse(BaseResponseSchema):
    """Leave request read model with its current approval steps."""

    user_id: str
    office_id: str
    leave_type_id: str
    start_date: Date
    end_date: Date
    start_half_day: HalfDay
    end_half_day: HalfDay
    total_days: Decimal
    status: LeaveStatus
    reason: Optional[str] = None
    exceptional_reason_id: Optional[str] = None
    attachment_refs: List[str] = Field(default_factory=list)
    submission_cycle: int
    reservation_open: bool
    reserved_days: Decimal
    reservation_year: Optional[int] = None
    version: int
    current_steps: List[ApprovalStepResponse] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)


class DurationPreview(BaseSchema):
    """Interactive duration preview computed with the authoritative calculator."""

    start_date: Date
    end_date: Date
    start_half_day: HalfDay
    end_half_day: HalfDay
    total_days: Decimal
    excluded_dates: List[Date] = Field(default_factory=list)
