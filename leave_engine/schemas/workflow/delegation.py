"""
Delegation and workflow schemas.
"""

from __future__ import annotations

from datetime import date as Date
from typing import Optional

from pydantic import Field

from leave_engine.models.common.enums import WorkflowStepType
from leave_engine.schemas.common.base import BaseCreateSchema, BaseResponseSchema, BaseSchema

__all__ = [
    "DelegationCreate",
    "DelegationResponse",
    "ResolvedStep",
]


class DelegationCreate(BaseCreateSchema):
    """Request to delegate approval authority for a date window."""

    from_user_id: str = Field(..., description="Delegating approver")
    to_user_id: str = Field(..., description="Delegate")
    start_date: Date = Field(..., description="First day")
    end_date: Date = Field(..., description="Last day")
    reason: Optional[str] = Field(None, max_length=500)


class DelegationResponse(BaseResponseSchema):
    """Delegation read model."""

    from_user_id: str
    to_user_id: str
    start_date: Date
    end_date: Date
    is_active: bool
    reason: Optional[str] = None


class ResolvedStep(BaseSchema):
    """One step of an office workflow after resolution."""

    step_order: int = Field(..., ge=1)
    step_type: WorkflowStepType
    is_required: bool = True
