"""Leave request, balance and validation schemas."""

from leave_engine.schemas.leave.leave_balance import LeaveBalanceResponse
from leave_engine.schemas.leave.leave_request import (
    ApprovalStepResponse,
    DurationPreview,
    LeaveDraft,
    LeaveRequestCreate,
    LeaveRequestResponse,
    LeaveRequestUpdate,
)
from leave_engine.schemas.leave.validation import RuleCode, ValidationIssue, ValidationReport

__all__ = [
    "ApprovalStepResponse",
    "DurationPreview",
    "LeaveBalanceResponse",
    "LeaveDraft",
    "LeaveRequestCreate",
    "LeaveRequestResponse",
    "LeaveRequestUpdate",
    "RuleCode",
    "ValidationIssue",
    "ValidationReport",
]
