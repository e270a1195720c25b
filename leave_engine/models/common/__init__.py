"""Shared model enums."""

from leave_engine.models.common.enums import (
    NON_BLOCKING_STATUSES,
    ApprovalAction,
    BalanceType,
    EmployeeRole,
    HalfDay,
    LeaveStatus,
    MovementType,
    WorkflowStepType,
)

__all__ = [
    "NON_BLOCKING_STATUSES",
    "ApprovalAction",
    "BalanceType",
    "EmployeeRole",
    "HalfDay",
    "LeaveStatus",
    "MovementType",
    "WorkflowStepType",
]
