"""
Database models for the leave engine.

Importing this package registers every table on ``Base.metadata``.
"""

from leave_engine.models.base import Base, BaseModel, TimestampModel
from leave_engine.models.common import (
    ApprovalAction,
    BalanceType,
    EmployeeRole,
    HalfDay,
    LeaveStatus,
    MovementType,
    WorkflowStepType,
)
from leave_engine.models.leave import (
    ApprovalStep,
    ExceptionalLeaveRule,
    LeaveBalance,
    LeaveBalanceMovement,
    LeaveRequest,
    LeaveTypeConfig,
)
from leave_engine.models.office import (
    CompanyClosure,
    Employee,
    Office,
    PublicHoliday,
    Team,
)
from leave_engine.models.workflow import Delegation, WorkflowConfig, WorkflowStep

__all__ = [
    # Base
    "Base",
    "BaseModel",
    "TimestampModel",
    # Enums
    "ApprovalAction",
    "BalanceType",
    "EmployeeRole",
    "HalfDay",
    "LeaveStatus",
    "MovementType",
    "WorkflowStepType",
    # Office
    "CompanyClosure",
    "Employee",
    "Office",
    "PublicHoliday",
    "Team",
    # Leave
    "ApprovalStep",
    "ExceptionalLeaveRule",
    "LeaveBalance",
    "LeaveBalanceMovement",
    "LeaveRequest",
    "LeaveTypeConfig",
    # Workflow
    "Delegation",
    "WorkflowConfig",
    "WorkflowStep",
]
