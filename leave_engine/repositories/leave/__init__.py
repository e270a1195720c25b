"""Leave repositories."""

from leave_engine.repositories.leave.leave_balance_repository import LeaveBalanceRepository
from leave_engine.repositories.leave.leave_request_repository import (
    ApprovalStepRepository,
    LeaveRequestRepository,
)
from leave_engine.repositories.leave.leave_type_repository import (
    ExceptionalLeaveRuleRepository,
    LeaveTypeRepository,
)

__all__ = [
    "ApprovalStepRepository",
    "ExceptionalLeaveRuleRepository",
    "LeaveBalanceRepository",
    "LeaveRequestRepository",
    "LeaveTypeRepository",
]
