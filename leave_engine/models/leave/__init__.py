"""
Leave models package.

Leave types, requests with their approval steps, and the balance ledger.
"""

from leave_engine.models.leave.leave_balance import LeaveBalance, LeaveBalanceMovement
from leave_engine.models.leave.leave_request import ApprovalStep, LeaveRequest
from leave_engine.models.leave.leave_type import ExceptionalLeaveRule, LeaveTypeConfig

__all__ = [
    "ApprovalStep",
    "ExceptionalLeaveRule",
    "LeaveBalance",
    "LeaveBalanceMovement",
    "LeaveRequest",
    "LeaveTypeConfig",
]
