"""
Database enums for the leave engine.

Provides the enumerations persisted on leave requests,
approval steps, balances and employees.
"""

import enum


class LeaveStatus(str, enum.Enum):
    """Leave request lifecycle status."""
    DRAFT = "DRAFT"
    PENDING_MANAGER = "PENDING_MANAGER"
    PENDING_HR = "PENDING_HR"
    APPROVED = "APPROVED"
    REFUSED = "REFUSED"
    CANCELLED = "CANCELLED"
    RETURNED = "RETURNED"

    @property
    def is_pending(self) -> bool:
        return self in (LeaveStatus.PENDING_MANAGER, LeaveStatus.PENDING_HR)

    @property
    def is_editable(self) -> bool:
        return self in (LeaveStatus.DRAFT, LeaveStatus.RETURNED)


# Statuses that do not block other requests on the same dates
NON_BLOCKING_STATUSES = frozenset({LeaveStatus.CANCELLED, LeaveStatus.REFUSED})


class HalfDay(str, enum.Enum):
    """Half-day flag on the first or last day of a request."""
    FULL_DAY = "FULL_DAY"
    MORNING = "MORNING"
    AFTERNOON = "AFTERNOON"


class WorkflowStepType(str, enum.Enum):
    """Approval step types an office workflow is built from."""
    MANAGER = "MANAGER"
    HR = "HR"

    @property
    def pending_status(self) -> LeaveStatus:
        """Request status while a step of this type is actionable."""
        return LeaveStatus(f"PENDING_{self.value}")


class ApprovalAction(str, enum.Enum):
    """Decision recorded on an approval step."""
    APPROVED = "APPROVED"
    REFUSED = "REFUSED"
    RETURNED = "RETURNED"


class BalanceType(str, enum.Enum):
    """Balance ledger a leave type deducts from."""
    ANNUAL = "ANNUAL"
    OFFERED = "OFFERED"


class MovementType(str, enum.Enum):
    """Ledger movement kinds."""
    RESERVE = "RESERVE"
    CONSUME = "CONSUME"
    RELEASE = "RELEASE"
    SEED = "SEED"
    CARRY_OVER = "CARRY_OVER"


class EmployeeRole(str, enum.Enum):
    """Roles an employee may hold."""
    EMPLOYEE = "EMPLOYEE"
    MANAGER = "MANAGER"
    HR = "HR"
    ADMIN = "ADMIN"


__all__ = [
    "LeaveStatus",
    "NON_BLOCKING_STATUSES",
    "HalfDay",
    "WorkflowStepType",
    "ApprovalAction",
    "BalanceType",
    "MovementType",
    "EmployeeRole",
]
