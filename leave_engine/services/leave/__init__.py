"""Leave validation, balance ledger and lifecycle services."""

from leave_engine.services.leave.balance_ledger import BalanceLedger
from leave_engine.services.leave.balance_service import (
    BalanceService,
    compute_carry_over,
    compute_prorata,
)
from leave_engine.services.leave.lifecycle_orchestrator import (
    CANCELLABLE_STATUSES,
    LeaveLifecycleService,
)
from leave_engine.services.leave.validation_engine import (
    DRAFT_BLOCKING_RULES,
    ValidationEngine,
)

__all__ = [
    "BalanceLedger",
    "BalanceService",
    "CANCELLABLE_STATUSES",
    "DRAFT_BLOCKING_RULES",
    "LeaveLifecycleService",
    "ValidationEngine",
    "compute_carry_over",
    "compute_prorata",
]
