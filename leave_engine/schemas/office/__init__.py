"""Office configuration schemas."""

from leave_engine.schemas.office.office_config import (
    WEEKDAY_CODES,
    BalanceSnapshot,
    EmployeeContext,
    EmployeeProfile,
    ExceptionalRuleInfo,
    LeaveTypeInfo,
    OfficeCalendar,
    OfficeConfig,
    OfficeRules,
)

__all__ = [
    "WEEKDAY_CODES",
    "BalanceSnapshot",
    "EmployeeContext",
    "EmployeeProfile",
    "ExceptionalRuleInfo",
    "LeaveTypeInfo",
    "OfficeCalendar",
    "OfficeConfig",
    "OfficeRules",
]
