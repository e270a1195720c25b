"""
Read-only office configuration snapshots.

These schemas are what the configuration provider hands to the
calculators and the validation engine, so both can be driven from
fixtures without a database.
"""

from __future__ import annotations

from datetime import date as Date
from decimal import Decimal
from typing import FrozenSet, List, Optional

from pydantic import Field, field_validator

from leave_engine.models.common.enums import BalanceType, EmployeeRole
from leave_engine.schemas.common.base import BaseSchema

__all__ = [
    "WEEKDAY_CODES",
    "OfficeRules",
    "OfficeCalendar",
    "LeaveTypeInfo",
    "ExceptionalRuleInfo",
    "OfficeConfig",
    "EmployeeProfile",
    "BalanceSnapshot",
    "EmployeeContext",
]

# Weekday codes in date.weekday() order
WEEKDAY_CODES = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")


def _normalize_days(v):
    if isinstance(v, str):
        v = v.split(",")
    return [str(day).strip().upper() for day in v if str(day).strip()]


class OfficeRules(BaseSchema):
    """Labor-rule scalars of one office."""

    office_id: str = Field(..., description="Office identifier")
    name: str = Field("", description="Office name")
    probation_months: int = Field(3, ge=0)
    min_notice_days: int = Field(2, ge=0)
    sick_leave_justif_from_day: int = Field(2, ge=1)
    max_carry_over_days: Decimal = Field(Decimal("10"), ge=0)
    carry_over_deadline: str = Field("03-31", pattern=r"^\d{2}-\d{2}$")
    default_annual_leave: Decimal = Field(Decimal("25"), ge=0)
    default_offered_days: Decimal = Field(Decimal("0"), ge=0)
    working_days: List[str] = Field(default_factory=lambda: list(WEEKDAY_CODES[:5]))

    @field_validator("working_days", mode="before")
    @classmethod
    def normalize_working_days(cls, v):
        return _normalize_days(v)


class OfficeCalendar(BaseSchema):
    """
    Working-day pattern and excluded dates of an office over a range.

    ``holidays`` already contains company closure dates.
    """

    office_id: str
    working_days: List[str] = Field(default_factory=lambda: list(WEEKDAY_CODES[:5]))
    holidays: FrozenSet[Date] = Field(default_factory=frozenset)

    @field_validator("working_days", mode="before")
    @classmethod
    def normalize_working_days(cls, v):
        return _normalize_days(v)


class LeaveTypeInfo(BaseSchema):
    """Leave type configuration as seen by the engine."""

    id: str
    office_id: str
    code: str
    label: str = ""
    requires_attachment: bool = False
    attachment_from_day: Optional[int] = None
    deducts_from_balance: bool = True
    balance_type: BalanceType = BalanceType.ANNUAL
    is_active: bool = True


class ExceptionalRuleInfo(BaseSchema):
    """Exceptional leave reason with its maximum duration."""

    id: str
    office_id: str
    reason_code: str
    label: str = ""
    max_days: Decimal
    is_active: bool = True


class OfficeConfig(BaseSchema):
    """Everything the validation engine needs to know about the office."""

    rules: OfficeRules
    leave_type: Optional[LeaveTypeInfo] = None
    exceptional_rules: List[ExceptionalRuleInfo] = Field(default_factory=list)

    def find_exceptional_rule(self, rule_id: Optional[str]) -> Optional[ExceptionalRuleInfo]:
        if not rule_id:
            return None
        for rule in self.exceptional_rules:
            if rule.id == rule_id:
                return rule
        return None


class EmployeeProfile(BaseSchema):
    """Employee as seen by the engine."""

    id: str
    office_id: str
    email: str = ""
    full_name: str = ""
    team_id: Optional[str] = None
    manager_id: Optional[str] = None
    hire_date: Optional[Date] = None
    roles: List[str] = Field(default_factory=list)
    is_active: bool = True

    def has_role(self, role: EmployeeRole) -> bool:
        return role.value in self.roles


class BalanceSnapshot(BaseSchema):
    """Point-in-time copy of one ledger row."""

    user_id: str
    year: int
    balance_type: BalanceType
    total_days: Decimal = Decimal("0")
    used_days: Decimal = Decimal("0")
    pending_days: Decimal = Decimal("0")
    carried_over_days: Decimal = Decimal("0")

    @property
    def remaining(self) -> Decimal:
        return self.total_days + self.carried_over_days - self.used_days - self.pending_days


class EmployeeContext(BaseSchema):
    """Employee facts the validation engine checks a draft against."""

    user_id: str
    hire_date: Optional[Date] = None
    balance: Optional[BalanceSnapshot] = None
    overlapping_request_ids: List[str] = Field(default_factory=list)
