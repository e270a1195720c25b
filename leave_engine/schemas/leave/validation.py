"""
Validation outcome schemas.

Every issue names the rule it comes from so callers can show
rule-specific guidance.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from leave_engine.schemas.common.base import BaseSchema

__all__ = [
    "RuleCode",
    "ValidationIssue",
    "ValidationReport",
    "format_days",
]


def format_days(days) -> str:
    """Day count without trailing zeros, e.g. 2 or 1.5"""
    days = Decimal(days)
    return str(days.quantize(Decimal("1"))) if days == days.to_integral() else str(days.normalize())


class RuleCode(str, Enum):
    """Leave rules checked before create, update and submit."""

    # Blocking, checked on drafts too
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    INVALID_HALF_DAY = "INVALID_HALF_DAY"
    NO_WORKING_DAYS = "NO_WORKING_DAYS"
    INVALID_LEAVE_TYPE = "INVALID_LEAVE_TYPE"
    OVERLAPPING_REQUEST = "OVERLAPPING_REQUEST"
    EXCEPTIONAL_REASON_NOT_ALLOWED = "EXCEPTIONAL_REASON_NOT_ALLOWED"

    # Blocking at submission
    ON_PROBATION = "ON_PROBATION"
    ATTACHMENT_REQUIRED = "ATTACHMENT_REQUIRED"
    EXCEPTIONAL_REASON_REQUIRED = "EXCEPTIONAL_REASON_REQUIRED"
    EXCEPTIONAL_MAX_EXCEEDED = "EXCEPTIONAL_MAX_EXCEEDED"
    NO_BALANCE_CONFIGURED = "NO_BALANCE_CONFIGURED"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"

    # Decisions
    COMMENT_REQUIRED = "COMMENT_REQUIRED"

    # Delegations
    SELF_DELEGATION = "SELF_DELEGATION"
    DELEGATION_OVERLAP = "DELEGATION_OVERLAP"

    # Warnings
    SHORT_NOTICE = "SHORT_NOTICE"
    SICK_JUSTIFICATION_EXPECTED = "SICK_JUSTIFICATION_EXPECTED"
    NEGATIVE_BALANCE = "NEGATIVE_BALANCE"


class ValidationIssue(BaseSchema):
    """One violated or flagged rule."""

    code: RuleCode
    message: str
    field: Optional[str] = None
    blocking: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code.value, "message": self.message, "field": self.field}


class ValidationReport(BaseSchema):
    """Blocking errors and non-blocking warnings for one draft."""

    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def error_codes(self) -> List[RuleCode]:
        return [issue.code for issue in self.errors]

    @property
    def warning_codes(self) -> List[RuleCode]:
        return [issue.code for issue in self.warnings]

    def has_error(self, code: RuleCode) -> bool:
        return code in self.error_codes

    def errors_for(self, codes) -> List[ValidationIssue]:
        """Errors whose code is in ``codes``."""
        wanted = set(codes)
        return [issue for issue in self.errors if issue.code in wanted]
