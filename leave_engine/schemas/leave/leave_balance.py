"""
Leave balance read models.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import computed_field

from leave_engine.models.common.enums import BalanceType
from leave_engine.schemas.common.base import BaseResponseSchema

__all__ = ["LeaveBalanceResponse"]


class LeaveBalanceResponse(BaseResponseSchema):
    """One ledger row with its derived remaining days."""

    user_id: str
    year: int
    balance_type: BalanceType
    total_days: Decimal
    used_days: Decimal
    pending_days: Decimal
    carried_over_days: Decimal

    @computed_field
    @property
    def remaining(self) -> Decimal:
        return self.total_days + self.carried_over_days - self.used_days - self.pending_days
