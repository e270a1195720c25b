"""
Leave type and exceptional rule repositories.
"""

from typing import List

from sqlalchemy.orm import Session

from leave_engine.models.leave import ExceptionalLeaveRule, LeaveTypeConfig
from leave_engine.repositories.base.base_repository import BaseRepository


class LeaveTypeRepository(BaseRepository[LeaveTypeConfig]):
    """Per-office leave types."""

    def __init__(self, db: Session):
        super().__init__(LeaveTypeConfig, db)

    def find_active_for_office(self, office_id: str) -> List[LeaveTypeConfig]:
        return self.find_by_criteria(
            {"office_id": office_id, "is_active": True},
            order_by=["code"],
        )


class ExceptionalLeaveRuleRepository(BaseRepository[ExceptionalLeaveRule]):
    """Exceptional leave reasons per office."""

    def __init__(self, db: Session):
        super().__init__(ExceptionalLeaveRule, db)

    def find_active_for_office(self, office_id: str) -> List[ExceptionalLeaveRule]:
        return self.find_by_criteria(
            {"office_id": office_id, "is_active": True},
            order_by=["reason_code"],
        )
