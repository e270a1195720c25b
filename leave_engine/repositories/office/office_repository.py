"""
Office, calendar and employee repositories.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from leave_engine.core.exceptions import RepositoryError
from leave_engine.models.common.enums import EmployeeRole
from leave_engine.models.office import CompanyClosure, Employee, Office, PublicHoliday, Team
from leave_engine.repositories.base.base_repository import BaseRepository


class OfficeRepository(BaseRepository[Office]):
    """Office rules and calendar exclusions."""

    def __init__(self, db: Session):
        super().__init__(Office, db)

    def find_holidays_between(self, office_id: str, start: date, end: date) -> List[PublicHoliday]:
        """Public holidays of the office within [start, end]."""
        try:
            stmt = (
                select(PublicHoliday)
                .where(
                    PublicHoliday.office_id == office_id,
                    PublicHoliday.date >= start,
                    PublicHoliday.date <= end,
                )
                .order_by(PublicHoliday.date)
            )
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            raise RepositoryError(f"Holiday lookup failed: {str(e)}") from e

    def find_closures_overlapping(self, office_id: str, start: date, end: date) -> List[CompanyClosure]:
        """Company closures of the office intersecting [start, end]."""
        try:
            stmt = (
                select(CompanyClosure)
                .where(
                    CompanyClosure.office_id == office_id,
                    CompanyClosure.start_date <= end,
                    CompanyClosure.end_date >= start,
                )
                .order_by(CompanyClosure.start_date)
            )
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            raise RepositoryError(f"Closure lookup failed: {str(e)}") from e


class EmployeeRepository(BaseRepository[Employee]):
    """Employee profiles."""

    def __init__(self, db: Session):
        super().__init__(Employee, db)

    def find_active_with_role(self, office_id: str, role: EmployeeRole) -> List[Employee]:
        """
        Active employees of an office holding ``role``.

        Ordered by creation so the first entry is stable.
        """
        employees = self.find_by_criteria(
            {"office_id": office_id, "is_active": True},
            order_by=["created_at", "id"],
        )
        # roles is a JSON list; filtered here to stay portable across dialects
        return [e for e in employees if e.has_role(role)]

    def find_team(self, team_id: str) -> Optional[Team]:
        try:
            return self.db.get(Team, team_id)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Team lookup failed: {str(e)}") from e
