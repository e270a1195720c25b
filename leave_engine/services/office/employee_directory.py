"""
Employee directory.

Answers who an employee is, who manages them, and who handles HR
steps for an office.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from sqlalchemy.orm import Session

from leave_engine.models.common.enums import EmployeeRole
from leave_engine.repositories.office.office_repository import EmployeeRepository
from leave_engine.schemas.office.office_config import EmployeeProfile


class EmployeeDirectory(ABC):
    """Read-only employee lookups."""

    @abstractmethod
    def get_employee(self, user_id: str) -> Optional[EmployeeProfile]:
        """Employee profile, or None."""

    @abstractmethod
    def list_hr_users(self, office_id: str) -> List[str]:
        """Active HR employees of the office, in a stable order."""


class SqlAlchemyEmployeeDirectory(EmployeeDirectory):
    """Directory backed by the employees and teams tables."""

    def __init__(self, db: Session):
        self.db = db
        self.employee_repo = EmployeeRepository(db)

    def get_employee(self, user_id: str) -> Optional[EmployeeProfile]:
        employee = self.employee_repo.find_by_id(user_id)
        if employee is None:
            return None

        manager_id = None
        if employee.team_id:
            team = self.employee_repo.find_team(employee.team_id)
            manager_id = team.manager_id if team else None

        return EmployeeProfile(
            id=employee.id,
            office_id=employee.office_id,
            email=employee.email,
            full_name=employee.full_name,
            team_id=employee.team_id,
            manager_id=manager_id,
            hire_date=employee.hire_date,
            roles=list(employee.roles or []),
            is_active=employee.is_active,
        )

    def list_hr_users(self, office_id: str) -> List[str]:
        return [
            e.id for e in self.employee_repo.find_active_with_role(office_id, EmployeeRole.HR)
        ]
