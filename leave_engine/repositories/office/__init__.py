"""Office and employee repositories."""

from leave_engine.repositories.office.office_repository import (
    EmployeeRepository,
    OfficeRepository,
)

__all__ = ["EmployeeRepository", "OfficeRepository"]
