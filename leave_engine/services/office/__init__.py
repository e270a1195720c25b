"""Office configuration and employee directory collaborators."""

from leave_engine.services.office.config_provider import (
    OfficeConfigProvider,
    SqlAlchemyOfficeConfigProvider,
)
from leave_engine.services.office.employee_directory import (
    EmployeeDirectory,
    SqlAlchemyEmployeeDirectory,
)

__all__ = [
    "EmployeeDirectory",
    "OfficeConfigProvider",
    "SqlAlchemyEmployeeDirectory",
    "SqlAlchemyOfficeConfigProvider",
]
