"""
Office models package.

Offices, calendar exclusions, employees and teams.
"""

from leave_engine.models.office.employee import Employee, Team
from leave_engine.models.office.office import (
    DEFAULT_WORKING_DAYS,
    CompanyClosure,
    Office,
    PublicHoliday,
)

__all__ = [
    "DEFAULT_WORKING_DAYS",
    "CompanyClosure",
    "Employee",
    "Office",
    "PublicHoliday",
    "Team",
]
