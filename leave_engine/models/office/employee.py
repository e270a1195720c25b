"""
Employee and team database models.

Employees belong to one office and optionally one team;
a team's manager is the natural approver of MANAGER steps.
"""

from datetime import date as Date
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Date as SQLDate,
    ForeignKey,
    Index,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leave_engine.models.base import TimestampModel
from leave_engine.models.common.enums import EmployeeRole

if TYPE_CHECKING:
    from leave_engine.models.office.office import Office

__all__ = ["Employee", "Team"]


class Team(TimestampModel):
    """Team of employees sharing a manager."""

    __tablename__ = "teams"
    __table_args__ = (
        Index("ix_team_office_id", "office_id"),
        {"comment": "Teams and their managers"}
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Team name"
    )

    office_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("offices.id", ondelete="CASCADE"),
        nullable=False,
        comment="Office"
    )

    # Plain reference: employees.team_id already points at teams
    manager_id: Mapped[str | None] = mapped_column(
        String(36),
        nullable=True,
        index=True,
        comment="Employee managing the team"
    )

    members: Mapped[list["Employee"]] = relationship(
        "Employee",
        back_populates="team",
        lazy="select"
    )

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, name={self.name}, manager_id={self.manager_id})>"


class Employee(TimestampModel):
    """Employee profile as seen by the leave engine."""

    __tablename__ = "employees"
    __table_args__ = (
        Index("ix_employee_office_id", "office_id"),
        Index("ix_employee_team_id", "team_id"),
        {"comment": "Employees"}
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Login email"
    )

    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="First name"
    )

    last_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Last name"
    )

    office_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("offices.id", ondelete="RESTRICT"),
        nullable=False,
        comment="Office"
    )

    team_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("teams.id", ondelete="SET NULL"),
        nullable=True,
        comment="Team"
    )

    hire_date: Mapped[Date | None] = mapped_column(
        SQLDate,
        nullable=True,
        comment="Hire date"
    )

    roles: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=lambda: [EmployeeRole.EMPLOYEE.value],
        comment="Role codes"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether employee is active"
    )

    office: Mapped["Office"] = relationship(
        "Office",
        back_populates="employees",
        lazy="select"
    )

    team: Mapped["Team | None"] = relationship(
        "Team",
        back_populates="members",
        lazy="select"
    )

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, email={self.email})>"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def has_role(self, role: EmployeeRole) -> bool:
        return role.value in (self.roles or [])
