"""
Office configuration database models.

An office carries the labor-rule scalars of one site (probation,
notice, carry-over, default allocations, working days) together with
the calendar exclusions used when counting leave days.
"""

from datetime import date as Date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date as SQLDate,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leave_engine.models.base import TimestampModel

if TYPE_CHECKING:
    from leave_engine.models.office.employee import Employee

__all__ = [
    "Office",
    "PublicHoliday",
    "CompanyClosure",
    "DEFAULT_WORKING_DAYS",
]

DEFAULT_WORKING_DAYS = ["MON", "TUE", "WED", "THU", "FRI"]


class Office(TimestampModel):
    """
    Office with its labor rules.

    Read-only from the lifecycle engine's perspective.
    """

    __tablename__ = "offices"
    __table_args__ = (
        CheckConstraint(
            "probation_months >= 0",
            name="ck_office_probation_non_negative"
        ),
        CheckConstraint(
            "min_notice_days >= 0",
            name="ck_office_notice_non_negative"
        ),
        CheckConstraint(
            "max_carry_over_days >= 0",
            name="ck_office_carry_over_non_negative"
        ),
        {"comment": "Offices and their leave rules"}
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
        comment="Office name"
    )

    country: Mapped[str] = mapped_column(
        String(2),
        nullable=False,
        comment="ISO country code"
    )

    city: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        comment="City"
    )

    # Leave rules
    default_annual_leave: Mapped[Decimal] = mapped_column(
        Numeric(5, 1),
        nullable=False,
        default=Decimal("25"),
        comment="Annual days allocated per year"
    )

    default_offered_days: Mapped[Decimal] = mapped_column(
        Numeric(5, 1),
        nullable=False,
        default=Decimal("0"),
        comment="Offered days allocated per year"
    )

    min_notice_days: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=2,
        comment="Minimum notice period (days)"
    )

    max_carry_over_days: Mapped[Decimal] = mapped_column(
        Numeric(5, 1),
        nullable=False,
        default=Decimal("10"),
        comment="Maximum annual days carried into next year"
    )

    carry_over_deadline: Mapped[str] = mapped_column(
        String(5),
        nullable=False,
        default="03-31",
        comment="MM-DD deadline to use carried-over days"
    )

    probation_months: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=3,
        comment="Probation period after hire (months)"
    )

    sick_leave_justif_from_day: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=2,
        comment="Sick leave duration from which a certificate is expected"
    )

    working_days: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=lambda: list(DEFAULT_WORKING_DAYS),
        comment="Working weekday codes (MON..SUN)"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether office is active"
    )

    # Relationships
    holidays: Mapped[list["PublicHoliday"]] = relationship(
        "PublicHoliday",
        back_populates="office",
        cascade="all, delete-orphan",
        lazy="select"
    )

    closures: Mapped[list["CompanyClosure"]] = relationship(
        "CompanyClosure",
        back_populates="office",
        cascade="all, delete-orphan",
        lazy="select"
    )

    employees: Mapped[list["Employee"]] = relationship(
        "Employee",
        back_populates="office",
        lazy="select"
    )

    def __repr__(self) -> str:
        return f"<Office(id={self.id}, name={self.name}, country={self.country})>"


class PublicHoliday(TimestampModel):
    """Public holiday excluded from leave counting."""

    __tablename__ = "public_holidays"
    __table_args__ = (
        UniqueConstraint(
            "office_id",
            "date",
            name="uq_public_holiday_office_date"
        ),
        Index("ix_public_holiday_office_date", "office_id", "date"),
        {"comment": "Public holidays per office"}
    )

    office_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("offices.id", ondelete="CASCADE"),
        nullable=False,
        comment="Office"
    )

    date: Mapped[Date] = mapped_column(
        SQLDate,
        nullable=False,
        comment="Holiday date"
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Holiday name"
    )

    office: Mapped["Office"] = relationship(
        "Office",
        back_populates="holidays",
        lazy="select"
    )

    def __repr__(self) -> str:
        return f"<PublicHoliday(office_id={self.office_id}, date={self.date}, name={self.name})>"


class CompanyClosure(TimestampModel):
    """Company closure period excluded from leave counting."""

    __tablename__ = "company_closures"
    __table_args__ = (
        CheckConstraint(
            "end_date >= start_date",
            name="ck_company_closure_date_range"
        ),
        Index("ix_company_closure_office_dates", "office_id", "start_date", "end_date"),
        {"comment": "Company closure periods per office"}
    )

    office_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("offices.id", ondelete="CASCADE"),
        nullable=False,
        comment="Office"
    )

    start_date: Mapped[Date] = mapped_column(
        SQLDate,
        nullable=False,
        comment="First closed day"
    )

    end_date: Mapped[Date] = mapped_column(
        SQLDate,
        nullable=False,
        comment="Last closed day"
    )

    reason: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Closure reason"
    )

    office: Mapped["Office"] = relationship(
        "Office",
        back_populates="closures",
        lazy="select"
    )

    def __repr__(self) -> str:
        return (
            f"<CompanyClosure(office_id={self.office_id}, "
            f"start={self.start_date}, end={self.end_date})>"
        )
