"""
Calendar service.

Builds office calendars for a date range and counts chargeable days
against them.
"""

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional, Union

from leave_engine.core.exceptions import ValidationError
from leave_engine.core.logging import get_logger
from leave_engine.models.common.enums import HalfDay
from leave_engine.schemas.leave.leave_request import DurationPreview
from leave_engine.schemas.leave.validation import RuleCode, ValidationIssue
from leave_engine.schemas.office.office_config import OfficeCalendar
from leave_engine.services.calendar.duration_calculator import (
    DateInput,
    DurationCalculator,
    parse_date,
    parse_half_day,
)

if TYPE_CHECKING:
    from leave_engine.services.office.config_provider import OfficeConfigProvider


class CalendarService:
    """Office calendars and durations computed from them."""

    def __init__(
        self,
        config_provider: "OfficeConfigProvider",
        calculator: Optional[DurationCalculator] = None,
    ):
        self.config_provider = config_provider
        self.calculator = calculator or DurationCalculator()
        self._logger = get_logger(self.__class__.__name__)

    def get_calendar(self, office_id: str, start: date, end: date) -> OfficeCalendar:
        """Working days and excluded dates of ``office_id`` over [start, end]."""
        return self.config_provider.get_calendar(office_id, start, end)

    def compute_days(
        self,
        office_id: str,
        start_date: DateInput,
        end_date: DateInput,
        start_half_day: Union[HalfDay, str] = HalfDay.FULL_DAY,
        end_half_day: Union[HalfDay, str] = HalfDay.FULL_DAY,
    ) -> Decimal:
        """Authoritative chargeable day count for an office."""
        start = parse_date(start_date)
        end = parse_date(end_date)
        if start is None or end is None or end < start:
            return Decimal("0")
        calendar = self.get_calendar(office_id, start, end)
        return self.calculator.compute(start, end, start_half_day, end_half_day, calendar)

    def preview(
        self,
        office_id: str,
        start_date: DateInput,
        end_date: DateInput,
        start_half_day: Union[HalfDay, str] = HalfDay.FULL_DAY,
        end_half_day: Union[HalfDay, str] = HalfDay.FULL_DAY,
    ) -> DurationPreview:
        """Duration with the list of dates left out of the count."""
        start = parse_date(start_date)
        end = parse_date(end_date)
        if start is None or end is None:
            issue = ValidationIssue(
                code=RuleCode.INVALID_DATE_RANGE,
                message="Start and end dates must be valid dates",
                field="start_date",
            )
            raise ValidationError(issues=[issue.to_dict()])
        start_half = parse_half_day(start_half_day, "start_half_day")
        end_half = parse_half_day(end_half_day, "end_half_day")

        excluded: List[date] = []
        total = Decimal("0")
        if end >= start:
            calendar = self.get_calendar(office_id, start, end)
            total = self.calculator.compute(start, end, start_half, end_half, calendar)
            excluded = self.calculator.excluded(start, end, calendar)

        return DurationPreview(
            start_date=start,
            end_date=end,
            start_half_day=start_half,
            end_half_day=end_half,
            total_days=total,
            excluded_dates=excluded,
        )
