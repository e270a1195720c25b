"""Calendar and duration services."""

from leave_engine.services.calendar.calendar_service import CalendarService
from leave_engine.services.calendar.duration_calculator import (
    DurationCalculator,
    compute_duration,
    excluded_dates,
    parse_date,
)

__all__ = [
    "CalendarService",
    "DurationCalculator",
    "compute_duration",
    "excluded_dates",
    "parse_date",
]
