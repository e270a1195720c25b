"""
Leave duration calculator.

A pure function of its inputs: the interactive preview and the
authoritative server path both call ``compute_duration`` so the value
shown is always the value charged.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterable, Iterator, List, Optional, Union

from dateutil import parser as date_parser

from leave_engine.core.exceptions import ValidationError
from leave_engine.models.common.enums import HalfDay
from leave_engine.schemas.leave.validation import RuleCode, ValidationIssue
from leave_engine.schemas.office.office_config import WEEKDAY_CODES, OfficeCalendar

DateInput = Union[date, datetime, str, None]

ZERO = Decimal("0")
HALF = Decimal("0.5")
ONE = Decimal("1")


def parse_date(value: DateInput) -> Optional[date]:
    """
    Coerce a date, datetime or ISO string into a date.

    Returns:
        The date, or None when the value cannot be parsed
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date_parser.isoparse(value.strip()).date()
        except (ValueError, OverflowError):
            return None
    return None


def parse_half_day(value: Union[HalfDay, str, None], field: str) -> HalfDay:
    """
    Coerce a half-day flag, treating None as a full day.

    Raises:
        ValidationError: INVALID_HALF_DAY for an unknown flag
    """
    if value is None:
        return HalfDay.FULL_DAY
    if isinstance(value, HalfDay):
        return value
    try:
        return HalfDay(str(value).strip().upper())
    except ValueError:
        allowed = ", ".join(flag.value for flag in HalfDay)
        issue = ValidationIssue(
            code=RuleCode.INVALID_HALF_DAY,
            message=f"Unknown half-day flag {value!r}; expected one of {allowed}",
            field=field,
        )
        raise ValidationError(issues=[issue.to_dict()]) from None


def _weekday_numbers(working_days: Iterable[Union[str, int]]) -> frozenset:
    numbers = set()
    for day in working_days:
        if isinstance(day, int):
            if 0 <= day <= 6:
                numbers.add(day)
            continue
        code = str(day).strip().upper()
        # Unknown codes are ignored
        if code in WEEKDAY_CODES:
            numbers.add(WEEKDAY_CODES.index(code))
    return frozenset(numbers)


def _holiday_dates(holidays: Iterable[DateInput]) -> frozenset:
    parsed = (parse_date(h) for h in holidays or ())
    return frozenset(d for d in parsed if d is not None)


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Every calendar date from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def compute_duration(
    start_date: DateInput,
    end_date: DateInput,
    start_half_day: Union[HalfDay, str] = HalfDay.FULL_DAY,
    end_half_day: Union[HalfDay, str] = HalfDay.FULL_DAY,
    working_days: Iterable[Union[str, int]] = WEEKDAY_CODES[:5],
    holidays: Iterable[DateInput] = (),
) -> Decimal:
    """
    Chargeable day count of a leave range.

    Each working, non-holiday date counts 1.0 except:
    a single-day range with any half-day flag counts 0.5;
    the first day counts 0.5 when it starts in the AFTERNOON;
    the last day counts 0.5 when it ends in the MORNING.

    Args:
        start_date: First day (date, datetime or ISO string)
        end_date: Last day (date, datetime or ISO string)
        start_half_day: Half-day flag of the first day
        end_half_day: Half-day flag of the last day
        working_days: Weekday codes (MON..SUN) or weekday numbers
        holidays: Excluded dates

    Returns:
        Day count in 0.5 steps; 0 for unparseable or reversed ranges

    Raises:
        ValidationError: INVALID_HALF_DAY for an unknown half-day flag
    """
    start = parse_date(start_date)
    end = parse_date(end_date)
    if start is None or end is None or end < start:
        return ZERO

    start_half = parse_half_day(start_half_day, "start_half_day")
    end_half = parse_half_day(end_half_day, "end_half_day")
    weekdays = _weekday_numbers(working_days)
    excluded = _holiday_dates(holidays)

    total = ZERO
    for day in iter_dates(start, end):
        if day.weekday() not in weekdays or day in excluded:
            continue

        if day == start and day == end:
            if start_half != HalfDay.FULL_DAY or end_half != HalfDay.FULL_DAY:
                total += HALF
            else:
                total += ONE
        elif day == start and start_half == HalfDay.AFTERNOON:
            total += HALF
        elif day == end and end_half == HalfDay.MORNING:
            total += HALF
        else:
            total += ONE

    return total


def excluded_dates(
    start_date: DateInput,
    end_date: DateInput,
    working_days: Iterable[Union[str, int]] = WEEKDAY_CODES[:5],
    holidays: Iterable[DateInput] = (),
) -> List[date]:
    """Dates of the range that are not counted."""
    start = parse_date(start_date)
    end = parse_date(end_date)
    if start is None or end is None or end < start:
        return []
    weekdays = _weekday_numbers(working_days)
    excluded = _holiday_dates(holidays)
    return [
        day for day in iter_dates(start, end)
        if day.weekday() not in weekdays or day in excluded
    ]


class DurationCalculator:
    """Applies ``compute_duration`` with an office calendar."""

    def compute(
        self,
        start_date: DateInput,
        end_date: DateInput,
        start_half_day: Union[HalfDay, str],
        end_half_day: Union[HalfDay, str],
        calendar: OfficeCalendar,
    ) -> Decimal:
        return compute_duration(
            start_date,
            end_date,
            start_half_day,
            end_half_day,
            calendar.working_days,
            calendar.holidays,
        )

    def excluded(
        self,
        start_date: DateInput,
        end_date: DateInput,
        calendar: OfficeCalendar,
    ) -> List[date]:
        return excluded_dates(start_date, end_date, calendar.working_days, calendar.holidays)


__all__ = [
    "DurationCalculator",
    "compute_duration",
    "excluded_dates",
    "iter_dates",
    "parse_date",
    "parse_half_day",
]
