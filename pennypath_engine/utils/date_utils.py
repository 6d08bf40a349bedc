"""Calendar-aware date arithmetic.

Every month/year-sensitive date step in the engine goes through this module so
forecasting logic never touches the underlying date library directly.
"""

from datetime import date, datetime, time
from typing import TypeVar

from dateutil.relativedelta import relativedelta

from pennypath_engine.domain.exceptions import CalendarArithmeticError

D = TypeVar("D", date, datetime)

# unit name -> relativedelta keyword
_UNITS = {
    "day": "days",
    "week": "weeks",
    "month": "months",
    "year": "years",
}


def add_calendar_units(anchor: D, unit: str, count: int) -> D:
    """
    Add ``count`` calendar units to ``anchor``.

    Month and year steps clamp to the last valid day (Jan 31 + 1 month is
    Feb 28, or Feb 29 in a leap year).

    Raises:
        CalendarArithmeticError: result falls outside the representable range
        ValueError: unknown unit
    """
    if unit not in _UNITS:
        raise ValueError(f"Unknown calendar unit: {unit}")
    try:
        return anchor + relativedelta(**{_UNITS[unit]: count})
    except (OverflowError, ValueError) as e:
        raise CalendarArithmeticError(f"Cannot add {count} {unit}(s) to {anchor}") from e


def add_calendar_units_or_anchor(anchor: D, unit: str, count: int) -> D:
    """Like ``add_calendar_units`` but returns ``anchor`` when the step cannot be computed"""
    try:
        return add_calendar_units(anchor, unit, count)
    except CalendarArithmeticError:
        return anchor


def end_of_day(day: date) -> datetime:
    """Last representable moment of ``day``"""
    return datetime.combine(day, time.max)


def in_month(value: date, year: int, month: int) -> bool:
    """Whether ``value`` falls inside the given calendar month"""
    return value.year == year and value.month == month


def whole_months_between(start: date, end: date) -> int:
    """Complete calendar months from start to end (negative when end precedes start)"""
    delta = relativedelta(end, start)
    return delta.years * 12 + delta.months
