"""
Reporting periods and date arithmetic.

A Period is inclusive on both ends. Comparison periods and trend windows
are derived here so every builder uses the same calendar rules.
"""

import calendar
import enum
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Union

from .exceptions import InvalidPeriodError, UnknownComparisonModeError

DateInput = Union[date, str]


class ComparisonMode(str, enum.Enum):
    NONE = "none"
    PREVIOUS_PERIOD = "previous_period"
    PREVIOUS_YEAR = "previous_year"
    PREVIOUS_MONTH = "previous_month"


# Modes each report kind accepts
PERIOD_COMPARISONS = (ComparisonMode.NONE, ComparisonMode.PREVIOUS_PERIOD, ComparisonMode.PREVIOUS_YEAR)
AS_OF_COMPARISONS = (ComparisonMode.NONE, ComparisonMode.PREVIOUS_MONTH, ComparisonMode.PREVIOUS_YEAR)


def parse_date(value: DateInput) -> date:
    """Accept a date, a datetime (its date part) or an ISO-8601 date string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise InvalidPeriodError(f"Malformed date: {value!r}") from exc


def parse_comparison_mode(value, allowed=PERIOD_COMPARISONS) -> ComparisonMode:
    if value is None:
        return ComparisonMode.NONE
    try:
        mode = ComparisonMode(value)
    except ValueError:
        raise UnknownComparisonModeError(f"Unknown comparison mode: {value!r}")
    if mode not in allowed:
        raise UnknownComparisonModeError(
            f"Comparison mode {mode.value!r} is not supported here; "
            f"use one of {[m.value for m in allowed]}"
        )
    return mode


def month_end(value: date) -> date:
    return value.replace(day=calendar.monthrange(value.year, value.month)[1])


def add_months(value: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month length."""
    year = value.year + (value.month - 1 + months) // 12
    month = (value.month - 1 + months) % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def shift_years(value: date, years: int) -> date:
    return add_months(value, years * 12)


@dataclass(frozen=True)
class Period:
    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise InvalidPeriodError(
                f"Period start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )

    @classmethod
    def parse(cls, start: DateInput, end: DateInput) -> "Period":
        return cls(parse_date(start), parse_date(end))

    @classmethod
    def month_of(cls, value: date) -> "Period":
        return cls(value.replace(day=1), month_end(value))

    @classmethod
    def year_to_date(cls, value: date) -> "Period":
        return cls(date(value.year, 1, 1), value)

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    @property
    def name(self) -> str:
        return f"{self.start.isoformat()} - {self.end.isoformat()}"

    @property
    def label(self) -> str:
        """Short month label such as 'Oct 2026', used for monthly periods."""
        return f"{calendar.month_abbr[self.start.month]} {self.start.year}"

    def previous(self) -> "Period":
        """Same length, immediately preceding."""
        end = self.start - timedelta(days=1)
        return Period(end - timedelta(days=self.days - 1), end)

    def shift_years(self, years: int) -> "Period":
        return Period(shift_years(self.start, years), shift_years(self.end, years))


def comparison_period(period: Period, mode: ComparisonMode) -> Period:
    if mode == ComparisonMode.PREVIOUS_PERIOD:
        return period.previous()
    if mode == ComparisonMode.PREVIOUS_YEAR:
        return period.shift_years(-1)
    raise UnknownComparisonModeError(f"No comparison period for mode {mode.value!r}")


def comparison_date(as_of: date, mode: ComparisonMode) -> date:
    if mode == ComparisonMode.PREVIOUS_MONTH:
        return add_months(as_of, -1)
    if mode == ComparisonMode.PREVIOUS_YEAR:
        return shift_years(as_of, -1)
    raise UnknownComparisonModeError(f"No comparison date for mode {mode.value!r}")


def monthly_windows(window_size: int, today: date) -> List[Period]:
    """`window_size` consecutive calendar months ending with today's month, oldest first."""
    current = today.replace(day=1)
    return [Period.month_of(add_months(current, -offset)) for offset in range(window_size - 1, -1, -1)]


def day_before(value: date) -> date:
    return value - timedelta(days=1)
