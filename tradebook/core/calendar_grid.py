"""
Month grid generation for the trade-entry calendar.
"""
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from dateutil.relativedelta import relativedelta

__all__ = [
    "CalendarDay",
    "generate_month_grid",
    "previous_month",
    "next_month",
    "month_weeks",
]

DAYS_PER_WEEK = 7


@dataclass(frozen=True)
class CalendarDay:
    """
    One cell of a month grid.

    Placeholder cells only pad the grid so that day 1 sits under its weekday
    column; they have no date and `day_of_month` 0.
    """

    date: Optional[date]
    day_of_month: int
    is_placeholder: bool

    @property
    def iso_date(self) -> Optional[str]:
        """The YYYY-MM-DD string used to open a new trade on this day."""
        return self.date.isoformat() if self.date is not None else None


_PLACEHOLDER = CalendarDay(date=None, day_of_month=0, is_placeholder=True)


def _sunday_based_weekday(d: date) -> int:
    """0=Sunday .. 6=Saturday."""
    return (d.weekday() + 1) % DAYS_PER_WEEK


def generate_month_grid(reference_date: date, pad_trailing: bool = False) -> List[CalendarDay]:
    """
    Lays out the month containing `reference_date`.

    Emits one placeholder per weekday before the 1st (weeks start on Sunday),
    then one cell per day of the month in order. With `pad_trailing`, extra
    placeholders complete the last week so the grid length is a multiple of 7.
    """
    first = reference_date.replace(day=1)
    last = first + relativedelta(months=1) - relativedelta(days=1)

    grid = [_PLACEHOLDER] * _sunday_based_weekday(first)
    grid.extend(
        CalendarDay(date=first.replace(day=day), day_of_month=day, is_placeholder=False)
        for day in range(1, last.day + 1)
    )

    if pad_trailing and len(grid) % DAYS_PER_WEEK:
        grid.extend([_PLACEHOLDER] * (DAYS_PER_WEEK - len(grid) % DAYS_PER_WEEK))
    return grid


def previous_month(reference_date: date) -> date:
    """Same day one month earlier, clamped to the month's length (Mar 31 -> Feb 28)."""
    return reference_date - relativedelta(months=1)


def next_month(reference_date: date) -> date:
    return reference_date + relativedelta(months=1)


def month_weeks(grid: Sequence[CalendarDay]) -> List[List[CalendarDay]]:
    """Splits a grid into rows of seven cells; the last row may be short."""
    return [list(grid[i:i + DAYS_PER_WEEK]) for i in range(0, len(grid), DAYS_PER_WEEK)]
