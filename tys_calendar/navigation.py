"""
Date navigation for day, week and month views.

first_day_of_week uses 0 = Sunday, 1 = Monday, 6 = Saturday.
"""

import calendar
from datetime import date, datetime, time as dt_time, timedelta
from typing import Union

from .models import ViewMode
from .time_utils import END_OF_DAY


SHORT_WEEKDAYS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

MONTH_GRID_CELLS = 42  # 6 rows x 7 days


def _sunday_based_weekday(d: date) -> int:
    # date.weekday() is Monday-based
    return (d.weekday() + 1) % 7


def week_start(d: date, first_day_of_week: int = 0) -> date:
    offset = (_sunday_based_weekday(d) - first_day_of_week) % 7
    return d - timedelta(days=offset)


def week_days(d: date, first_day_of_week: int = 0) -> list[date]:
    """The seven dates of the week containing d."""
    start = week_start(d, first_day_of_week)
    return [start + timedelta(days=i) for i in range(7)]


def month_days(year: int, month: int, first_day_of_week: int = 0) -> list[date]:
    """
    Dates for a month grid.

    Always 42 cells: the month padded with trailing days of the previous
    month and leading days of the next one.
    """
    first = date(year, month, 1)
    grid_start = week_start(first, first_day_of_week)
    return [grid_start + timedelta(days=i) for i in range(MONTH_GRID_CELLS)]


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def weekday_labels(first_day_of_week: int = 0) -> list[str]:
    return SHORT_WEEKDAYS[first_day_of_week:] + SHORT_WEEKDAYS[:first_day_of_week]


def visible_range(
    view_mode: Union[ViewMode, str],
    selected: date,
    first_day_of_week: int = 0,
) -> tuple[datetime, datetime]:
    """The [start, end] window a view displays around the selected date."""
    mode = ViewMode(view_mode)
    if mode == ViewMode.DAY:
        first = last = selected
    elif mode == ViewMode.WEEK:
        days = week_days(selected, first_day_of_week)
        first, last = days[0], days[-1]
    else:
        days = month_days(selected.year, selected.month, first_day_of_week)
        first, last = days[0], days[-1]
    return datetime.combine(first, dt_time.min), datetime.combine(last, END_OF_DAY)


def step(view_mode: Union[ViewMode, str], selected: date, direction: int = 1) -> date:
    """
    Move the selected date one period forwards (direction=1) or back (-1).

    Month steps keep the day of month, clamped to the target month's length.
    """
    mode = ViewMode(view_mode)
    if mode == ViewMode.DAY:
        return selected + timedelta(days=direction)
    if mode == ViewMode.WEEK:
        return selected + timedelta(days=7 * direction)

    month_index = selected.year * 12 + (selected.month - 1) + direction
    year, month = divmod(month_index, 12)
    month += 1
    return date(year, month, min(selected.day, days_in_month(year, month)))
