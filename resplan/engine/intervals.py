"""
Interval Math

Whole-day tasks occupy inclusive date ranges, so two ranges overlap iff each
starts on or before the day the other ends. Ranges that share a single
boundary day overlap.

The closed-interval test `a_start <= b_end and b_start <= a_end` is
equivalent to checking whether any endpoint of one range falls inside the
other, and is the only overlap predicate used across the engine.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Optional, Tuple

from resplan.engine.errors import (
    InvalidDateRange,
    MISSING_DATE,
    START_AFTER_END,
    UNPARSEABLE_DATE,
)
from resplan.models.entities import DateLike, Granularity, Task, Window


def overlaps(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """
    Check whether two inclusive date ranges intersect.

    Complexity: O(1)
    """
    return a_start <= b_end and b_start <= a_end


def parse_date(value: DateLike) -> Optional[date]:
    """Coerce a date, datetime or ISO-8601 string to a date; None if impossible."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def task_span(task: Task) -> Tuple[date, date]:
    """
    Parse a task's inclusive date range.

    Raises:
        InvalidDateRange: a date is missing or unparseable, or start > end
    """
    if task.start_date in (None, "") or task.end_date in (None, ""):
        raise InvalidDateRange(MISSING_DATE, task.id)
    start = parse_date(task.start_date)
    end = parse_date(task.end_date)
    if start is None or end is None:
        raise InvalidDateRange(UNPARSEABLE_DATE, task.id)
    if start > end:
        raise InvalidDateRange(START_AFTER_END, task.id)
    return start, end


def tasks_overlap(a: Tuple[date, date], b: Tuple[date, date]) -> bool:
    return overlaps(a[0], a[1], b[0], b[1])


def in_window(span: Tuple[date, date], window: Window) -> bool:
    return overlaps(span[0], span[1], window.start, window.end)


def window_for(granularity: Granularity, anchor: date) -> Window:
    """
    Calendar window of the given granularity containing anchor.

    Weeks run Monday to Sunday. Quarters are calendar quarters.
    """
    if isinstance(anchor, datetime):
        anchor = anchor.date()
    granularity = Granularity(granularity)
    if granularity == Granularity.WEEK:
        start = anchor - timedelta(days=anchor.weekday())
        return Window(start, start + timedelta(days=6))
    if granularity == Granularity.MONTH:
        last = calendar.monthrange(anchor.year, anchor.month)[1]
        return Window(anchor.replace(day=1), anchor.replace(day=last))
    first_month = anchor.month - (anchor.month - 1) % 3
    last_month = first_month + 2
    last = calendar.monthrange(anchor.year, last_month)[1]
    return Window(date(anchor.year, first_month, 1), date(anchor.year, last_month, last))
