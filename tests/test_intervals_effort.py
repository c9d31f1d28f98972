from datetime import date, datetime

import pytest

from resplan.config.settings import Settings
from resplan.engine.effort import parse_effort, task_hours, to_hours
from resplan.engine.errors import (
    InvalidDateRange,
    InvalidEffort,
    MISSING_DATE,
    START_AFTER_END,
    UNPARSEABLE_DATE,
)
from resplan.engine.intervals import overlaps, parse_date, task_span, window_for
from resplan.models.entities import EffortUnit, Granularity, Task, Window


class TestOverlaps:
    """Closed-interval overlap predicate."""

    def test_shared_boundary_day(self):
        assert overlaps(date(2024, 1, 1), date(2024, 1, 10), date(2024, 1, 10), date(2024, 1, 20))

    def test_adjacent_days_are_disjoint(self):
        assert not overlaps(date(2024, 1, 1), date(2024, 1, 9), date(2024, 1, 10), date(2024, 1, 20))

    def test_containment(self):
        assert overlaps(date(2024, 1, 1), date(2024, 1, 31), date(2024, 1, 10), date(2024, 1, 12))

    def test_single_day_ranges(self):
        day = date(2024, 3, 3)
        assert overlaps(day, day, day, day)

    @pytest.mark.parametrize(
        "a, b",
        [
            ((date(2024, 1, 1), date(2024, 1, 5)), (date(2024, 1, 5), date(2024, 1, 9))),
            ((date(2024, 1, 1), date(2024, 1, 5)), (date(2024, 1, 6), date(2024, 1, 9))),
            ((date(2024, 1, 3), date(2024, 1, 4)), (date(2024, 1, 1), date(2024, 1, 9))),
        ],
    )
    def test_symmetric(self, a, b):
        assert overlaps(*a, *b) == overlaps(*b, *a)


class TestParseDate:

    def test_iso_date_string(self):
        assert parse_date("2024-02-29") == date(2024, 2, 29)

    def test_iso_datetime_string_with_zulu(self):
        assert parse_date("2024-02-29T13:45:00Z") == date(2024, 2, 29)

    def test_datetime_object(self):
        assert parse_date(datetime(2024, 5, 1, 9, 30)) == date(2024, 5, 1)

    @pytest.mark.parametrize("value", ["", "   ", "next week", "2024-13-01", None, 20240101])
    def test_unreadable_values(self, value):
        assert parse_date(value) is None


class TestTaskSpan:

    def test_valid_span(self):
        task = Task(id="t", start_date="2024-01-01", end_date=date(2024, 1, 3))
        assert task_span(task) == (date(2024, 1, 1), date(2024, 1, 3))

    @pytest.mark.parametrize(
        "start, end, reason",
        [
            (None, "2024-01-03", MISSING_DATE),
            ("2024-01-01", "", MISSING_DATE),
            ("2024-01-01", "someday", UNPARSEABLE_DATE),
            ("2024-01-05", "2024-01-01", START_AFTER_END),
        ],
    )
    def test_invalid_span(self, start, end, reason):
        with pytest.raises(InvalidDateRange) as excinfo:
            task_span(Task(id="t", start_date=start, end_date=end))
        assert excinfo.value.reason == reason
        assert excinfo.value.task_id == "t"


class TestWindowFor:
    """Calendar windows around an anchor date."""

    def test_week_runs_monday_to_sunday(self):
        # 2024-01-10 is a Wednesday
        assert window_for(Granularity.WEEK, date(2024, 1, 10)) == Window(date(2024, 1, 8), date(2024, 1, 14))

    def test_week_on_monday(self):
        assert window_for("week", date(2024, 1, 8)) == Window(date(2024, 1, 8), date(2024, 1, 14))

    def test_leap_february(self):
        assert window_for(Granularity.MONTH, date(2024, 2, 10)) == Window(date(2024, 2, 1), date(2024, 2, 29))

    def test_quarter(self):
        assert window_for(Granularity.QUARTER, date(2024, 5, 17)) == Window(date(2024, 4, 1), date(2024, 6, 30))

    def test_last_quarter(self):
        assert window_for(Granularity.QUARTER, date(2024, 12, 31)) == Window(date(2024, 10, 1), date(2024, 12, 31))

    def test_unknown_granularity(self):
        with pytest.raises(ValueError):
            window_for("fortnight", date(2024, 1, 1))


class TestEffort:
    """Effort parsing and hour normalization."""

    @pytest.mark.parametrize(
        "effort, unit, hours",
        [
            (5, EffortUnit.HOURS, 5.0),
            (2, EffortUnit.DAYS, 16.0),
            (1.5, EffortUnit.WEEKS, 60.0),
            ("3", "days", 24.0),
            (None, EffortUnit.WEEKS, 0.0),
            ("", EffortUnit.HOURS, 0.0),
        ],
    )
    def test_to_hours(self, effort, unit, hours):
        assert to_hours(effort, unit) == hours

    @pytest.mark.parametrize("effort", [-1, "lots", float("nan"), float("inf"), True])
    def test_invalid_effort_counts_as_zero(self, effort):
        assert to_hours(effort, EffortUnit.DAYS) == 0.0

    @pytest.mark.parametrize("effort", [-0.5, "abc", float("nan"), False, [3]])
    def test_parse_effort_rejects(self, effort):
        with pytest.raises(InvalidEffort):
            parse_effort(effort)

    def test_parse_effort_accepts_numeric_strings(self):
        assert parse_effort(" 2.5 ") == 2.5

    def test_custom_day_length(self):
        settings = Settings(hours_per_day=6)
        assert to_hours(2, EffortUnit.DAYS, settings) == 12.0

    def test_task_hours_uses_task_unit(self):
        task = Task(id="t", effort=1, effort_unit=EffortUnit.WEEKS)
        assert task_hours(task) == 40.0
