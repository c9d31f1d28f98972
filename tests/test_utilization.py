from datetime import date

import pytest

from resplan.config.settings import Settings
from resplan.engine.utilization import (
    compute_all_utilization,
    compute_all_workloads,
    compute_utilization,
    compute_workload,
    round_half_up,
    status_tier,
)
from resplan.models.entities import EffortUnit, Granularity, Priority, Resource, TaskStatus, Window
from resplan.models.findings import StatusTier


class TestComputeUtilization:
    """Windowed utilization against granularity capacity."""

    def test_month_overloaded(self, make_task, employee, january):
        tasks = [
            make_task("a", "2024-01-02", "2024-01-10", effort=100),
            make_task("b", "2024-01-15", "2024-01-20", effort=50),
        ]
        result = compute_utilization(employee, tasks, january, Granularity.MONTH)
        assert result.total_effort_hours == 150
        assert result.capacity_hours == 160
        assert result.utilization_percent == 94
        assert result.status_tier == StatusTier.OVERLOADED
        assert result.task_count == 2
        assert result.available_hours == 10

    def test_half_up_rounding_stays_light(self, make_task, employee, january):
        """60h of 160h is 37.5%, shown as 38 but tiered on the raw value."""
        tasks = [make_task("a", effort=60)]
        result = compute_utilization(employee, tasks, january)
        assert result.utilization_percent == 38
        assert result.status_tier == StatusTier.LIGHT

    def test_capped_at_100(self, make_task, employee, january):
        tasks = [make_task("a", effort=2, unit=EffortUnit.WEEKS), make_task("b", effort=20, unit=EffortUnit.DAYS)]
        result = compute_utilization(employee, tasks, january)
        assert result.total_effort_hours == 240
        assert result.utilization_percent == 100
        assert result.available_hours == 0

    def test_week_capacity(self, make_task, employee):
        week = Window(date(2024, 1, 8), date(2024, 1, 14))
        tasks = [make_task("a", "2024-01-09", "2024-01-10", effort=3, unit=EffortUnit.DAYS)]
        result = compute_utilization(employee, tasks, week, Granularity.WEEK)
        assert result.capacity_hours == 40
        assert result.utilization_percent == 60
        assert result.status_tier == StatusTier.MODERATE

    def test_quarter_capacity(self, make_task, employee):
        quarter = Window(date(2024, 1, 1), date(2024, 3, 31))
        tasks = [make_task("a", effort=360)]
        result = compute_utilization(employee, tasks, quarter, Granularity.QUARTER)
        assert result.capacity_hours == 480
        assert result.utilization_percent == 75
        assert result.status_tier == StatusTier.BUSY

    @pytest.mark.parametrize(
        "start, end, included",
        [
            ("2023-12-20", "2024-01-01", True),   # touches window start
            ("2024-01-31", "2024-02-03", True),   # touches window end
            ("2024-01-10", "2024-01-12", True),   # strictly inside
            ("2023-12-01", "2024-02-29", True),   # contains the window
            ("2023-12-01", "2023-12-31", False),
            ("2024-02-01", "2024-02-05", False),
        ],
    )
    def test_window_inclusion(self, make_task, employee, january, start, end, included):
        tasks = [make_task("a", start, end, effort=16)]
        result = compute_utilization(employee, tasks, january)
        assert result.task_count == (1 if included else 0)
        assert result.total_effort_hours == (16 if included else 0)

    def test_full_effort_counts_when_partially_inside(self, make_task, employee, january):
        """Effort is not prorated across window boundaries."""
        tasks = [make_task("a", "2024-01-25", "2024-02-25", effort=80)]
        assert compute_utilization(employee, tasks, january).total_effort_hours == 80

    def test_ignores_inactive_unassigned_and_malformed(self, make_task, employee, january):
        tasks = [
            make_task("ok", effort=8),
            make_task("done", effort=100, status=TaskStatus.COMPLETED),
            make_task("cancelled", effort=100, status=TaskStatus.CANCELLED),
            make_task("other", effort=100, resources=("r2",)),
            make_task("broken", "2024-01-10", "2024-01-01", effort=100),
            make_task("undated", None, None, effort=100),
        ]
        result = compute_utilization(employee, tasks, january)
        assert result.task_count == 1
        assert result.total_effort_hours == 8

    def test_invalid_effort_counts_as_zero(self, make_task, employee, january):
        tasks = [make_task("a", effort=-5), make_task("b", effort="n/a"), make_task("c", effort=16)]
        result = compute_utilization(employee, tasks, january)
        assert result.task_count == 3
        assert result.total_effort_hours == 16

    def test_high_priority_count(self, make_task, employee, january):
        tasks = [
            make_task("a", priority=Priority.URGENT),
            make_task("b", priority=Priority.HIGH),
            make_task("c", priority=Priority.LOW),
        ]
        assert compute_utilization(employee, tasks, january).high_priority_count == 2

    def test_no_tasks(self, employee, january):
        result = compute_utilization(employee, [], january)
        assert result.utilization_percent == 0
        assert result.status_tier == StatusTier.LIGHT
        assert result.available_hours == 160


class TestStatusTier:

    @pytest.mark.parametrize(
        "percent, tier",
        [
            (100, StatusTier.OVERLOADED),
            (90.01, StatusTier.OVERLOADED),
            (90, StatusTier.BUSY),
            (70.5, StatusTier.BUSY),
            (70, StatusTier.MODERATE),
            (40.1, StatusTier.MODERATE),
            (40, StatusTier.LIGHT),
            (0, StatusTier.LIGHT),
        ],
    )
    def test_boundaries_are_strict(self, percent, tier):
        assert status_tier(percent) == tier

    def test_custom_thresholds(self):
        settings = Settings(tier_overloaded_percent=80)
        assert status_tier(85, settings) == StatusTier.OVERLOADED


class TestRoundHalfUp:

    @pytest.mark.parametrize("value, expected", [(37.5, 38), (93.75, 94), (0.5, 1), (2.4999, 2), (0, 0)])
    def test_rounding(self, value, expected):
        assert round_half_up(value) == expected


class TestComputeAll:

    def test_sorted_most_loaded_first(self, make_task, team, january):
        tasks = [
            make_task("a", effort=40, resources=("r2",)),
            make_task("b", effort=120, resources=("room-a",)),
            make_task("c", effort=8, resources=("r1",)),
        ]
        results = compute_all_utilization(team, tasks, january)
        assert [u.resource_id for u in results] == ["room-a", "r2", "r1", "beamer"]

    def test_ties_keep_input_order(self, team, january):
        results = compute_all_utilization(team, [], january)
        assert [u.resource_id for u in results] == ["r1", "r2", "room-a", "beamer"]


class TestWorkload:
    """Flat weekly workload, ignoring dates."""

    def test_overload_visible_up_to_150(self, make_task, employee):
        tasks = [make_task("a", "2024-01-01", "2024-01-05", effort=80)]
        result = compute_workload(employee, tasks)
        assert result.total_effort_hours == 80
        assert result.utilization_percent == 150
        assert result.gauge_percent == 100

    def test_dates_are_ignored(self, make_task, employee):
        tasks = [
            make_task("a", "2023-01-01", "2023-01-02", effort=1, unit=EffortUnit.DAYS),
            make_task("b", None, None, effort=2, unit=EffortUnit.DAYS),
            make_task("c", effort=100, status=TaskStatus.COMPLETED),
        ]
        result = compute_workload(employee, tasks)
        assert result.task_count == 2
        assert result.task_ids == ("a", "b")
        assert result.utilization_percent == 60
        assert result.gauge_percent == 60

    def test_all_workloads_sorted(self, make_task):
        resources = [Resource(id="r1"), Resource(id="r2")]
        tasks = [make_task("a", effort=10, resources=("r1",)), make_task("b", effort=30, resources=("r2",))]
        results = compute_all_workloads(resources, tasks)
        assert [(w.resource_id, w.utilization_percent) for w in results] == [("r2", 75), ("r1", 25)]
