"""
Resource Load Calculator

Aggregates the active tasks assigned to a resource into a load figure.

Two variants:
- Windowed utilization: tasks intersecting a week/month/quarter window,
  measured against a fixed capacity for that granularity, capped at 100%.
- Weekly workload: every active assigned task against a flat 40h week,
  capped at 150% so overload magnitude stays visible.

A task's full effort counts toward a window it touches at all; effort is
not prorated by the fraction of the task inside the window.
"""

import logging
import math
from typing import List, Optional, Sequence

from resplan.config.settings import Settings, get_settings
from resplan.engine.effort import task_hours
from resplan.engine.errors import InvalidDateRange
from resplan.engine.intervals import in_window, task_span
from resplan.models.entities import Granularity, Priority, Resource, Task, Window
from resplan.models.findings import StatusTier, UtilizationResult, WorkloadResult

logger = logging.getLogger(__name__)

HIGH_PRIORITIES = frozenset({Priority.HIGH, Priority.URGENT})


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def capacity_for(granularity: Granularity, settings: Optional[Settings] = None) -> float:
    settings = settings or get_settings()
    granularity = Granularity(granularity)
    if granularity == Granularity.WEEK:
        return settings.capacity_week_hours
    if granularity == Granularity.QUARTER:
        return settings.capacity_quarter_hours
    return settings.capacity_month_hours


def status_tier(percent: float, settings: Optional[Settings] = None) -> StatusTier:
    settings = settings or get_settings()
    if percent > settings.tier_overloaded_percent:
        return StatusTier.OVERLOADED
    if percent > settings.tier_busy_percent:
        return StatusTier.BUSY
    if percent > settings.tier_moderate_percent:
        return StatusTier.MODERATE
    return StatusTier.LIGHT


def active_tasks_for(resource_id: str, tasks: Sequence[Task]) -> List[Task]:
    """Active tasks assigned to a resource, in input order."""
    return [t for t in tasks if t.is_active and t.is_assigned_to(resource_id)]


def tasks_in_window(resource: Resource, tasks: Sequence[Task], window: Window) -> List[Task]:
    selected = []
    for task in active_tasks_for(resource.id, tasks):
        try:
            span = task_span(task)
        except InvalidDateRange as exc:
            logger.warning(f"Skipping task {task.id} for utilization of {resource.id}: {exc.reason}")
            continue
        if in_window(span, window):
            selected.append(task)
    return selected


def compute_utilization(
    resource: Resource,
    tasks: Sequence[Task],
    window: Window,
    granularity: Granularity = Granularity.MONTH,
    settings: Optional[Settings] = None,
) -> UtilizationResult:
    """
    Compute a resource's utilization for one window.

    Args:
        resource: Resource to measure
        tasks: Task snapshot (any status; inactive tasks are ignored)
        window: Inclusive date window
        granularity: Capacity basis (week=40h, month=160h, quarter=480h)
        settings: Threshold overrides

    Returns:
        UtilizationResult with percent rounded half-up and capped at 100

    Complexity: O(n) in task count
    """
    settings = settings or get_settings()
    selected = tasks_in_window(resource, tasks, window)
    total = sum(task_hours(t, settings) for t in selected)
    capacity = capacity_for(granularity, settings)

    raw_percent = min(100.0, total / capacity * 100) if capacity > 0 else 0.0
    return UtilizationResult(
        resource_id=resource.id,
        task_count=len(selected),
        total_effort_hours=total,
        capacity_hours=capacity,
        utilization_percent=round_half_up(raw_percent),
        status_tier=status_tier(raw_percent, settings),
        available_hours=max(0.0, capacity - total),
        high_priority_count=sum(1 for t in selected if t.priority in HIGH_PRIORITIES),
    )


def compute_all_utilization(
    resources: Sequence[Resource],
    tasks: Sequence[Task],
    window: Window,
    granularity: Granularity = Granularity.MONTH,
    settings: Optional[Settings] = None,
) -> List[UtilizationResult]:
    """Utilization for every resource, most loaded first (ties keep input order)."""
    results = [compute_utilization(r, tasks, window, granularity, settings) for r in resources]
    return sorted(results, key=lambda u: -u.utilization_percent)


def compute_workload(
    resource: Resource,
    tasks: Sequence[Task],
    settings: Optional[Settings] = None,
) -> WorkloadResult:
    """Quick weekly load: all active assigned tasks against a flat weekly capacity."""
    settings = settings or get_settings()
    assigned = active_tasks_for(resource.id, tasks)
    total = sum(task_hours(t, settings) for t in assigned)
    capacity = settings.workload_capacity_hours
    raw_percent = total / capacity * 100 if capacity > 0 else 0.0
    return WorkloadResult(
        resource_id=resource.id,
        task_count=len(assigned),
        total_effort_hours=total,
        utilization_percent=round_half_up(min(raw_percent, settings.workload_display_cap_percent)),
        gauge_percent=round_half_up(min(raw_percent, 100.0)),
        task_ids=tuple(t.id for t in assigned),
    )


def compute_all_workloads(
    resources: Sequence[Resource],
    tasks: Sequence[Task],
    settings: Optional[Settings] = None,
) -> List[WorkloadResult]:
    results = [compute_workload(r, tasks, settings) for r in resources]
    return sorted(results, key=lambda w: -w.utilization_percent)
