from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

from resplan.config.settings import Settings, get_settings
from resplan.engine.utilization import compute_utilization, round_half_up
from resplan.models.entities import Granularity, Resource, ResourceType, Task, TaskStatus, Window
from resplan.models.findings import Conflict, Severity, StatusTier


@dataclass(frozen=True)
class UtilizationSummary:
    avg_utilization: int
    overloaded_count: int
    underutilized_count: int
    total: int


@dataclass(frozen=True)
class ConflictSummary:
    total: int
    by_kind: Dict[str, int] = field(default_factory=dict)
    by_severity: Dict[str, int] = field(default_factory=dict)
    blocking: bool = False


@dataclass(frozen=True)
class DashboardStats:
    total_resources: int
    available_resources: int
    in_progress_tasks: int
    completed_tasks: int
    by_type: Dict[str, int] = field(default_factory=dict)


def summarize(
    resources: Sequence[Resource],
    tasks: Sequence[Task],
    window: Window,
    granularity: Granularity = Granularity.MONTH,
    settings: Optional[Settings] = None,
) -> UtilizationSummary:
    """Roll per-resource utilization up for a dashboard."""
    settings = settings or get_settings()
    results = [compute_utilization(r, tasks, window, granularity, settings) for r in resources]
    total = len(results)
    if total == 0:
        return UtilizationSummary(avg_utilization=0, overloaded_count=0, underutilized_count=0, total=0)
    return UtilizationSummary(
        avg_utilization=round_half_up(sum(u.utilization_percent for u in results) / total),
        overloaded_count=sum(1 for u in results if u.status_tier == StatusTier.OVERLOADED),
        underutilized_count=sum(1 for u in results if u.utilization_percent < settings.underutilized_percent),
        total=total,
    )


def summarize_conflicts(conflicts: Sequence[Conflict]) -> ConflictSummary:
    by_kind = Counter(c.kind.value for c in conflicts)
    by_severity = Counter(c.severity.value for c in conflicts)
    return ConflictSummary(
        total=len(conflicts),
        by_kind=dict(by_kind),
        by_severity=dict(by_severity),
        blocking=by_severity.get(Severity.HIGH.value, 0) > 0,
    )


def dashboard_stats(resources: Sequence[Resource], tasks: Sequence[Task]) -> DashboardStats:
    type_counts = Counter(r.type for r in resources)
    return DashboardStats(
        total_resources=len(resources),
        available_resources=sum(1 for r in resources if r.is_available),
        in_progress_tasks=sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS),
        completed_tasks=sum(1 for t in tasks if t.status == TaskStatus.COMPLETED),
        by_type={
            t.value: type_counts[t]
            for t in ResourceType
            if type_counts[t] > 0
        },
    )
