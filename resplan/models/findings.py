from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple, Union

from resplan.models.entities import ResourceStatus


class ConflictKind(str, Enum):
    OVERLAP = "overlap"
    OVERLOAD = "overload"
    UNAVAILABLE = "unavailable"
    EFFORT_OVERLOAD = "effort_overload"
    SYSTEM_ERROR = "system_error"


class Severity(str, Enum):
    HIGH = "high"  # blocking by convention
    MEDIUM = "medium"  # warning by convention


class StatusTier(str, Enum):
    OVERLOADED = "overloaded"
    BUSY = "busy"
    MODERATE = "moderate"
    LIGHT = "light"


class _Finding:
    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, Enum):
                data[key] = value.value
            elif isinstance(value, tuple):
                data[key] = list(value)
        return data


@dataclass(frozen=True)
class OverloadConflict(_Finding):
    resource_id: str
    task_count: int
    task_ids: Tuple[str, ...] = ()
    kind: ConflictKind = field(default=ConflictKind.OVERLOAD, init=False)
    severity: Severity = field(default=Severity.MEDIUM, init=False)


@dataclass(frozen=True)
class OverlapConflict(_Finding):
    resource_id: str
    task_id: str
    other_task_id: str
    kind: ConflictKind = field(default=ConflictKind.OVERLAP, init=False)
    severity: Severity = field(default=Severity.HIGH, init=False)


@dataclass(frozen=True)
class UnavailableConflict(_Finding):
    resource_id: str
    task_id: str
    resource_status: ResourceStatus
    kind: ConflictKind = field(default=ConflictKind.UNAVAILABLE, init=False)
    severity: Severity = field(default=Severity.HIGH, init=False)


@dataclass(frozen=True)
class EffortOverloadConflict(_Finding):
    resource_id: str
    task_id: str
    total_hours: float
    capacity_hours: float
    other_task_count: int
    kind: ConflictKind = field(default=ConflictKind.EFFORT_OVERLOAD, init=False)
    severity: Severity = field(default=Severity.MEDIUM, init=False)


@dataclass(frozen=True)
class SystemErrorConflict(_Finding):
    """Advisory: a task was left out of date-dependent checks."""

    task_id: str
    reason: str
    kind: ConflictKind = field(default=ConflictKind.SYSTEM_ERROR, init=False)
    severity: Severity = field(default=Severity.HIGH, init=False)


Conflict = Union[
    OverloadConflict,
    OverlapConflict,
    UnavailableConflict,
    EffortOverloadConflict,
    SystemErrorConflict,
]


@dataclass(frozen=True)
class UtilizationResult:
    resource_id: str
    task_count: int
    total_effort_hours: float
    capacity_hours: float
    utilization_percent: int
    status_tier: StatusTier
    available_hours: float = 0.0
    high_priority_count: int = 0


@dataclass(frozen=True)
class WorkloadResult:
    resource_id: str
    task_count: int
    total_effort_hours: float
    utilization_percent: int  # capped at the display cap (150 by default)
    gauge_percent: int  # capped at 100 for progress bars
    task_ids: Tuple[str, ...] = ()
