from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple, Union

DateLike = Union[date, datetime, str, None]


class ResourceType(str, Enum):
    EMPLOYEE = "employee"
    ROOM = "room"
    EQUIPMENT = "equipment"


class ResourceStatus(str, Enum):
    AVAILABLE = "available"
    IN_USE = "in_use"
    MAINTENANCE = "maintenance"
    UNAVAILABLE = "unavailable"


class TaskStatus(str, Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class EffortUnit(str, Enum):
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"


class Granularity(str, Enum):
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"


PRIORITY_WEIGHTS = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
    Priority.URGENT: 4,
}

ACTIVE_STATUSES = frozenset({TaskStatus.PLANNED, TaskStatus.IN_PROGRESS})


@dataclass(frozen=True)
class Resource:
    id: str
    name: str = ""
    type: ResourceType = ResourceType.EMPLOYEE
    status: ResourceStatus = ResourceStatus.AVAILABLE
    skills: Tuple[str, ...] = ()
    capacity: Optional[float] = None  # e.g. seats in a room, not used for load
    location: Optional[str] = None

    @property
    def is_available(self) -> bool:
        return self.status == ResourceStatus.AVAILABLE


@dataclass(frozen=True)
class Task:
    id: str
    title: str = ""
    description: str = ""
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.PLANNED
    start_date: DateLike = None  # inclusive, raw as supplied by the caller
    end_date: DateLike = None  # inclusive
    assigned_resources: Tuple[str, ...] = ()
    effort: Union[float, str, None] = None
    effort_unit: EffortUnit = EffortUnit.HOURS
    progress: int = 0

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def priority_weight(self) -> int:
        return PRIORITY_WEIGHTS.get(self.priority, PRIORITY_WEIGHTS[Priority.MEDIUM])

    def is_assigned_to(self, resource_id: str) -> bool:
        return resource_id in self.assigned_resources


@dataclass(frozen=True)
class Window:
    start: date
    end: date  # inclusive
