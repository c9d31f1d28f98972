from datetime import date

import pytest

from resplan.models.entities import (
    EffortUnit,
    Priority,
    Resource,
    ResourceStatus,
    ResourceType,
    Task,
    TaskStatus,
    Window,
)


@pytest.fixture
def make_task():
    """Factory for tasks assigned to resource `r1` unless told otherwise."""

    def _make(
        task_id,
        start="2024-01-01",
        end="2024-01-05",
        resources=("r1",),
        status=TaskStatus.PLANNED,
        effort=None,
        unit=EffortUnit.HOURS,
        priority=Priority.MEDIUM,
    ):
        return Task(
            id=task_id,
            title=f"Task {task_id}",
            priority=priority,
            status=status,
            start_date=start,
            end_date=end,
            assigned_resources=tuple(resources),
            effort=effort,
            effort_unit=unit,
        )

    return _make


@pytest.fixture
def employee():
    """Single available employee."""
    return Resource(id="r1", name="Alice", type=ResourceType.EMPLOYEE, skills=("python", "sql"))


@pytest.fixture
def team():
    """Two available employees, a room in maintenance and an in-use projector."""
    return [
        Resource(id="r1", name="Alice", type=ResourceType.EMPLOYEE, skills=("python", "sql")),
        Resource(id="r2", name="Bob", type=ResourceType.EMPLOYEE, skills=("python",)),
        Resource(id="room-a", name="Room A", type=ResourceType.ROOM, status=ResourceStatus.MAINTENANCE, capacity=12),
        Resource(id="beamer", name="Beamer", type=ResourceType.EQUIPMENT, status=ResourceStatus.IN_USE),
    ]


@pytest.fixture
def january():
    """Month window for January 2024."""
    return Window(date(2024, 1, 1), date(2024, 1, 31))


@pytest.fixture
def overloaded_board(make_task):
    """Six active tasks on r1 spread over distinct weeks, plus a cancelled one."""
    tasks = [
        make_task(f"t{i}", start=f"2024-0{i}-01", end=f"2024-0{i}-05")
        for i in range(1, 7)
    ]
    tasks.append(make_task("cancelled", start="2024-01-02", end="2024-01-03", status=TaskStatus.CANCELLED))
    return tasks
