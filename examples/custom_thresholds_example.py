"""
Example: Tuning resplan thresholds for a part-time team

This example shows how to override the default load thresholds and run
the engine directly, without the HTTP layer.
"""

from datetime import date

from resplan.config.settings import Settings
from resplan.engine.conflicts import detect_conflicts
from resplan.engine.intervals import window_for
from resplan.engine.utilization import compute_all_utilization
from resplan.models.entities import EffortUnit, Granularity, Resource, ResourceStatus, Task


# 1. A 4-day, 6-hour week: smaller capacities and a tighter task limit
part_time = Settings(
    overload_task_limit=3,
    hours_per_day=6,
    hours_per_week=24,
    capacity_week_hours=24,
    capacity_month_hours=96,
    capacity_quarter_hours=288,
    effort_capacity_hours=24,
)

# 2. A small board
resources = [
    Resource(id="ana", name="Ana"),
    Resource(id="lab", name="Lab 2", status=ResourceStatus.MAINTENANCE),
]
tasks = [
    Task(id="draft", start_date="2024-03-04", end_date="2024-03-06", assigned_resources=("ana",),
         effort=2, effort_unit=EffortUnit.DAYS),
    Task(id="review", start_date="2024-03-06", end_date="2024-03-07", assigned_resources=("ana", "lab"),
         effort=6),
]


# 3. Check a new task before saving it
candidate = Task(id="demo", start_date="2024-03-11", end_date="2024-03-12", assigned_resources=("ana",),
                 effort=1, effort_unit=EffortUnit.DAYS)

if __name__ == "__main__":
    for finding in detect_conflicts(tasks, resources, settings=part_time):
        print("board:", finding.as_dict())

    for finding in detect_conflicts(tasks, resources, candidate=candidate, settings=part_time):
        print("candidate:", finding.as_dict())

    window = window_for(Granularity.WEEK, date(2024, 3, 6))
    for u in compute_all_utilization(resources, tasks, window, Granularity.WEEK, part_time):
        print(f"{u.resource_id}: {u.utilization_percent}% ({u.status_tier.value})")
