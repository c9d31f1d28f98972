import logging
import math
from typing import Dict, List, Optional, Sequence

from ortools.sat.python import cp_model

from resplan.config.settings import Settings, get_settings
from resplan.engine.effort import task_hours
from resplan.engine.errors import InvalidDateRange
from resplan.engine.intervals import task_span, tasks_overlap
from resplan.engine.utilization import active_tasks_for
from resplan.graph.conflict_graph import build_overlap_graph
from resplan.models.entities import Resource, ResourceType, Task

logger = logging.getLogger(__name__)


def suggest_assignments(
    tasks: Sequence[Task],
    resources: Sequence[Resource],
    resource_type: Optional[ResourceType] = None,
    settings: Optional[Settings] = None,
    time_limit_seconds: Optional[int] = None,
) -> Optional[Dict[str, str]]:
    """
    Propose one resource for every active, unassigned task using OR-Tools CP-SAT.

    Hard constraints:
    - Only available resources (optionally of one type) are eligible
    - A resource never holds two tasks with intersecting dates, counting its
      existing active assignments
    - A resource's resulting active task count stays within the overload limit

    Objective: minimize the largest resulting load in effort hours.

    Returns:
        task_id -> resource_id, {} if nothing needs assigning, None if infeasible
    """
    settings = settings or get_settings()
    time_limit = time_limit_seconds or settings.solver_time_limit_seconds

    targets: List[Task] = []
    spans = {}
    for task in tasks:
        if not task.is_active or task.assigned_resources:
            continue
        try:
            spans[task.id] = task_span(task)
        except InvalidDateRange as exc:
            logger.warning(f"Not assigning task {task.id}: {exc.reason}")
            continue
        targets.append(task)

    if not targets:
        return {}

    eligible = [
        r for r in resources
        if r.is_available and (resource_type is None or r.type == resource_type)
    ]
    if not eligible:
        logger.info("No eligible resources for assignment")
        return None

    model = cp_model.CpModel()
    x: Dict[tuple, cp_model.IntVar] = {}

    existing = {r.id: active_tasks_for(r.id, tasks) for r in eligible}
    existing_spans = {}
    for r in eligible:
        dated = []
        for t in existing[r.id]:
            try:
                dated.append(task_span(t))
            except InvalidDateRange:
                continue
        existing_spans[r.id] = dated

    for task in targets:
        choices = []
        for r in eligible:
            if len(existing[r.id]) >= settings.overload_task_limit:
                continue
            if any(tasks_overlap(spans[task.id], s) for s in existing_spans[r.id]):
                continue
            var = model.NewBoolVar(f"{task.id}_{r.id}")
            x[task.id, r.id] = var
            choices.append(var)
        if not choices:
            logger.info(f"Task {task.id} has no free eligible resource")
            return None
        model.AddExactlyOne(choices)

    # Hard constraints: no overlapping new tasks on the same resource
    graph = build_overlap_graph([(t.id, spans[t.id]) for t in targets])
    for t1, neighbours in graph.items():
        for t2 in neighbours:
            if t1 >= t2:
                continue
            for r in eligible:
                if (t1, r.id) in x and (t2, r.id) in x:
                    model.Add(x[t1, r.id] + x[t2, r.id] <= 1)

    ceiling = settings.solver_max_hours
    hours = {t.id: _solver_hours(task_hours(t, settings), ceiling) for t in targets}
    loads = []
    bounds = [0]
    for r in eligible:
        vars_r = [(t.id, x[t.id, r.id]) for t in targets if (t.id, r.id) in x]
        if not vars_r:
            continue
        model.Add(
            sum(v for _, v in vars_r) + len(existing[r.id]) <= settings.overload_task_limit
        )
        base = _solver_hours(sum(task_hours(t, settings) for t in existing[r.id]), ceiling)
        upper = base + sum(hours[t_id] for t_id, _ in vars_r)
        load = model.NewIntVar(0, upper, f"{r.id}_load")
        model.Add(load == base + sum(hours[t_id] * v for t_id, v in vars_r))
        loads.append(load)
        bounds.append(upper)

    max_load = model.NewIntVar(0, max(bounds), "max_load")
    model.AddMaxEquality(max_load, loads)
    model.Minimize(max_load)

    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = time_limit
    solver.parameters.num_workers = 1
    solver.parameters.log_search_progress = False

    status = solver.Solve(model)
    if status not in [cp_model.OPTIMAL, cp_model.FEASIBLE]:
        logger.info("No feasible assignment found")
        return None

    result: Dict[str, str] = {}
    for task in targets:
        for r in eligible:
            var = x.get((task.id, r.id))
            if var is not None and solver.Value(var):
                result[task.id] = r.id
                break
    logger.info(f"Assigned {len(result)} tasks, max load {solver.Value(max_load)}h")
    return result


def _solver_hours(value: float, ceiling: int) -> int:
    """Whole hours for the model, clamped so loads stay inside the solver's integer domain."""
    if not math.isfinite(value) or value >= ceiling:
        return ceiling
    return int(math.ceil(value))
