"""
Priority Optimizer and assignment support.

Deterministic counterparts of the planning assistant:
- prioritize: order active tasks by priority weight, then start date
- plan_reschedules: move low/medium tasks off overloaded resources
- rank_candidates: score available resources for one task
- vet_suggestions: cross-check externally suggested resources against the
  conflict detector before they are shown as safe
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from resplan.config.settings import Settings, get_settings
from resplan.engine.conflicts import ConflictDetector
from resplan.engine.errors import InvalidDateRange
from resplan.engine.intervals import task_span, tasks_overlap
from resplan.engine.utilization import active_tasks_for
from resplan.models.entities import Priority, Resource, ResourceType, Task
from resplan.models.findings import Conflict, Severity

logger = logging.getLogger(__name__)

RESCHEDULABLE_PRIORITIES = frozenset({Priority.LOW, Priority.MEDIUM})


@dataclass(frozen=True)
class RescheduleSuggestion:
    task_id: str
    resource_id: str
    resource_task_count: int
    priority: Priority
    old_start: date
    old_end: date
    new_start: date
    new_end: date


@dataclass(frozen=True)
class CandidateResource:
    resource_id: str
    task_count: int
    has_conflict: bool
    is_overloaded: bool
    skill_matches: int = 0

    @property
    def is_safe(self) -> bool:
        return not self.has_conflict and not self.is_overloaded


@dataclass(frozen=True)
class VettedSuggestion:
    resource_id: str
    known: bool
    findings: Tuple[Conflict, ...] = ()

    @property
    def is_safe(self) -> bool:
        return self.known and not any(f.severity == Severity.HIGH for f in self.findings)


def _start_key(task: Task) -> Tuple[int, date]:
    try:
        return 0, task_span(task)[0]
    except InvalidDateRange:
        return 1, date.max


def prioritize(tasks: Sequence[Task]) -> List[Task]:
    """Active tasks, most urgent first; earlier start breaks ties, undated last."""
    active = [t for t in tasks if t.is_active]
    return sorted(active, key=lambda t: (-t.priority_weight, _start_key(t)))


def plan_reschedules(
    tasks: Sequence[Task],
    resources: Sequence[Resource],
    settings: Optional[Settings] = None,
) -> List[RescheduleSuggestion]:
    """
    Propose pushing lower-priority work off overloaded resources.

    For each resource with more active tasks than the overload limit, up to
    `reschedule_max_per_resource` of its low/medium tasks (lowest priority
    first) move to start `reschedule_shift_days` after their current end,
    keeping their length in days. Tasks without readable dates are left alone.
    """
    settings = settings or get_settings()
    suggestions: List[RescheduleSuggestion] = []
    for resource in resources:
        active = active_tasks_for(resource.id, tasks)
        if len(active) <= settings.overload_task_limit:
            continue
        movable = sorted(
            (t for t in active if t.priority in RESCHEDULABLE_PRIORITIES),
            key=lambda t: t.priority_weight,
        )
        picked = 0
        for task in movable:
            if picked >= settings.reschedule_max_per_resource:
                break
            try:
                start, end = task_span(task)
            except InvalidDateRange as exc:
                logger.warning(f"Cannot reschedule task {task.id}: {exc.reason}")
                continue
            new_start = end + timedelta(days=settings.reschedule_shift_days)
            suggestions.append(RescheduleSuggestion(
                task_id=task.id,
                resource_id=resource.id,
                resource_task_count=len(active),
                priority=Priority(task.priority),
                old_start=start,
                old_end=end,
                new_start=new_start,
                new_end=new_start + (end - start),
            ))
            picked += 1
    logger.info(f"Planned {len(suggestions)} reschedules")
    return suggestions


def rank_candidates(
    task: Task,
    resources: Sequence[Resource],
    tasks: Sequence[Task],
    resource_type: Optional[ResourceType] = None,
    required_skills: Iterable[str] = (),
    settings: Optional[Settings] = None,
) -> List[CandidateResource]:
    """
    Rank available resources for a task, safest first.

    Order: no date conflict, not overloaded, most matching skills, fewest
    other active tasks, then input order.
    """
    settings = settings or get_settings()
    wanted = {s.lower() for s in required_skills}
    try:
        span = task_span(task)
    except InvalidDateRange:
        span = None

    candidates = []
    for resource in resources:
        if not resource.is_available:
            continue
        if resource_type is not None and resource.type != resource_type:
            continue
        others = [t for t in active_tasks_for(resource.id, tasks) if t.id != task.id]
        has_conflict = False
        if span is not None:
            for other in others:
                try:
                    if tasks_overlap(span, task_span(other)):
                        has_conflict = True
                        break
                except InvalidDateRange:
                    continue
        candidates.append(CandidateResource(
            resource_id=resource.id,
            task_count=len(others),
            has_conflict=has_conflict,
            is_overloaded=len(others) > settings.overload_task_limit,
            skill_matches=len(wanted & {s.lower() for s in resource.skills}),
        ))
    return sorted(
        candidates,
        key=lambda c: (c.has_conflict, c.is_overloaded, -c.skill_matches, c.task_count),
    )


def vet_suggestions(
    task: Task,
    resource_ids: Sequence[str],
    tasks: Sequence[Task],
    resources: Sequence[Resource],
    settings: Optional[Settings] = None,
) -> List[VettedSuggestion]:
    """Run the candidate check for each suggested resource on its own."""
    detector = ConflictDetector(tasks, resources, settings)
    vetted = []
    for r_id in resource_ids:
        if r_id not in detector.resources_by_id:
            logger.info(f"Suggested resource {r_id} is not in the snapshot")
            vetted.append(VettedSuggestion(resource_id=r_id, known=False))
            continue
        probe = replace(task, assigned_resources=(r_id,))
        findings = detector.check_candidate(probe, include_advisories=False)
        vetted.append(VettedSuggestion(resource_id=r_id, known=True, findings=tuple(findings)))
    return vetted
