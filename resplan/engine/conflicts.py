"""
Conflict Detector

Cross-checks task-to-resource assignments and reports structured findings.

Modes:
- Board scan: every active task and every resource in the snapshot.
- Candidate check: one task's proposed assignment set, evaluated against the
  other active tasks before it is saved.

Rules (evaluated in this order, each independently per resource):
1. Overload: more than `overload_task_limit` active tasks (medium)
2. Overlap: two active tasks on one resource with intersecting dates (high)
3. Unavailable: active task assigned to a resource that is not available (high)
4. Effort overload (candidate only): other tasks' hours plus the candidate's
   exceed the weekly effort capacity (medium)

Findings come out grouped by rule, then by resource order, then by task
order, so identical input always yields identical output. Tasks whose dates
cannot be read are skipped from rules 2 and 4 and reported once each as a
`system_error` advisory. Nothing here raises for a single bad record.

Complexity: O(r * n^2) worst case for overlaps, r = resources, n = active
tasks per resource. Expected n is in the tens.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from resplan.config.settings import Settings, get_settings
from resplan.engine.effort import parse_effort, task_hours
from resplan.engine.errors import InvalidDateRange, InvalidEffort
from resplan.engine.intervals import task_span, tasks_overlap
from resplan.models.entities import Resource, Task
from resplan.models.findings import (
    Conflict,
    EffortOverloadConflict,
    OverlapConflict,
    OverloadConflict,
    SystemErrorConflict,
    UnavailableConflict,
)

logger = logging.getLogger(__name__)

Span = Tuple[date, date]


class ConflictDetector:
    """
    Evaluates conflict rules over one immutable snapshot of tasks and resources.

    The detector precomputes per-resource active task lists and parsed date
    ranges once; every detect/check call is read-only.
    """

    def __init__(
        self,
        tasks: Sequence[Task],
        resources: Sequence[Resource],
        settings: Optional[Settings] = None,
    ):
        self.tasks = list(tasks)
        self.resources = list(resources)
        self.settings = settings or get_settings()
        self.resources_by_id: Dict[str, Resource] = {r.id: r for r in self.resources}

        self._spans: Dict[str, Optional[Span]] = {}
        self._invalid: Dict[str, str] = {}
        for task in self.tasks:
            if not task.is_active:
                continue
            try:
                self._spans[task.id] = task_span(task)
            except InvalidDateRange as exc:
                self._spans[task.id] = None
                self._invalid[task.id] = exc.reason

        self._active_by_resource: Dict[str, List[Task]] = {r.id: [] for r in self.resources}
        for task in self.tasks:
            if not task.is_active:
                continue
            for r_id in _unique(task.assigned_resources):
                if r_id in self._active_by_resource:
                    self._active_by_resource[r_id].append(task)
                else:
                    logger.debug(f"Task {task.id} references unknown resource {r_id}; ignoring")

    # ------------------------------------------------------------------
    # Board scan
    # ------------------------------------------------------------------

    def detect_all(self, include_advisories: bool = True) -> List[Conflict]:
        conflicts: List[Conflict] = []
        conflicts.extend(self.detect_overloads())
        conflicts.extend(self.detect_overlaps())
        conflicts.extend(self.detect_unavailable())
        if include_advisories:
            conflicts.extend(self.skipped_task_advisories())
        logger.debug(
            f"Board scan: {len(self.tasks)} tasks, {len(self.resources)} resources, "
            f"{len(conflicts)} findings"
        )
        return conflicts

    def detect_overloads(self) -> List[OverloadConflict]:
        limit = self.settings.overload_task_limit
        conflicts = []
        for resource in self.resources:
            active = self._active_by_resource[resource.id]
            if len(active) > limit:
                conflicts.append(OverloadConflict(
                    resource_id=resource.id,
                    task_count=len(active),
                    task_ids=tuple(t.id for t in active),
                ))
        return conflicts

    def detect_overlaps(self) -> List[OverlapConflict]:
        conflicts = []
        for resource in self.resources:
            dated = [
                (t, self._spans[t.id])
                for t in self._active_by_resource[resource.id]
                if self._spans.get(t.id) is not None
            ]
            for i, (t1, span1) in enumerate(dated):
                for t2, span2 in dated[i + 1:]:
                    if tasks_overlap(span1, span2):
                        conflicts.append(OverlapConflict(
                            resource_id=resource.id,
                            task_id=t1.id,
                            other_task_id=t2.id,
                        ))
        return conflicts

    def detect_unavailable(self) -> List[UnavailableConflict]:
        conflicts = []
        for task in self.tasks:
            if not task.is_active:
                continue
            for r_id in _unique(task.assigned_resources):
                resource = self.resources_by_id.get(r_id)
                if resource is not None and not resource.is_available:
                    conflicts.append(UnavailableConflict(
                        resource_id=r_id,
                        task_id=task.id,
                        resource_status=resource.status,
                    ))
        return conflicts

    def skipped_task_advisories(self) -> List[SystemErrorConflict]:
        """One advisory per active, assigned task left out of date checks."""
        advisories = []
        for task in self.tasks:
            reason = self._invalid.get(task.id)
            if reason is None or not self._known_resources(task):
                continue
            logger.warning(f"Skipping conflict checks for task {task.id}: {reason}")
            advisories.append(SystemErrorConflict(task_id=task.id, reason=reason))
        return advisories

    # ------------------------------------------------------------------
    # Candidate check
    # ------------------------------------------------------------------

    def check_candidate(self, candidate: Task, include_advisories: bool = True) -> List[Conflict]:
        """
        Evaluate one task's proposed assignment before it is saved.

        The candidate replaces any task with the same id in the snapshot.
        Inactive candidates produce no findings.
        """
        if not candidate.is_active:
            return []

        resource_ids = self._known_resources(candidate)
        advisories: List[SystemErrorConflict] = []
        try:
            span: Optional[Span] = task_span(candidate)
        except InvalidDateRange as exc:
            span = None
            if resource_ids:
                logger.warning(f"Candidate {candidate.id} has invalid dates ({exc.reason}); skipping date checks")
                advisories.append(SystemErrorConflict(task_id=candidate.id, reason=exc.reason))

        others = {
            r_id: [t for t in self._active_by_resource[r_id] if t.id != candidate.id]
            for r_id in resource_ids
        }

        conflicts: List[Conflict] = []
        limit = self.settings.overload_task_limit

        for r_id in resource_ids:
            count = len(others[r_id]) + 1
            if count > limit:
                conflicts.append(OverloadConflict(
                    resource_id=r_id,
                    task_count=count,
                    task_ids=tuple(t.id for t in others[r_id]) + (candidate.id,),
                ))

        skipped: List[str] = []
        if span is not None:
            for r_id in resource_ids:
                for other in others[r_id]:
                    other_span = self._spans.get(other.id)
                    if other_span is None:
                        if other.id not in skipped:
                            skipped.append(other.id)
                        continue
                    if tasks_overlap(span, other_span):
                        conflicts.append(OverlapConflict(
                            resource_id=r_id,
                            task_id=candidate.id,
                            other_task_id=other.id,
                        ))

        for r_id in resource_ids:
            resource = self.resources_by_id[r_id]
            if not resource.is_available:
                conflicts.append(UnavailableConflict(
                    resource_id=r_id,
                    task_id=candidate.id,
                    resource_status=resource.status,
                ))

        if span is not None and _has_effort(candidate):
            conflicts.extend(self._check_effort(candidate, resource_ids, others))

        if include_advisories:
            advisories.extend(
                SystemErrorConflict(task_id=t_id, reason=self._invalid[t_id]) for t_id in skipped
            )
            conflicts.extend(advisories)
        return conflicts

    def _check_effort(
        self,
        candidate: Task,
        resource_ids: List[str],
        others: Dict[str, List[Task]],
    ) -> List[EffortOverloadConflict]:
        # Coarse weekly check: counts all other active tasks regardless of dates
        capacity = self.settings.effort_capacity_hours
        candidate_hours = task_hours(candidate, self.settings)
        conflicts = []
        for r_id in resource_ids:
            counted = [t for t in others[r_id] if self._spans.get(t.id) is not None]
            combined = candidate_hours + sum(task_hours(t, self.settings) for t in counted)
            if combined > capacity:
                conflicts.append(EffortOverloadConflict(
                    resource_id=r_id,
                    task_id=candidate.id,
                    total_hours=combined,
                    capacity_hours=capacity,
                    other_task_count=len(counted),
                ))
        return conflicts

    def _known_resources(self, task: Task) -> List[str]:
        return [r_id for r_id in _unique(task.assigned_resources) if r_id in self.resources_by_id]


def _unique(ids: Sequence[str]) -> List[str]:
    seen = set()
    result = []
    for r_id in ids or ():
        if r_id not in seen:
            seen.add(r_id)
            result.append(r_id)
    return result


def _has_effort(task: Task) -> bool:
    try:
        return parse_effort(task.effort) > 0
    except InvalidEffort:
        return False


def detect_conflicts(
    tasks: Sequence[Task],
    resources: Sequence[Resource],
    candidate: Optional[Task] = None,
    include_advisories: bool = True,
    settings: Optional[Settings] = None,
) -> List[Conflict]:
    """
    Detect conflicts across a snapshot, or for one candidate assignment.

    Args:
        tasks: Task snapshot
        resources: Resource snapshot
        candidate: When given, check only this task's proposed assignment
        include_advisories: Emit `system_error` findings for skipped tasks
        settings: Threshold overrides

    Returns:
        Findings in deterministic rule/resource/task order
    """
    detector = ConflictDetector(tasks, resources, settings)
    if candidate is not None:
        return detector.check_candidate(candidate, include_advisories)
    return detector.detect_all(include_advisories)
