from dataclasses import asdict
from datetime import date
from functools import lru_cache
from typing import Annotated, Dict, List, Literal, Optional, Union
import logging

import redis
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, model_validator

from resplan.config.settings import get_settings
from resplan.engine.conflicts import detect_conflicts
from resplan.engine.effort import parse_effort
from resplan.engine.errors import InvalidDateRange, InvalidEffort
from resplan.engine.intervals import task_span, window_for
from resplan.engine.optimizer import plan_reschedules, rank_candidates, vet_suggestions
from resplan.engine.ortools_solver import suggest_assignments
from resplan.engine.utilization import compute_all_utilization, compute_all_workloads
from resplan.models.capabilities import Capabilities, capabilities_for
from resplan.models.entities import (
    EffortUnit,
    Granularity,
    Priority,
    Resource,
    ResourceStatus,
    ResourceType,
    Task,
    TaskStatus,
    Window,
)
from resplan.models.findings import StatusTier
from resplan.storage.cache import FindingsCache
from resplan.utils.reporting import dashboard_stats, summarize, summarize_conflicts

router = APIRouter()
logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_cache() -> Optional[FindingsCache]:
    if not get_settings().cache_enabled:
        return None
    return FindingsCache()


# ----------------------------------------------------------------------
# Input DTOs
# ----------------------------------------------------------------------

class ResourceDTO(BaseModel):
    id: str
    name: str = ""
    type: ResourceType = ResourceType.EMPLOYEE
    status: ResourceStatus = ResourceStatus.AVAILABLE
    skills: List[str] = []
    capacity: Optional[float] = None
    location: Optional[str] = None

    def to_domain(self) -> Resource:
        return Resource(
            id=self.id,
            name=self.name,
            type=self.type,
            status=self.status,
            skills=tuple(self.skills),
            capacity=self.capacity,
            location=self.location,
        )


class TaskDTO(BaseModel):
    """Task as stored; dates are passed through unvalidated so bad records degrade in the engine."""

    id: str
    title: str = ""
    description: str = ""
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.PLANNED
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    assigned_resources: List[str] = []
    effort: Optional[Union[float, str]] = None
    effort_unit: EffortUnit = EffortUnit.HOURS
    progress: int = Field(0, ge=0, le=100)

    def to_domain(self) -> Task:
        return Task(
            id=self.id,
            title=self.title,
            description=self.description,
            priority=self.priority,
            status=self.status,
            start_date=self.start_date,
            end_date=self.end_date,
            assigned_resources=tuple(self.assigned_resources),
            effort=self.effort,
            effort_unit=self.effort_unit,
            progress=self.progress,
        )


class CandidateDTO(TaskDTO):
    """Task about to be saved: dates and effort must be valid."""

    @model_validator(mode="after")
    def validate_candidate(self):
        try:
            task_span(self.to_domain())
        except InvalidDateRange as exc:
            raise ValueError(f"invalid date range: {exc.reason}")
        try:
            parse_effort(self.effort)
        except InvalidEffort as exc:
            raise ValueError(str(exc))
        return self


class SnapshotRequest(BaseModel):
    tasks: List[TaskDTO]
    resources: List[ResourceDTO]

    def domain(self):
        return [t.to_domain() for t in self.tasks], [r.to_domain() for r in self.resources]


class DetectRequest(SnapshotRequest):
    candidate: Optional[TaskDTO] = None
    include_advisories: bool = True


class CheckRequest(SnapshotRequest):
    candidate: CandidateDTO
    include_advisories: bool = True


class WindowRequest(SnapshotRequest):
    granularity: Granularity = Granularity.MONTH
    anchor: Optional[date] = None
    window_start: Optional[date] = None
    window_end: Optional[date] = None

    @model_validator(mode="after")
    def validate_window(self):
        if (self.window_start is None) != (self.window_end is None):
            raise ValueError("window_start and window_end must be given together")
        if self.window_start is not None and self.window_start > self.window_end:
            raise ValueError("window_start must not be after window_end")
        return self

    def window(self) -> Window:
        if self.window_start is not None:
            return Window(self.window_start, self.window_end)
        return window_for(self.granularity, self.anchor or date.today())


class AssignRequest(SnapshotRequest):
    resource_type: Optional[ResourceType] = None


class RankRequest(SnapshotRequest):
    task: TaskDTO
    resource_type: Optional[ResourceType] = None
    required_skills: List[str] = []
    suggested_resource_ids: List[str] = []


# ----------------------------------------------------------------------
# Output DTOs
# ----------------------------------------------------------------------

class OverloadDTO(BaseModel):
    kind: Literal["overload"]
    severity: Literal["medium"]
    resource_id: str
    task_count: int
    task_ids: List[str]


class OverlapDTO(BaseModel):
    kind: Literal["overlap"]
    severity: Literal["high"]
    resource_id: str
    task_id: str
    other_task_id: str


class UnavailableDTO(BaseModel):
    kind: Literal["unavailable"]
    severity: Literal["high"]
    resource_id: str
    task_id: str
    resource_status: ResourceStatus


class EffortOverloadDTO(BaseModel):
    kind: Literal["effort_overload"]
    severity: Literal["medium"]
    resource_id: str
    task_id: str
    total_hours: float
    capacity_hours: float
    other_task_count: int


class SystemErrorDTO(BaseModel):
    kind: Literal["system_error"]
    severity: Literal["high"]
    task_id: str
    reason: str


ConflictDTO = Annotated[
    Union[OverloadDTO, OverlapDTO, UnavailableDTO, EffortOverloadDTO, SystemErrorDTO],
    Field(discriminator="kind"),
]


class ConflictSummaryDTO(BaseModel):
    total: int
    by_kind: Dict[str, int]
    by_severity: Dict[str, int]
    blocking: bool


class ConflictResponse(BaseModel):
    conflicts: List[ConflictDTO]
    summary: ConflictSummaryDTO
    cached: bool = False


class UtilizationDTO(BaseModel):
    resource_id: str
    task_count: int
    total_effort_hours: float
    capacity_hours: float
    utilization_percent: int
    status_tier: StatusTier
    available_hours: float
    high_priority_count: int


class UtilizationResponse(BaseModel):
    window_start: date
    window_end: date
    granularity: Granularity
    results: List[UtilizationDTO]


class WorkloadDTO(BaseModel):
    resource_id: str
    task_count: int
    total_effort_hours: float
    utilization_percent: int
    gauge_percent: int
    task_ids: List[str]


class SummaryResponse(BaseModel):
    avg_utilization: int
    overloaded_count: int
    underutilized_count: int
    total: int
    total_resources: int
    available_resources: int
    in_progress_tasks: int
    completed_tasks: int
    by_type: Dict[str, int]


class RescheduleDTO(BaseModel):
    task_id: str
    resource_id: str
    resource_task_count: int
    priority: Priority
    old_start: date
    old_end: date
    new_start: date
    new_end: date


class AssignResponse(BaseModel):
    assignments: Dict[str, str]


class CandidateResourceDTO(BaseModel):
    resource_id: str
    task_count: int
    has_conflict: bool
    is_overloaded: bool
    skill_matches: int
    is_safe: bool


class VettedSuggestionDTO(BaseModel):
    resource_id: str
    known: bool
    is_safe: bool
    findings: List[ConflictDTO]


class RankResponse(BaseModel):
    candidates: List[CandidateResourceDTO]
    vetted: List[VettedSuggestionDTO]


# ----------------------------------------------------------------------
# Endpoints
# ----------------------------------------------------------------------

def _run_detection(
    req: SnapshotRequest,
    candidate: Optional[TaskDTO],
    include_advisories: bool,
    cache: Optional[FindingsCache],
) -> dict:
    snapshot_hash = None
    if cache is not None:
        snapshot_hash = FindingsCache.hash_snapshot(
            [t.model_dump(mode="json") for t in req.tasks],
            [r.model_dump(mode="json") for r in req.resources],
            {
                "candidate": candidate.model_dump(mode="json") if candidate else None,
                "include_advisories": include_advisories,
            },
        )
        try:
            cached = cache.get(snapshot_hash)
        except redis.RedisError as exc:
            logger.warning(f"Findings cache unavailable: {exc}")
            cache = None
            cached = None
        if cached is not None:
            logger.info("Cache hit")
            return {"conflicts": cached["conflicts"], "summary": cached["summary"], "cached": True}

    tasks, resources = req.domain()
    conflicts = detect_conflicts(
        tasks,
        resources,
        candidate=candidate.to_domain() if candidate else None,
        include_advisories=include_advisories,
    )
    payload = {
        "conflicts": [c.as_dict() for c in conflicts],
        "summary": asdict(summarize_conflicts(conflicts)),
    }
    logger.info(f"Detected {len(conflicts)} conflicts")

    if cache is not None:
        try:
            cache.set(snapshot_hash, payload)
        except redis.RedisError as exc:
            logger.warning(f"Could not cache findings: {exc}")
    return {**payload, "cached": False}


@router.post("/conflicts/detect", response_model=ConflictResponse, summary="Scan a board for conflicts")
def detect(req: DetectRequest, cache: Optional[FindingsCache] = Depends(get_cache)):
    """
    Run every conflict rule across the snapshot, or for `candidate` when given.

    **Severity:**
    - `high`: overlap, unavailable resource, skipped-task advisory
    - `medium`: task-count overload, effort overload
    """
    logger.info(f"Detect request: {len(req.tasks)} tasks, {len(req.resources)} resources")
    return _run_detection(req, req.candidate, req.include_advisories, cache)


@router.post("/conflicts/check", response_model=ConflictResponse, summary="Check a task before saving")
def check(req: CheckRequest, cache: Optional[FindingsCache] = Depends(get_cache)):
    """
    Candidate-mode check for the task being edited.

    The candidate must carry valid dates (start <= end) and non-negative
    effort; otherwise the request is rejected with 422.
    """
    logger.info(f"Check request for task {req.candidate.id}")
    return _run_detection(req, req.candidate, req.include_advisories, cache)


@router.post("/utilization", response_model=UtilizationResponse, summary="Per-resource utilization")
def utilization(req: WindowRequest):
    window = req.window()
    tasks, resources = req.domain()
    results = compute_all_utilization(resources, tasks, window, req.granularity)
    return {
        "window_start": window.start,
        "window_end": window.end,
        "granularity": req.granularity,
        "results": [asdict(u) for u in results],
    }


@router.post("/workload", response_model=List[WorkloadDTO], summary="Weekly workload per resource")
def workload(req: SnapshotRequest):
    tasks, resources = req.domain()
    return [asdict(w) for w in compute_all_workloads(resources, tasks)]


@router.post("/summary", response_model=SummaryResponse, summary="Dashboard summary")
def summary(req: WindowRequest):
    tasks, resources = req.domain()
    rollup = summarize(resources, tasks, req.window(), req.granularity)
    return {**asdict(rollup), **asdict(dashboard_stats(resources, tasks))}


@router.post("/optimize/reschedule", response_model=List[RescheduleDTO], summary="Reschedule plan")
def reschedule(req: SnapshotRequest):
    tasks, resources = req.domain()
    return [asdict(s) for s in plan_reschedules(tasks, resources)]


@router.post("/assignments/suggest", response_model=AssignResponse, summary="Auto-assign unassigned tasks")
def suggest(req: AssignRequest):
    """
    Assign every active, unassigned task one available resource with CP-SAT.

    **Error Handling:**
    - 422: no assignment satisfies the overlap and overload limits
    """
    tasks, resources = req.domain()
    result = suggest_assignments(tasks, resources, resource_type=req.resource_type)
    if result is None:
        raise HTTPException(status_code=422, detail="No feasible assignment found")
    return {"assignments": result}


@router.post("/assignments/rank", response_model=RankResponse, summary="Rank and vet resources for a task")
def rank(req: RankRequest):
    tasks, resources = req.domain()
    task = req.task.to_domain()
    candidates = rank_candidates(
        task,
        resources,
        tasks,
        resource_type=req.resource_type,
        required_skills=req.required_skills,
    )
    vetted = vet_suggestions(task, req.suggested_resource_ids, tasks, resources)
    return {
        "candidates": [{**asdict(c), "is_safe": c.is_safe} for c in candidates],
        "vetted": [
            {
                "resource_id": v.resource_id,
                "known": v.known,
                "is_safe": v.is_safe,
                "findings": [f.as_dict() for f in v.findings],
            }
            for v in vetted
        ],
    }


@router.get("/capabilities/{role}", summary="Capabilities for a role")
def capabilities(role: str) -> Capabilities:
    return capabilities_for(role)
