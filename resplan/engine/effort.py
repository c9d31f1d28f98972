import logging
import math
from typing import Optional, Union

from resplan.config.settings import Settings, get_settings
from resplan.engine.errors import InvalidEffort
from resplan.models.entities import EffortUnit, Task

logger = logging.getLogger(__name__)


def parse_effort(value: Union[float, int, str, None]) -> float:
    """
    Read an effort magnitude.

    Missing effort is 0. Raises InvalidEffort for negative or non-numeric input.
    """
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        raise InvalidEffort(f"effort must be numeric, got {value!r}")
    try:
        effort = float(value)
    except (TypeError, ValueError):
        raise InvalidEffort(f"effort must be numeric, got {value!r}")
    if math.isnan(effort) or math.isinf(effort):
        raise InvalidEffort(f"effort must be finite, got {value!r}")
    if effort < 0:
        raise InvalidEffort(f"effort must be non-negative, got {value!r}")
    return effort


def to_hours(
    effort: Union[float, int, str, None],
    unit: Union[EffortUnit, str, None] = EffortUnit.HOURS,
    settings: Optional[Settings] = None,
) -> float:
    """Normalize effort to hours (1 day = 8h, 1 week = 40h). Invalid effort counts as 0."""
    settings = settings or get_settings()
    try:
        hours = parse_effort(effort)
    except InvalidEffort as exc:
        logger.debug(f"Treating invalid effort as 0: {exc}")
        return 0.0
    if unit == EffortUnit.DAYS:
        return hours * settings.hours_per_day
    if unit == EffortUnit.WEEKS:
        return hours * settings.hours_per_week
    return hours


def task_hours(task: Task, settings: Optional[Settings] = None) -> float:
    return to_hours(task.effort, task.effort_unit, settings)
