from typing import Optional

MISSING_DATE = "missing_date"
UNPARSEABLE_DATE = "unparseable_date"
START_AFTER_END = "start_after_end"


class InvalidDateRange(ValueError):
    """A task's dates cannot be used for date-dependent checks."""

    def __init__(self, reason: str, task_id: Optional[str] = None):
        self.reason = reason
        self.task_id = task_id
        super().__init__(f"task {task_id}: {reason}")


class InvalidEffort(ValueError):
    """Effort is negative or not a number."""
