"""Domain models and DTOs."""

from taskpulse.domain.create_models import TaskCreate
from taskpulse.domain.productivity import (
    CompletionBreakdown,
    ProductivityPattern,
    ProductivitySample,
    TimeOfDay,
)
from taskpulse.domain.task import PRIORITY_RANK, Priority, Task
from taskpulse.domain.update_models import TaskUpdate
from taskpulse.domain.view import SortDirection, SortKey, StatusFilter, TaskFilters, TaskStats


__all__ = [
    "PRIORITY_RANK",
    "CompletionBreakdown",
    "Priority",
    "ProductivityPattern",
    "ProductivitySample",
    "SortDirection",
    "SortKey",
    "StatusFilter",
    "Task",
    "TaskCreate",
    "TaskFilters",
    "TaskStats",
    "TaskUpdate",
    "TimeOfDay",
]
