"""View state models: filters, sort settings and collection statistics."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from taskpulse.domain.task import Priority, Task, parse_timestamp


class SortKey(StrEnum):
    """Field the visible task list is sorted by."""

    MANUAL = "manual"  # The user's drag-and-drop order
    DATE = "date"  # Creation time
    DUE_DATE = "due_date"  # Undated tasks always come last
    PRIORITY = "priority"
    CATEGORY = "category"
    TITLE = "title"


class SortDirection(StrEnum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class StatusFilter(StrEnum):
    """Completion-state filter."""

    ALL = "all"
    COMPLETED = "completed"
    PENDING = "pending"


class TaskFilters(BaseModel):
    """Active filters. Every set filter must match (logical AND)."""

    search: str = Field(default="", description="Case-insensitive substring over title/description/category/tags")
    priorities: set[Priority] | None = Field(default=None, description="Allowed priorities")
    categories: set[str] | None = Field(default=None, description="Allowed categories")
    status: StatusFilter = Field(default=StatusFilter.ALL, description="Completion state")
    due_from: datetime | None = Field(default=None, description="Earliest due date (inclusive)")
    due_until: datetime | None = Field(default=None, description="Latest due date (inclusive)")
    tags: list[str] | None = Field(default=None, description="Tags that must all be present")

    @field_validator("due_from", "due_until", mode="before")
    @classmethod
    def validate_bounds(cls, v: Any) -> Any:  # noqa: ANN401
        """Accept ISO strings and make datetimes timezone-aware."""
        return parse_timestamp(v)

    @model_validator(mode="after")
    def validate_range(self) -> "TaskFilters":
        """Reject an inverted due-date range."""
        if self.due_from and self.due_until and self.due_from > self.due_until:
            raise ValueError("due_from must not be after due_until")
        return self


class TaskStats(BaseModel):
    """Summary statistics over the live collection."""

    total_tasks: int
    completed_tasks: int
    completion_rate: float
    priority_distribution: dict[str, int]
    category_distribution: dict[str, int]
    average_tasks_per_day: float
    upcoming_deadlines: list[Task]
