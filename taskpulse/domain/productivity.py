"""Productivity analytics models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from taskpulse.domain.task import Priority


class TimeOfDay(StrEnum):
    """Completion time bucket. Definition order is the tie-break order."""

    MORNING = "Morning"  # 05:00-12:00
    AFTERNOON = "Afternoon"  # 12:00-17:00
    EVENING = "Evening"  # 17:00-22:00
    NIGHT = "Night"  # 22:00-05:00

    @classmethod
    def from_hour(cls, hour: int) -> "TimeOfDay":
        """Bucket an hour of the day (0-23)."""
        if 5 <= hour < 12:  # noqa: PLR2004
            return cls.MORNING
        if 12 <= hour < 17:  # noqa: PLR2004
            return cls.AFTERNOON
        if 17 <= hour < 22:  # noqa: PLR2004
            return cls.EVENING
        return cls.NIGHT


# Calendar order starting Sunday; used to break ties between days
WEEKDAY_NAMES: tuple[str, ...] = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


class ProductivitySample(BaseModel):
    """One observation taken when a task transitions to completed."""

    model_config = ConfigDict(frozen=True)

    time_of_day: TimeOfDay
    day_of_week: str
    hour: int = Field(..., ge=0, le=23)
    category: str
    priority: Priority
    completion_duration_minutes: int = Field(..., ge=0)


class ProductivityPattern(BaseModel):
    """Aggregate insight derived from every recorded sample."""

    model_config = ConfigDict(frozen=True)

    most_productive_time_of_day: TimeOfDay
    most_productive_day_of_week: str
    best_categories: list[str]
    average_task_duration: float = Field(..., description="Mean completion duration in minutes")
    recommended_task_order: list[str]


class CompletionBreakdown(BaseModel):
    """Hour and weekday distribution of completions."""

    most_productive_hour: int
    most_productive_day: str
    completion_rate_by_hour: dict[int, float]
    completion_rate_by_day: dict[str, float]
    average_completion_minutes: float
