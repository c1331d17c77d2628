"""Pydantic models for creating tasks."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from taskpulse.domain.task import Priority, parse_timestamp, unique_tags


class TaskCreate(BaseModel):
    """Input for adding a task. System-owned fields are not accepted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    title: str = Field(..., description="Task title (required, not blank)")
    description: str = Field(default="", description="Plain-text description")
    rich_description: str = Field(default="", description="Formatted description")
    priority: Priority = Field(default=Priority.MEDIUM, description="Task priority")
    category: str | None = Field(default=None, description="Category (configured fallback when absent)")
    tags: list[str] = Field(default_factory=list, description="Tags")
    due_date: datetime | None = Field(default=None, description="Optional due date")

    @field_validator("title")
    @classmethod
    def validate_title_not_blank(cls, v: str) -> str:
        """Reject empty or whitespace-only titles."""
        if not v.strip():
            raise ValueError("Title cannot be empty")
        return v

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str | None) -> str | None:
        """Treat a blank category as absent."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        """De-duplicate tags."""
        return unique_tags(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def validate_due_date(cls, v: Any) -> Any:  # noqa: ANN401
        """Accept ISO strings and make datetimes timezone-aware."""
        return parse_timestamp(v)
