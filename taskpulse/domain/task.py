"""Task domain model and enums."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from dateutil import parser as dateutil_parser
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Priority(StrEnum):
    """Task priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


PRIORITY_RANK: dict[Priority, int] = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


def parse_timestamp(value: Any) -> Any:  # noqa: ANN401
    """Parse ISO-8601 strings and attach the local timezone to naive datetimes.

    Non-string, non-datetime values are returned untouched for pydantic to reject.
    """
    if isinstance(value, str):
        value = dateutil_parser.isoparse(value)
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.astimezone()
    return value


def unique_tags(tags: list[str]) -> list[str]:
    """Drop blank and repeated tags, keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags:
        cleaned = tag.strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


class Task(BaseModel):
    """Canonical task record.

    Serialized (by alias) with the camelCase field names used in documents and exports.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(..., description="Opaque unique task ID, immutable after creation")
    title: str = Field(default="", description="Task title")
    description: str = Field(default="", description="Plain-text description")
    rich_description: str = Field(default="", description="Formatted description owned by the editor")
    priority: Priority = Field(default=Priority.MEDIUM, description="Task priority")
    category: str = Field(default="Other", description="Free-form category")
    tags: list[str] = Field(default_factory=list, description="Tags in display order")
    completed: bool = Field(default=False, description="Completion state")
    created_at: datetime = Field(..., description="Creation timestamp, set once")
    completed_at: datetime | None = Field(default=None, description="Set iff completed")
    due_date: datetime | None = Field(default=None, description="Optional due date")
    order: int = Field(default=0, description="Position in the manual sequence")

    @field_validator("created_at", "completed_at", "due_date", mode="before")
    @classmethod
    def validate_timestamp(cls, v: Any) -> Any:  # noqa: ANN401
        """Accept ISO strings and make datetimes timezone-aware."""
        return parse_timestamp(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        """De-duplicate tags."""
        return unique_tags(v)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON-compatible camelCase document form."""
        return self.model_dump(mode="json", by_alias=True)
