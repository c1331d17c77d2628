"""Update models for task edits."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from taskpulse.domain.task import Priority, parse_timestamp, unique_tags


# Fields owned by the system; changed only through create, toggle and reorder
SYSTEM_OWNED_FIELDS = frozenset({"id", "created_at", "completed_at", "completed", "order"})


class TaskUpdate(BaseModel):
    """Partial field patch for a task. Only explicitly set fields are applied."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    title: str | None = None
    description: str | None = None
    rich_description: str | None = None
    priority: Priority | None = None
    category: str | None = None
    tags: list[str] | None = None
    due_date: datetime | None = None

    @field_validator("title")
    @classmethod
    def validate_title_not_blank(cls, v: str | None) -> str | None:
        """Reject empty or whitespace-only titles."""
        if v is None or not v.strip():
            raise ValueError("Title cannot be empty")
        return v

    @field_validator("description", "rich_description", "priority", "category", "tags")
    @classmethod
    def validate_not_null(cls, v: Any) -> Any:  # noqa: ANN401
        """Only due_date may be cleared with null."""
        if v is None:
            raise ValueError("Field cannot be null")
        return v

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

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller set."""
        return {name: getattr(self, name) for name in self.model_fields_set}
