"""Pure construction, update and completion rules for tasks."""

import logging
import uuid
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from taskpulse.core.errors import TaskValidationError
from taskpulse.domain.create_models import TaskCreate
from taskpulse.domain.task import Task
from taskpulse.domain.update_models import SYSTEM_OWNED_FIELDS, TaskUpdate


logger = logging.getLogger(__name__)


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(loc) for loc in item["loc"]) or "input"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def new_task_id() -> str:
    """Generate an opaque unique task id."""
    return uuid.uuid4().hex


def parse_create(data: TaskCreate | dict[str, Any]) -> TaskCreate:
    """Validate raw add-task input.

    Raises:
        TaskValidationError: If the input is malformed or the title is blank
    """
    if isinstance(data, TaskCreate):
        return data
    try:
        return TaskCreate.model_validate(data)
    except ValidationError as e:
        raise TaskValidationError(_format_validation_error(e)) from e


def parse_update(patch: TaskUpdate | dict[str, Any]) -> TaskUpdate:
    """Validate a raw field patch.

    Raises:
        TaskValidationError: If the patch touches system-owned fields or is malformed
    """
    if isinstance(patch, TaskUpdate):
        return patch

    owned = sorted(key for key in patch if key in SYSTEM_OWNED_FIELDS or _snake(key) in SYSTEM_OWNED_FIELDS)
    if owned:
        raise TaskValidationError(f"Cannot patch system-owned field(s): {', '.join(owned)}")

    try:
        return TaskUpdate.model_validate(patch)
    except ValidationError as e:
        raise TaskValidationError(_format_validation_error(e)) from e


def _snake(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name)


def create_task(
    data: TaskCreate | dict[str, Any],
    *,
    order: int,
    now: datetime,
    default_category: str,
) -> Task:
    """Build a new pending task.

    Args:
        data: Add-task input
        order: Manual position (current max order + 1, or 0 for an empty collection)
        now: Creation time
        default_category: Category used when the input has none

    Returns:
        The new task

    Raises:
        TaskValidationError: If the input is invalid
    """
    create = parse_create(data)
    return Task(
        id=new_task_id(),
        title=create.title,
        description=create.description,
        rich_description=create.rich_description,
        priority=create.priority,
        category=create.category or default_category,
        tags=create.tags,
        completed=False,
        created_at=now,
        completed_at=None,
        due_date=create.due_date,
        order=order,
    )


def apply_update(task: Task, patch: TaskUpdate | dict[str, Any]) -> Task:
    """Return a copy of task with the patch applied.

    Raises:
        TaskValidationError: If the patch is invalid
    """
    changes = parse_update(patch).changes()
    if not changes:
        return task
    return task.model_copy(update=changes)


def toggle_completion(task: Task, now: datetime) -> tuple[Task, bool]:
    """Flip the completion state of a task.

    Returns:
        Tuple of (updated task, whether this was a pending -> completed transition)
    """
    if task.completed:
        return task.model_copy(update={"completed": False, "completed_at": None}), False

    # completed_at must never precede created_at, even if the clock moved backwards
    completed_at = max(now, task.created_at)
    return task.model_copy(update={"completed": True, "completed_at": completed_at}), True
