"""Export and import of the task collection as a JSON array."""

import json
import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from taskpulse.core.errors import TaskImportError
from taskpulse.domain.task import Task
from taskpulse.services.task_lifecycle import new_task_id


logger = logging.getLogger(__name__)


def export_tasks(tasks: Sequence[Task]) -> str:
    """Serialize tasks losslessly as a JSON array of camelCase task objects."""
    return json.dumps([task.to_document() for task in tasks], indent=2)


def _prepare_entry(entry: dict[str, Any], now: datetime) -> dict[str, Any]:
    prepared = dict(entry)
    if not prepared.get("id"):
        prepared["id"] = new_task_id()
    if prepared.get("createdAt") is None and prepared.get("created_at") is None:
        prepared["createdAt"] = now
    if prepared.get("completed") is None:
        prepared["completed"] = False
    return prepared


def parse_import(payload: str | list[Any], *, now: datetime) -> list[Task]:
    """Parse a serialized collection into tasks in manual order.

    Only the structure is checked: business rules such as a non-blank title are
    not enforced. Entries missing an id get a fresh one; order values are
    renumbered densely keeping their relative order.

    Args:
        payload: JSON text, or an already-decoded list
        now: Timestamp used for entries without a creation time

    Returns:
        Parsed tasks sorted by order

    Raises:
        TaskImportError: If the payload is not a well-formed task collection
    """
    if isinstance(payload, str):
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise TaskImportError(f"Invalid JSON: {e.msg}") from e
    else:
        data = payload

    if not isinstance(data, list):
        raise TaskImportError(f"Invalid data format: expected an array of tasks, got {type(data).__name__}")

    tasks: list[Task] = []
    seen_ids: set[str] = set()
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise TaskImportError(f"Invalid task at index {index}: expected an object")
        try:
            task = Task.model_validate(_prepare_entry(entry, now))
        except (ValidationError, ValueError, OverflowError) as e:
            raise TaskImportError(f"Invalid task at index {index}: {e}") from e
        if not task.completed and task.completed_at is not None:
            task = task.model_copy(update={"completed_at": None})
        if task.id in seen_ids:
            raise TaskImportError(f"Duplicate task id at index {index}: {task.id}")
        seen_ids.add(task.id)
        tasks.append(task)

    ordered = sorted(enumerate(tasks), key=lambda pair: (pair[1].order, pair[0]))
    result = [task.model_copy(update={"order": position}) for position, (_, task) in enumerate(ordered)]

    logger.info("Parsed task import", extra={"count": len(result)})
    return result
