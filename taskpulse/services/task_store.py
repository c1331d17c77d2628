"""Task store: the single owner of the live task collection.

Every mutator validates and applies its change to local state before its first
await, then writes to the document store. A failed write raises
PersistenceError but does not roll the local change back; the optional
on_persistence_error hook sees the error first.

Key Concepts:
- Manual order: live tasks always carry orders 0..n-1 matching their position
  in the manual sequence. Add appends; delete, reorder and import renumber.
- Visible tasks: the live collection after the active filters and sort.
- Completion events: a pending -> completed toggle publishes task.completed on
  the event bus before the write, so analytics never miss a completion.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from datetime import datetime
from functools import partial
from typing import Any

from pydantic import ValidationError

from taskpulse.core.config import Constants, settings
from taskpulse.core.db_client import DocumentStore
from taskpulse.core.errors import PersistenceError, TaskNotFoundError, TaskValidationError
from taskpulse.core.events import TASK_COMPLETED, EventBus
from taskpulse.core.logging import span
from taskpulse.domain.create_models import TaskCreate
from taskpulse.domain.task import Task
from taskpulse.domain.update_models import TaskUpdate
from taskpulse.domain.view import SortDirection, SortKey, TaskFilters, TaskStats
from taskpulse.services import task_lifecycle, task_views, transfer


logger = logging.getLogger(__name__)

PersistenceErrorHook = Callable[[PersistenceError], None]
_Write = tuple[str, Callable[[], Awaitable[Any]]]


def local_now() -> datetime:
    """Current local time, timezone-aware."""
    return datetime.now().astimezone()


def _aliases(field_names: Iterable[str]) -> list[str]:
    return [Task.model_fields[name].alias or name for name in field_names]


class TaskStore:
    """Owns live tasks, the selection set and the view state for one owner."""

    def __init__(
        self,
        *,
        backend: DocumentStore,
        bus: EventBus,
        owner_id: str,
        default_category: str | None = None,
        clock: Callable[[], datetime] = local_now,
        on_persistence_error: PersistenceErrorHook | None = None,
        collection: str = Constants.TASKS_COLLECTION,
    ) -> None:
        self._backend = backend
        self._bus = bus
        self._owner_id = owner_id
        self._default_category = default_category or settings.default_category
        self._clock = clock
        self._on_persistence_error = on_persistence_error
        self._collection = collection

        self._tasks: list[Task] = []
        self._selected: dict[str, None] = {}
        self._remote_ids: dict[str, str] = {}
        self._recorded_completions: set[tuple[str, datetime]] = set()
        self._filters = TaskFilters()
        self._sort_key = SortKey.MANUAL
        self._sort_direction = SortDirection.ASC

    # ------------------------------------------------------------------
    # Read access

    @property
    def owner_id(self) -> str:
        """Owner whose documents this store reads and writes."""
        return self._owner_id

    @property
    def tasks(self) -> tuple[Task, ...]:
        """Live tasks in manual order."""
        return tuple(self._tasks)

    @property
    def filters(self) -> TaskFilters:
        """Active filters."""
        return self._filters

    @property
    def sort(self) -> tuple[SortKey, SortDirection]:
        """Active sort key and direction."""
        return self._sort_key, self._sort_direction

    @property
    def selected_ids(self) -> list[str]:
        """Selected task ids in selection order."""
        return list(self._selected)

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, task_id: str) -> Task:
        """Return a live task by id.

        Raises:
            TaskNotFoundError: If no live task has this id
        """
        return self._tasks[self._index(task_id)]

    def visible_tasks(self) -> list[Task]:
        """Live tasks after the active filters and sort."""
        filtered = task_views.filter_tasks(self._tasks, self._filters)
        return task_views.sort_tasks(filtered, self._sort_key, self._sort_direction)

    def search(self, query: str) -> list[Task]:
        """Tasks matching a free-text query, in manual order."""
        return task_views.search_tasks(self._tasks, query)

    def filter_tasks(self, filters: TaskFilters) -> list[Task]:
        """Tasks matching filters, in manual order, without changing the active view."""
        return task_views.filter_tasks(self._tasks, filters)

    def stats(self) -> TaskStats:
        """Summary statistics over the live collection."""
        return task_views.compute_stats(self._tasks)

    def all_tags(self) -> list[str]:
        """Distinct tags in use."""
        return task_views.all_tags(self._tasks)

    def categories(self) -> list[str]:
        """Default categories plus every category in use."""
        return task_views.all_categories(self._tasks)

    def export(self) -> str:
        """Serialize the live collection as a JSON array."""
        return transfer.export_tasks(self._tasks)

    # ------------------------------------------------------------------
    # View state

    def set_filter(self, filters: TaskFilters | dict[str, Any]) -> None:
        """Replace the active filters. Task data is untouched.

        Raises:
            TaskValidationError: If the filters are malformed
        """
        if not isinstance(filters, TaskFilters):
            try:
                filters = TaskFilters.model_validate(filters)
            except ValidationError as e:
                raise TaskValidationError(f"Invalid filters: {e.errors()[0]['msg']}") from e
        self._filters = filters
        logger.debug("Filters updated", extra={"filters": filters.model_dump(mode="json")})

    def set_sort(self, key: SortKey | str, direction: SortDirection | str = SortDirection.ASC) -> None:
        """Replace the active sort. Task data is untouched.

        Raises:
            TaskValidationError: If key or direction is unknown
        """
        try:
            sort_key = SortKey(key)
            sort_direction = SortDirection(direction)
        except ValueError as e:
            raise TaskValidationError(str(e)) from e
        self._sort_key = sort_key
        self._sort_direction = sort_direction

    # ------------------------------------------------------------------
    # Selection

    def select(self, task_id: str) -> None:
        """Add a task to the selection.

        Raises:
            TaskNotFoundError: If no live task has this id
        """
        self._index(task_id)
        self._selected.setdefault(task_id, None)

    def deselect(self, task_id: str) -> None:
        """Remove a task from the selection if present."""
        self._selected.pop(task_id, None)

    def set_selection(self, task_ids: Iterable[str]) -> None:
        """Replace the selection.

        Raises:
            TaskNotFoundError: If any id is not live; the selection is then unchanged
        """
        ids = list(task_ids)
        for task_id in ids:
            self._index(task_id)
        self._selected = dict.fromkeys(ids)

    def clear_selection(self) -> None:
        """Empty the selection."""
        self._selected.clear()

    # ------------------------------------------------------------------
    # Mutators

    async def load(self) -> list[Task]:
        """Replace local state with the owner's stored tasks.

        Completed tasks are replayed as task.completed events in completion
        order so that analytics built from history match a live session. A
        completion this store has already published is never replayed again.

        Raises:
            PersistenceError: If the document store query fails
        """
        with span("task_store.load"):
            try:
                docs = await self._backend.query_by_owner(self._collection, self._owner_id)
            except Exception as e:
                error = PersistenceError(f"Failed to load tasks: {e}", operation="load")
                self._report(error)
                raise error from e

            loaded: list[Task] = []
            for doc in docs:
                try:
                    loaded.append(Task.model_validate(doc))
                except ValidationError as e:
                    logger.warning("Skipping malformed stored task %s: %s", doc.get("id"), e)

            loaded.sort(key=lambda task: task.order)
            self._tasks = loaded
            self._selected.clear()
            self._remote_ids = {task.id: task.id for task in loaded}
            changed = self._renumber()

            history = sorted(
                (task for task in loaded if task.completed and task.completed_at is not None),
                key=lambda task: task.completed_at or task.created_at,
            )
            replayed = 0
            for task in history:
                if self._mark_recorded(task):
                    self._bus.publish(TASK_COMPLETED, task=task, completed_at=task.completed_at, historical=True)
                    replayed += 1

            logger.info(
                "Loaded tasks",
                extra={"owner_id": self._owner_id, "count": len(loaded), "replayed": replayed},
            )

            await self._persist("load", self._order_writes(changed))
            return list(self._tasks)

    async def add(self, data: TaskCreate | dict[str, Any]) -> Task:
        """Validate, append and persist a new task.

        Raises:
            TaskValidationError: If the input is invalid (nothing is changed)
            PersistenceError: If the write fails (the task stays in the store)
        """
        with span("task_store.add"):
            task = task_lifecycle.create_task(
                data,
                order=self._next_order(),
                now=self._clock(),
                default_category=self._default_category,
            )
            self._tasks.append(task)
            logger.info("Added task", extra={"task_id": task.id, "order": task.order})

            await self._persist("add", [(task.id, partial(self._create_remote, task))])
            return task

    async def edit(self, task_id: str, patch: TaskUpdate | dict[str, Any]) -> Task:
        """Apply a partial field patch; concurrent edits are last-write-wins per field.

        Raises:
            TaskNotFoundError: If the task does not exist
            TaskValidationError: If the patch is invalid
            PersistenceError: If the write fails (the edit stays applied)
        """
        with span("task_store.edit"):
            index = self._index(task_id)
            update = task_lifecycle.parse_update(patch)
            changes = update.changes()
            updated = task_lifecycle.apply_update(self._tasks[index], update)
            self._tasks[index] = updated
            logger.info("Edited task", extra={"task_id": task_id, "fields": sorted(changes)})

            if not changes:
                return updated

            await self._persist("edit", [self._update_write(updated, _aliases(changes))])
            return updated

    async def delete(self, task_id: str) -> None:
        """Remove a task, drop it from the selection and renumber the rest.

        Raises:
            TaskNotFoundError: If the task does not exist
            PersistenceError: If a write fails (the deletion stays applied)
        """
        with span("task_store.delete"):
            index = self._index(task_id)
            removed = self._tasks.pop(index)
            self._selected.pop(task_id, None)
            changed = self._renumber()
            logger.info("Deleted task", extra={"task_id": task_id, "renumbered": len(changed)})

            writes = [(removed.id, partial(self._delete_remote, removed.id))]
            await self._persist("delete", writes + self._order_writes(changed))

    async def toggle_complete(self, task_id: str) -> Task:
        """Flip completion; a pending -> completed flip records a productivity sample.

        Raises:
            TaskNotFoundError: If the task does not exist
            PersistenceError: If the write fails (the toggle and the sample stay)
        """
        with span("task_store.toggle_complete"):
            index = self._index(task_id)
            updated = self._toggle_local(index)
            await self._persist("toggle_complete", [self._update_write(updated, ["completed", "completedAt"])])
            return updated

    async def complete(self, task_id: str) -> Task:
        """Mark a task completed; already-completed tasks are left as they are.

        Raises:
            TaskNotFoundError: If the task does not exist
            PersistenceError: If the write fails
        """
        task = self.get(task_id)
        if task.completed:
            return task
        return await self.toggle_complete(task_id)

    async def batch_complete(self, task_ids: Sequence[str]) -> list[Task]:
        """Complete every listed task that is pending, then clear the selection.

        Raises:
            TaskNotFoundError: If any id is unknown (nothing is changed)
            PersistenceError: If any write fails
        """
        with span("task_store.batch_complete"):
            indexes = [self._index(task_id) for task_id in task_ids]
            writes: list[_Write] = []
            completed: list[Task] = []
            for index in dict.fromkeys(indexes):
                if self._tasks[index].completed:
                    continue
                updated = self._toggle_local(index)
                completed.append(updated)
                writes.append(self._update_write(updated, ["completed", "completedAt"]))
            self._selected.clear()
            logger.info("Batch completed tasks", extra={"count": len(completed)})

            await self._persist("batch_complete", writes)
            return completed

    async def batch_delete(self, task_ids: Sequence[str]) -> None:
        """Delete every listed task, then clear the selection.

        Raises:
            TaskNotFoundError: If any id is unknown (nothing is changed)
            PersistenceError: If any write fails
        """
        with span("task_store.batch_delete"):
            for task_id in task_ids:
                self._index(task_id)
            doomed = set(task_ids)
            removed = [task for task in self._tasks if task.id in doomed]
            self._tasks = [task for task in self._tasks if task.id not in doomed]
            self._selected.clear()
            changed = self._renumber()
            logger.info("Batch deleted tasks", extra={"count": len(removed)})

            writes = [(task.id, partial(self._delete_remote, task.id)) for task in removed]
            await self._persist("batch_delete", writes + self._order_writes(changed))

    async def reorder(self, from_index: int, to_index: int) -> None:
        """Move the visible task at from_index to to_index.

        Orders are then re-derived as 0..n-1 over the whole live collection,
        keeping hidden tasks in place relative to each other, and every changed
        order is persisted.

        Raises:
            TaskValidationError: If either index is outside the visible list
            PersistenceError: If a write fails (the new order stays applied)
        """
        with span("task_store.reorder"):
            visible = self.visible_tasks()
            count = len(visible)
            for name, value in (("from_index", from_index), ("to_index", to_index)):
                if not 0 <= value < count:
                    raise TaskValidationError(f"{name} {value} out of range for {count} visible task(s)")

            if from_index == to_index:
                return

            moved = visible[from_index]
            anchor = visible[to_index]
            self._tasks.pop(self._index(moved.id))
            anchor_index = self._index(anchor.id)
            self._tasks.insert(anchor_index + 1 if from_index < to_index else anchor_index, moved)
            changed = self._renumber()
            logger.info(
                "Reordered tasks",
                extra={"task_id": moved.id, "from": from_index, "to": to_index, "renumbered": len(changed)},
            )

            await self._persist("reorder", self._order_writes(changed))

    async def import_tasks(self, payload: str | list[Any]) -> list[Task]:
        """Replace the live collection with a serialized one.

        Raises:
            TaskImportError: If the payload is malformed (nothing is changed)
            PersistenceError: If a write fails (the import stays applied)
        """
        with span("task_store.import_tasks"):
            imported = transfer.parse_import(payload, now=self._clock())
            previous = self._tasks
            self._tasks = imported
            live_ids = {task.id for task in imported}
            self._selected = {task_id: None for task_id in self._selected if task_id in live_ids}
            previous_remote = self._remote_ids
            self._remote_ids = {}
            logger.info("Imported tasks", extra={"count": len(imported), "replaced": len(previous)})

            writes: list[_Write] = [
                (task.id, partial(self._delete_remote, task.id, previous_remote.get(task.id, task.id)))
                for task in previous
            ]
            writes += [(task.id, partial(self._create_remote, task)) for task in imported]
            await self._persist("import", writes)
            return list(self._tasks)

    # ------------------------------------------------------------------
    # Internals

    def _index(self, task_id: str) -> int:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                return index
        raise TaskNotFoundError(task_id)

    def _next_order(self) -> int:
        return max((task.order for task in self._tasks), default=-1) + 1

    def _renumber(self) -> list[Task]:
        """Make orders match positions; return the tasks whose order changed."""
        changed: list[Task] = []
        for position, task in enumerate(self._tasks):
            if task.order != position:
                renumbered = task.model_copy(update={"order": position})
                self._tasks[position] = renumbered
                changed.append(renumbered)
        return changed

    def _toggle_local(self, index: int) -> Task:
        updated, completed_now = task_lifecycle.toggle_completion(self._tasks[index], self._clock())
        self._tasks[index] = updated
        logger.info("Toggled task", extra={"task_id": updated.id, "completed": updated.completed})
        if completed_now and self._mark_recorded(updated):
            self._bus.publish(TASK_COMPLETED, task=updated, completed_at=updated.completed_at)
        return updated

    def _mark_recorded(self, task: Task) -> bool:
        """Remember a completion; False if it already reached analytics."""
        key = (task.id, task.completed_at or task.created_at)
        if key in self._recorded_completions:
            return False
        self._recorded_completions.add(key)
        return True

    def _remote_id(self, task_id: str) -> str:
        return self._remote_ids.get(task_id, task_id)

    def _document(self, task: Task) -> dict[str, Any]:
        return {**task.to_document(), "ownerId": self._owner_id}

    def _update_write(self, task: Task, aliases: Sequence[str]) -> _Write:
        doc = task.to_document()
        patch = {alias: doc[alias] for alias in aliases}
        return task.id, partial(self._backend.update, self._collection, self._remote_id(task.id), patch)

    def _order_writes(self, tasks: Sequence[Task]) -> list[_Write]:
        return [self._update_write(task, ["order"]) for task in tasks]

    async def _create_remote(self, task: Task) -> None:
        remote_id = await self._backend.create(self._collection, self._document(task))
        self._remote_ids[task.id] = remote_id

    async def _delete_remote(self, task_id: str, remote_id: str | None = None) -> None:
        await self._backend.delete(self._collection, remote_id or self._remote_id(task_id))
        self._remote_ids.pop(task_id, None)

    async def _persist(self, operation: str, writes: Sequence[_Write]) -> None:
        """Run writes in order, attempting all of them; raise if any failed."""
        failures: list[tuple[str, Exception]] = []
        for task_id, write in writes:
            try:
                await write()
            except Exception as e:
                failures.append((task_id, e))

        if not failures:
            return

        first_id, first_error = failures[0]
        error = PersistenceError(
            f"Failed to persist {operation} for {len(failures)} task(s): {first_error}",
            operation=operation,
            task_ids=tuple(task_id for task_id, _ in failures),
        )
        self._report(error)
        raise error from first_error

    def _report(self, error: PersistenceError) -> None:
        logger.error(
            "persistence_failed",
            extra={"operation": error.operation, "task_ids": list(error.task_ids), "error": error.message},
        )
        if self._on_persistence_error is not None:
            self._on_persistence_error(error)
