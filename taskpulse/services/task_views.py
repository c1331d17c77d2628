"""Pure filtering, sorting and summary functions over task lists."""

from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from typing import Any

from taskpulse.core.config import Constants
from taskpulse.domain.task import PRIORITY_RANK, Task
from taskpulse.domain.view import SortDirection, SortKey, StatusFilter, TaskFilters, TaskStats


def matches_search(task: Task, query: str) -> bool:
    """Case-insensitive substring match over title, description, category and tags."""
    needle = query.strip().lower()
    if not needle:
        return True
    return (
        needle in task.title.lower()
        or needle in task.description.lower()
        or needle in task.category.lower()
        or any(needle in tag.lower() for tag in task.tags)
    )


def matches_filters(task: Task, filters: TaskFilters) -> bool:
    """Return True if the task passes every active filter."""
    if not matches_search(task, filters.search):
        return False

    if filters.priorities is not None and task.priority not in filters.priorities:
        return False

    if filters.categories is not None and task.category not in filters.categories:
        return False

    if filters.status == StatusFilter.COMPLETED and not task.completed:
        return False
    if filters.status == StatusFilter.PENDING and task.completed:
        return False

    if filters.due_from is not None or filters.due_until is not None:
        if task.due_date is None:
            return False
        if filters.due_from is not None and task.due_date < filters.due_from:
            return False
        if filters.due_until is not None and task.due_date > filters.due_until:
            return False

    if filters.tags:
        return all(tag in task.tags for tag in filters.tags)

    return True


def filter_tasks(tasks: Iterable[Task], filters: TaskFilters) -> list[Task]:
    """Apply filters, preserving input order."""
    return [task for task in tasks if matches_filters(task, filters)]


def search_tasks(tasks: Iterable[Task], query: str) -> list[Task]:
    """Return tasks matching a free-text query, preserving input order."""
    return [task for task in tasks if matches_search(task, query)]


_SORT_KEYS: dict[SortKey, Callable[[Task], Any]] = {
    SortKey.MANUAL: lambda task: task.order,
    SortKey.DATE: lambda task: task.created_at,
    SortKey.PRIORITY: lambda task: PRIORITY_RANK[task.priority],
    SortKey.CATEGORY: lambda task: task.category.casefold(),
    SortKey.TITLE: lambda task: task.title.casefold(),
}


def sort_tasks(tasks: Iterable[Task], key: SortKey, direction: SortDirection) -> list[Task]:
    """Sort by key and direction; ties always fall back to ascending manual order."""
    by_order = sorted(tasks, key=lambda task: task.order)
    reverse = direction == SortDirection.DESC
    if key == SortKey.DUE_DATE:
        dated = [task for task in by_order if task.due_date is not None]
        undated = [task for task in by_order if task.due_date is None]
        return sorted(dated, key=lambda task: task.due_date or datetime.min, reverse=reverse) + undated
    # sorted() is stable for reverse=True too, so equal keys keep ascending order
    return sorted(by_order, key=_SORT_KEYS[key], reverse=reverse)


def all_tags(tasks: Iterable[Task]) -> list[str]:
    """Distinct tags across tasks, first-seen order."""
    seen: dict[str, None] = {}
    for task in tasks:
        for tag in task.tags:
            seen.setdefault(tag, None)
    return list(seen)


def all_categories(tasks: Iterable[Task]) -> list[str]:
    """Default categories followed by any other category in use."""
    seen: dict[str, None] = dict.fromkeys(Constants.DEFAULT_CATEGORIES)
    for task in tasks:
        seen.setdefault(task.category, None)
    return list(seen)


def compute_stats(tasks: Sequence[Task]) -> TaskStats:
    """Summarize a task collection.

    Args:
        tasks: Live tasks

    Returns:
        TaskStats with totals, distributions and the nearest pending deadlines
    """
    total = len(tasks)
    completed = sum(1 for task in tasks if task.completed)

    priority_distribution: dict[str, int] = {}
    category_distribution: dict[str, int] = {}
    for task in tasks:
        priority_distribution[task.priority.value] = priority_distribution.get(task.priority.value, 0) + 1
        category_distribution[task.category] = category_distribution.get(task.category, 0) + 1

    upcoming = sorted(
        (task for task in tasks if task.due_date is not None and not task.completed),
        key=lambda task: task.due_date or datetime.min,
    )[: Constants.UPCOMING_DEADLINES_LIMIT]

    return TaskStats(
        total_tasks=total,
        completed_tasks=completed,
        completion_rate=(completed / total * 100) if total > 0 else 0.0,
        priority_distribution=priority_distribution,
        category_distribution=category_distribution,
        average_tasks_per_day=total / Constants.STATS_AVERAGE_WINDOW_DAYS,
        upcoming_deadlines=upcoming,
    )
