"""Task ordering and advice derived from a productivity pattern."""

from collections.abc import Sequence

from taskpulse.core.config import Constants
from taskpulse.domain.productivity import ProductivityPattern, TimeOfDay
from taskpulse.domain.task import Task


_TIME_OF_DAY_ADVICE: dict[TimeOfDay, str] = {
    TimeOfDay.MORNING: "You're most productive in the early hours. Try to get important tasks done in the morning.",
    TimeOfDay.AFTERNOON: (
        "You tend to be most productive during work hours. Try to schedule important tasks during this time."
    ),
    TimeOfDay.EVENING: (
        "You're most productive in the evening. Consider adjusting your schedule to take advantage of this time."
    ),
    TimeOfDay.NIGHT: (
        "You get the most done late at night. Protect that time for focused work, but make sure you still rest."
    ),
}

_DAY_ADVICE: dict[str, str] = {
    "Monday": "You're most productive on Mondays. Use this day to tackle your most challenging tasks.",
    "Friday": (
        "You tend to be most productive on Fridays. Consider saving important tasks for the end of the week."
    ),
}


def _category_rank(task: Task, keys: Sequence[str]) -> int | None:
    for index, key in enumerate(keys):
        if task.category in key:
            return index
    return None


def optimal_order(tasks: Sequence[Task], pattern: ProductivityPattern | None) -> list[Task]:
    """Order tasks by where their category first appears in the recommended order.

    Matching is by substring containment of the category in each key. Tasks
    with no matching key keep their relative order after all matched tasks.
    With no pattern the input order is returned unchanged.
    """
    if pattern is None:
        return list(tasks)

    keys = pattern.recommended_task_order
    ranks = [_category_rank(task, keys) for task in tasks]
    unmatched = len(keys)
    indexed = sorted(range(len(tasks)), key=lambda i: unmatched if ranks[i] is None else ranks[i])
    return [tasks[i] for i in indexed]


def recommendations(pattern: ProductivityPattern | None) -> list[str]:
    """Advisory sentences for a pattern.

    Always includes a time-of-day sentence and a fastest-category sentence;
    adds a weekday sentence for Monday or Friday and a duration sentence when
    the average is above a day or below an hour. Empty without a pattern.
    """
    if pattern is None:
        return []

    advice = [_TIME_OF_DAY_ADVICE[pattern.most_productive_time_of_day]]

    if pattern.best_categories:
        fastest = pattern.best_categories[0]
        advice.append(
            f"You finish {fastest} tasks fastest. "
            f"Schedule them for the {pattern.most_productive_time_of_day.lower()} to build momentum."
        )

    day_advice = _DAY_ADVICE.get(pattern.most_productive_day_of_week)
    if day_advice:
        advice.append(day_advice)

    if pattern.average_task_duration > Constants.LONG_TASK_THRESHOLD_MINUTES:
        advice.append(
            "Tasks take you more than a day to complete on average. "
            "Consider breaking them down into smaller, more manageable pieces."
        )
    elif pattern.average_task_duration < Constants.QUICK_TASK_THRESHOLD_MINUTES:
        advice.append("You complete tasks quickly! Make sure you're not rushing through important tasks.")

    return advice
