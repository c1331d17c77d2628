"""Derivation of productivity patterns from completion samples.

Every function here is pure and deterministic: the same samples always give the
same result, with ties broken by fixed enumeration orders rather than by
dictionary or sample order.

Key Concepts:
- Most productive time of day: the most frequent completion bucket
  (ties: Morning, Afternoon, Evening, Night).
- Most productive day: the most frequent weekday (ties: calendar order from Sunday).
- Best categories: categories ranked by ascending mean completion duration;
  a lower mean means the category gets done faster (ties: first seen).
- Recommended task order: "<bucket>-<category>" keys for the single most
  productive bucket, one per category in best-category order.
"""

import logging
from collections import Counter
from collections.abc import Sequence

from taskpulse.domain.productivity import (
    WEEKDAY_NAMES,
    CompletionBreakdown,
    ProductivityPattern,
    ProductivitySample,
    TimeOfDay,
)


logger = logging.getLogger(__name__)


def _mode(counts: Counter[str], candidates: Sequence[str]) -> str:
    """Most frequent candidate; the earliest candidate wins ties."""
    return max(candidates, key=lambda candidate: (counts[candidate], -candidates.index(candidate)))


def rank_categories(samples: Sequence[ProductivitySample]) -> list[str]:
    """Categories sorted by ascending mean completion duration, ties by first appearance."""
    durations: dict[str, list[int]] = {}
    for sample in samples:
        durations.setdefault(sample.category, []).append(sample.completion_duration_minutes)

    means = {category: sum(values) / len(values) for category, values in durations.items()}
    return sorted(means, key=lambda category: means[category])


def recommended_order(time_of_day: TimeOfDay, best_categories: Sequence[str]) -> list[str]:
    """Keys pairing the most productive bucket with each category in rank order."""
    return [f"{time_of_day}-{category}" for category in best_categories]


def analyze_samples(samples: Sequence[ProductivitySample]) -> ProductivityPattern:
    """Compute the productivity pattern from the full sample list.

    Args:
        samples: Every recorded sample

    Returns:
        The derived ProductivityPattern

    Raises:
        ValueError: If samples is empty
    """
    if not samples:
        raise ValueError("Cannot analyze productivity without samples")

    bucket_counts = Counter(str(sample.time_of_day) for sample in samples)
    time_of_day = TimeOfDay(_mode(bucket_counts, [str(bucket) for bucket in TimeOfDay]))

    day_counts = Counter(sample.day_of_week for sample in samples)
    day_candidates = list(WEEKDAY_NAMES) + sorted(set(day_counts) - set(WEEKDAY_NAMES))
    day_of_week = _mode(day_counts, day_candidates)

    best_categories = rank_categories(samples)
    average = sum(sample.completion_duration_minutes for sample in samples) / len(samples)

    pattern = ProductivityPattern(
        most_productive_time_of_day=time_of_day,
        most_productive_day_of_week=day_of_week,
        best_categories=best_categories,
        average_task_duration=average,
        recommended_task_order=recommended_order(time_of_day, best_categories),
    )

    logger.debug(
        "Analyzed %d samples: %s / %s, %d categories",
        len(samples),
        time_of_day,
        day_of_week,
        len(best_categories),
    )
    return pattern


def completion_breakdown(samples: Sequence[ProductivitySample]) -> CompletionBreakdown:
    """Distribution of completions by hour and weekday.

    Rates are fractions of all samples. The most productive hour defaults to 0
    and the day to Monday when there are no samples; hour ties go to the
    earliest hour. The average ignores zero-length completions.
    """
    total = len(samples)
    hour_counts = Counter(sample.hour for sample in samples)
    day_counts = Counter(sample.day_of_week for sample in samples)

    rate_by_hour = {hour: count / total for hour, count in sorted(hour_counts.items())}
    rate_by_day = {day: day_counts[day] / total for day in WEEKDAY_NAMES if day in day_counts}

    most_productive_hour = min(hour_counts, key=lambda hour: (-hour_counts[hour], hour)) if hour_counts else 0
    most_productive_day = _mode(day_counts, list(WEEKDAY_NAMES)) if day_counts else "Monday"

    positive = [sample.completion_duration_minutes for sample in samples if sample.completion_duration_minutes > 0]
    average = sum(positive) / len(positive) if positive else 0.0

    return CompletionBreakdown(
        most_productive_hour=most_productive_hour,
        most_productive_day=most_productive_day,
        completion_rate_by_hour=rate_by_hour,
        completion_rate_by_day=rate_by_day,
        average_completion_minutes=average,
    )
