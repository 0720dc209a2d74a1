"""Frequency statistics over a user's task history."""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from ..models.task import Task

DEFAULT_PRIORITY = "Medium"
TOP_CATEGORY_COUNT = 5


@dataclass(frozen=True)
class TaskPatterns:
    """Ranked category, priority and duration patterns."""

    common_categories: list[str] = field(default_factory=list)
    most_used_priority: str = DEFAULT_PRIORITY
    average_duration: str = "1h"


def rank_by_frequency(values: Iterable[str]) -> list[str]:
    """Distinct values by descending count, ties in first-seen order."""
    # Counter keeps insertion order and sorted() is stable.
    counts = Counter(values)
    return sorted(counts, key=lambda value: counts[value], reverse=True)


def estimate_duration(durations: list[str]) -> str:
    """Coarse duration bucket: "2h" once any duration is known, else "1h"."""
    return "2h" if durations else "1h"


def analyze_frequencies(tasks: list[Task]) -> TaskPatterns:
    """Compute category, priority and duration patterns for an ordered task list."""
    categories = [t.category for t in tasks if t.category]
    priorities = [t.priority.value for t in tasks]
    durations = [t.estimated_duration for t in tasks if t.estimated_duration]

    ranked_priorities = rank_by_frequency(priorities)

    return TaskPatterns(
        common_categories=rank_by_frequency(categories)[:TOP_CATEGORY_COUNT],
        most_used_priority=ranked_priorities[0] if ranked_priorities else DEFAULT_PRIORITY,
        average_duration=estimate_duration(durations),
    )
