"""Tests for task history frequency analysis."""

from conftest import make_task

from src.task_intent_service.services.frequency import (
    analyze_frequencies,
    estimate_duration,
    rank_by_frequency,
)


def test_rank_by_frequency_orders_by_count() -> None:
    """Test that more frequent values rank first."""
    assert rank_by_frequency(["a", "b", "b", "c", "b", "c"]) == ["b", "c", "a"]


def test_rank_by_frequency_breaks_ties_by_first_seen() -> None:
    """Test that tied values keep the order they were first seen in."""
    assert rank_by_frequency(["x", "y", "z", "y", "x", "z"]) == ["x", "y", "z"]


def test_common_categories_follow_counts() -> None:
    """Test that 12 Work, 5 Home and 3 Other tasks rank in that order."""
    tasks = (
        [make_task(category="Home") for _ in range(5)]
        + [make_task(category="Work") for _ in range(12)]
        + [make_task(category="Other") for _ in range(3)]
    )

    patterns = analyze_frequencies(tasks)

    assert patterns.common_categories[:3] == ["Work", "Home", "Other"]


def test_common_categories_capped_at_five() -> None:
    """Test that only the top five categories are kept."""
    tasks = [make_task(category=c) for c in ["a", "b", "c", "d", "e", "f", "f"]]

    patterns = analyze_frequencies(tasks)

    assert patterns.common_categories == ["f", "a", "b", "c", "d"]


def test_blank_categories_are_ignored() -> None:
    """Test that tasks without a category do not count."""
    tasks = [make_task(category=None), make_task(category=""), make_task(category="Work")]

    assert analyze_frequencies(tasks).common_categories == ["Work"]


def test_most_used_priority() -> None:
    """Test that the most frequent priority wins."""
    tasks = [make_task(priority="High"), make_task(priority="Low"), make_task(priority="High")]

    assert analyze_frequencies(tasks).most_used_priority == "High"


def test_empty_history_defaults() -> None:
    """Test that an empty history yields the documented defaults."""
    patterns = analyze_frequencies([])

    assert patterns.common_categories == []
    assert patterns.most_used_priority == "Medium"
    assert patterns.average_duration == "1h"


def test_estimate_duration_buckets() -> None:
    """Test the two-bucket duration estimate."""
    assert estimate_duration([]) == "1h"
    assert estimate_duration(["30m"]) == "2h"
    assert estimate_duration(["5d", "1h"]) == "2h"


def test_average_duration_uses_known_durations() -> None:
    """Test that any recorded duration moves the estimate to 2h."""
    tasks = [make_task(duration=None), make_task(duration="3h")]

    assert analyze_frequencies(tasks).average_duration == "2h"
