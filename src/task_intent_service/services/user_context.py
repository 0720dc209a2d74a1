"""Builds the per-request user context from recent task history."""

import logging

from ..models.analysis import UserContext
from .frequency import analyze_frequencies
from .task_store import TaskStore

logger = logging.getLogger(__name__)

RECENT_TASK_LIMIT = 20


async def gather_user_context(
    store: TaskStore,
    user_id: str,
    limit: int = RECENT_TASK_LIMIT,
) -> UserContext:
    """
    Read the user's most recent tasks and summarize their patterns.

    Storage failures never abort the pipeline: they are logged and an
    empty context is returned instead.

    Args:
        store: Task store to read from
        user_id: Owning user whose tasks are read
        limit: Maximum number of recent tasks to consider

    Returns:
        UserContext snapshot for this request
    """
    try:
        recent_tasks = await store.query(user_id, order="created_at.desc", limit=limit)
    except Exception as e:
        logger.warning(f"Error gathering user context for {user_id}: {e}")
        return UserContext()

    recent_tasks = recent_tasks[:limit]
    patterns = analyze_frequencies(recent_tasks)

    return UserContext(
        recent_tasks=recent_tasks,
        common_categories=patterns.common_categories,
        most_used_priority=patterns.most_used_priority,
        average_duration=patterns.average_duration,
        total_tasks=len(recent_tasks),
    )
