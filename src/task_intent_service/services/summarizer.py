"""AI summary of a user's priority tasks."""

import logging
from datetime import datetime

from ..models.summary import TaskSummaryResponse
from ..models.task import Task
from .bedrock import BedrockClient

logger = logging.getLogger(__name__)


def _format_due(due_date: str | None) -> str:
    if not due_date:
        return "No date"
    try:
        return datetime.fromisoformat(due_date.replace("Z", "+00:00")).strftime("%Y-%m-%d")
    except ValueError:
        return due_date


def _build_prompt(tasks: list[Task]) -> str:
    lines = [f"Summarize the following {len(tasks)} priority tasks concisely:", ""]
    for i, task in enumerate(tasks, start=1):
        lines.append(f"{i}. {task.summary}")
        lines.append(f"   - Due: {_format_due(task.due_date)}")
        lines.append(f"   - Priority: {task.priority.value}")
        lines.append(f"   - Category: {task.category or 'General'}")
    lines.extend([
        "",
        "Format your response as:",
        "1. A brief overview paragraph (2-3 sentences)",
        "2. Key action items in order of priority",
        "3. Any notable deadlines",
        "",
        "Keep your response under 200 words and focus on actionable information.",
    ])
    return "\n".join(lines)


def fallback_summary(tasks: list[Task]) -> str:
    """Deterministic summary used when the model is unavailable."""
    top = ", ".join(t.summary for t in tasks[:3])
    summary = f"You have {len(tasks)} priority tasks. The highest priority items are: {top}."

    dated = [t for t in tasks if t.due_date]
    if dated:
        earliest = min(dated, key=lambda t: t.due_date)
        summary += f" The earliest deadline is {_format_due(earliest.due_date)}."
    return summary


async def summarize_tasks(tasks: list[Task], client: BedrockClient | None = None) -> TaskSummaryResponse:
    """
    Summarize tasks with Claude, falling back to a plain summary on failure.

    Args:
        tasks: Tasks to summarize
        client: Completion client (defaults to Bedrock)

    Returns:
        TaskSummaryResponse, with `fallback` set when the model was not used
    """
    if not tasks:
        return TaskSummaryResponse(summary="No priority tasks found.", task_count=0)

    client = client or BedrockClient()
    logger.info(f"Processing {len(tasks)} tasks for summarization")

    try:
        text = await client.complete(
            system="You summarize task lists for a busy person.",
            user=_build_prompt(tasks),
            max_tokens=400,
            temperature=0.7,
        )
        if not text.strip():
            raise ValueError("Empty summary from model")
        return TaskSummaryResponse(
            summary=text.strip(),
            model=client.model_id,
            task_count=len(tasks),
        )
    except Exception as e:
        logger.error(f"Task summarization failed, using fallback: {e}")
        return TaskSummaryResponse(
            summary=fallback_summary(tasks),
            model="fallback",
            task_count=len(tasks),
            fallback=True,
        )
