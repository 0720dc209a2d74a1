"""Models for the task analytics summary."""

from pydantic import BaseModel, Field

from .task import Task


class TaskSummaryRequest(BaseModel):
    """Tasks to summarize, usually the user's priority tasks."""

    tasks: list[Task] = Field(default_factory=list)


class TaskSummaryResponse(BaseModel):
    """Generated or fallback summary."""

    summary: str
    model: str | None = Field(None, description="Model that produced the summary, 'fallback' if none")
    task_count: int = 0
    fallback: bool = False
