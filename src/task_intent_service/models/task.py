"""Task-related Pydantic models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class TaskPriority(str, Enum):
    """Task priority levels."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class TaskStatus(str, Enum):
    """Task workflow status."""

    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


class Task(BaseModel):
    """A task row as stored in the hosted database."""

    id: str | None = None
    user_id: str | None = None
    summary: str
    description: str | None = None
    due_date: str | None = Field(None, description="ISO-8601 date-time")
    estimated_duration: str | None = Field(None, description="Free-form duration like '2h' or '1d'")
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    category: str | None = None
    external_links: list[str] = Field(default_factory=list)
    folder_id: str | None = None
    created_at: str | None = None

    @field_validator("external_links", mode="before")
    @classmethod
    def _null_links(cls, v: list[str] | None) -> list[str]:
        return v or []


class TaskDraft(BaseModel):
    """Task fields decided by the creation branch, ready to be persisted."""

    summary: str = Field(..., min_length=1)
    description: str | None = None
    due_date: str = Field(..., description="ISO-8601 date-time")
    estimated_duration: str
    priority: TaskPriority
    status: TaskStatus = TaskStatus.TODO
    category: str
    folder_id: str | None = None

    @field_validator("due_date")
    @classmethod
    def _parseable_due_date(cls, v: str) -> str:
        datetime.fromisoformat(v.replace("Z", "+00:00"))
        return v

    def to_row(self, user_id: str) -> dict[str, str | None]:
        """Map the draft onto the task table's columns."""
        return {
            "user_id": user_id,
            "summary": self.summary,
            "description": self.description,
            "due_date": self.due_date,
            "estimated_duration": self.estimated_duration,
            "priority": self.priority.value,
            "status": self.status.value,
            "category": self.category,
            "folder_id": self.folder_id,
        }
