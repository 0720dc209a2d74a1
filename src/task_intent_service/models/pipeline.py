"""Pipeline request, outcome and processing-state models."""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from .analysis import EnhancedAnalysis, UserContext
from .task import Task, TaskDraft


class ProcessingStep(str, Enum):
    """Steps of a pipeline run."""

    IDLE = "idle"
    GATHERING_CONTEXT = "gathering-context"
    ANALYZING = "analyzing"
    CREATING = "creating"
    COMPLETE = "complete"


class ProcessingState(BaseModel):
    """State of the single in-flight submission of a caller session."""

    step: ProcessingStep = ProcessingStep.IDLE
    error: str | None = None
    last_text: str | None = None
    retry_count: int = Field(0, ge=0)
    retryable: bool = True
    max_retries: int = 3

    @property
    def can_retry(self) -> bool:
        """Whether the last failed submission may be resubmitted."""
        return (
            self.error is not None
            and self.last_text is not None
            and self.retryable
            and self.retry_count < self.max_retries
        )


class SearchOutcome(BaseModel):
    """Text was understood as a search; matching tasks are returned."""

    type: Literal["search"] = "search"
    results: list[Task] = Field(default_factory=list)


class CreateOutcome(BaseModel):
    """Text was understood as a new task."""

    type: Literal["create"] = "create"
    task: TaskDraft
    analysis: EnhancedAnalysis | None = None
    task_id: str | None = Field(None, description="Id of the stored row once persisted")


PipelineOutcome = Annotated[SearchOutcome | CreateOutcome, Field(discriminator="type")]


class TaskAnalyzeRequest(BaseModel):
    """Request to classify and analyze text without persisting anything."""

    text: str = Field(..., min_length=1, max_length=2000)
    current_time: str | None = Field(None, description="ISO-8601 reference time, defaults to now")
    user_context: UserContext | None = None


class TaskProcessRequest(BaseModel):
    """Request to run the full pipeline for the authenticated user."""

    text: str = Field(..., max_length=2000, description="e.g. 'Finish the quarterly report by Friday, urgent'")


class PipelineErrorDetail(BaseModel):
    """Error body returned when a pipeline attempt fails."""

    message: str
    error: str
    retry_count: int
    can_retry: bool


class PipelineStateResponse(BaseModel):
    """Current processing state of the caller's session."""

    step: ProcessingStep
    error: str | None = None
    last_text: str | None = None
    retry_count: int = 0
    can_retry: bool = False
    analysis: EnhancedAnalysis | None = None
