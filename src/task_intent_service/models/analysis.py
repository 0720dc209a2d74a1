"""Models for user context, extraction output and confidence analysis."""

from pydantic import BaseModel, Field, field_validator

from .task import Task, TaskDraft


class UserContext(BaseModel):
    """Snapshot of a user's recent task patterns, rebuilt on every request."""

    recent_tasks: list[Task] = Field(default_factory=list)
    common_categories: list[str] = Field(default_factory=list)
    most_used_priority: str = "Medium"
    average_duration: str = "1h"
    total_tasks: int = 0


class FieldDetail(BaseModel):
    """Confidence and reason an extraction capability attached to one field."""

    confidence: float | None = None
    reason: str | None = None


class ExtractionDetails(BaseModel):
    """Per-field details; every entry is optional."""

    category: FieldDetail | None = None
    priority: FieldDetail | None = None
    due_date: FieldDetail | None = None
    duration: FieldDetail | None = None


class RawExtraction(BaseModel):
    """Whatever an extraction capability managed to pull out of the text."""

    summary: str | None = None
    description: str | None = None
    due_date: str | None = None
    priority: str | None = None
    category: str | None = None
    estimated_duration: str | None = None
    related_keywords: list[str] = Field(default_factory=list)
    confidence: float | None = None
    details: ExtractionDetails = Field(default_factory=ExtractionDetails)

    @field_validator("related_keywords", mode="before")
    @classmethod
    def _null_keywords(cls, v: list[str] | None) -> list[str]:
        return v or []

    @field_validator("details", mode="before")
    @classmethod
    def _null_details(cls, v: dict | ExtractionDetails | None) -> dict | ExtractionDetails:
        return v if v is not None else ExtractionDetails()


class ExtractionResult(BaseModel):
    """Task draft with the capability's optional annotations carried along."""

    task: TaskDraft
    confidence: float | None = None
    related_keywords: list[str] = Field(default_factory=list)
    details: ExtractionDetails = Field(default_factory=ExtractionDetails)


class FieldSuggestion(BaseModel):
    """A decided field value with its confidence and a human-readable reason."""

    value: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    reason: str


class AnalysisSuggestions(BaseModel):
    """Suggestions for the four tracked fields."""

    category: FieldSuggestion
    priority: FieldSuggestion
    due_date: FieldSuggestion
    duration: FieldSuggestion


class UserPatterns(BaseModel):
    """Subset of the user context shown alongside an analysis."""

    common_categories: list[str] = Field(default_factory=list)
    average_duration: str = "1h"
    priority_trend: str = "Medium"


class ContextUsed(BaseModel):
    """Context that informed an analysis."""

    similar_tasks: list[Task] = Field(default_factory=list)
    user_patterns: UserPatterns = Field(default_factory=UserPatterns)


class EnhancedAnalysis(BaseModel):
    """Confidence-scored breakdown of a task-creation decision."""

    confidence: float = Field(..., ge=0.0, le=1.0)
    related_keywords: list[str] = Field(default_factory=list)
    suggestions: AnalysisSuggestions
    context_used: ContextUsed


class ClassificationResult(BaseModel):
    """Labels ranked by a zero-shot classifier, best first."""

    labels: list[str] = Field(..., min_length=1)
    scores: list[float] = Field(default_factory=list)
