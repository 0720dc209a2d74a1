"""Combines extraction output and user context into a scored analysis."""

from ..models.analysis import (
    AnalysisSuggestions,
    ContextUsed,
    EnhancedAnalysis,
    ExtractionResult,
    FieldDetail,
    FieldSuggestion,
    UserContext,
    UserPatterns,
)

DEFAULT_OVERALL_CONFIDENCE = 0.8
SIMILAR_TASK_COUNT = 3

# field -> (default confidence, default reason)
FIELD_DEFAULTS = {
    "category": (0.7, "Based on task content"),
    "priority": (0.7, "Based on urgency indicators"),
    "due_date": (0.6, "Based on time references"),
    "duration": (0.6, "Based on task complexity"),
}


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


def _suggestion(field: str, value: str, detail: FieldDetail | None) -> FieldSuggestion:
    default_confidence, default_reason = FIELD_DEFAULTS[field]
    confidence = detail.confidence if detail and detail.confidence is not None else default_confidence
    reason = detail.reason if detail and detail.reason else default_reason
    return FieldSuggestion(value=value, confidence=_clamp(confidence), reason=reason)


def build_enhanced_analysis(extraction: ExtractionResult, user_context: UserContext) -> EnhancedAnalysis:
    """
    Build the analysis shown next to a created task.

    Suggestion values are always the draft's own field values, so the
    analysis describes exactly what gets written.
    """
    task = extraction.task
    details = extraction.details
    confidence = extraction.confidence if extraction.confidence is not None else DEFAULT_OVERALL_CONFIDENCE

    return EnhancedAnalysis(
        confidence=_clamp(confidence),
        related_keywords=list(dict.fromkeys(extraction.related_keywords)),
        suggestions=AnalysisSuggestions(
            category=_suggestion("category", task.category, details.category),
            priority=_suggestion("priority", task.priority.value, details.priority),
            due_date=_suggestion("due_date", task.due_date, details.due_date),
            duration=_suggestion("duration", task.estimated_duration, details.duration),
        ),
        context_used=ContextUsed(
            similar_tasks=user_context.recent_tasks[:SIMILAR_TASK_COUNT],
            user_patterns=UserPatterns(
                common_categories=list(user_context.common_categories),
                average_duration=user_context.average_duration,
                priority_trend=user_context.most_used_priority,
            ),
        ),
    )
