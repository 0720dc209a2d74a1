"""Structured task field extraction from natural language."""

import json
import logging
import math
import re
from datetime import datetime, timedelta
from typing import Protocol

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from ..models.analysis import (
    ExtractionDetails,
    ExtractionResult,
    FieldDetail,
    RawExtraction,
    UserContext,
)
from ..models.task import TaskDraft, TaskPriority
from .bedrock import BedrockClient, extract_json
from .errors import ExtractionError, UnknownResponseError

logger = logging.getLogger(__name__)

URGENCY_MARKERS = ("urgent", "high priority")
DEFAULT_CATEGORY = "General"
DEFAULT_DURATION = "1h"
DEFAULT_DUE_DAYS = 7
MAX_KEYWORDS = 5


class ExtractionCapability(Protocol):
    """External NER/LLM capability that seeds task fields."""

    async def extract(
        self,
        text: str,
        current_time: datetime,
        user_context: UserContext | None = None,
    ) -> RawExtraction: ...


def _describe_patterns(user_context: UserContext | None) -> str:
    """Render the user's patterns for the prompt."""
    if user_context is None or user_context.total_tasks == 0:
        return "The user has no task history yet."
    categories = ", ".join(user_context.common_categories) or "none"
    return (
        f"User patterns from their last {user_context.total_tasks} tasks: "
        f"common categories: {categories}; typical priority: {user_context.most_used_priority}; "
        f"typical duration: {user_context.average_duration}."
    )


class BedrockExtractor:
    """Extraction capability backed by Claude on Bedrock."""

    def __init__(self, client: BedrockClient | None = None):
        self.client = client or BedrockClient()

    def _build_prompt(self, text: str, current_time: datetime, user_context: UserContext | None) -> str:
        tomorrow = (current_time + timedelta(days=1)).strftime("%Y-%m-%d")
        return f"""Current time is {current_time.isoformat()} ({current_time.strftime('%A')}).
{_describe_patterns(user_context)}

Extract task information from this input. Return JSON only, no explanation.

Input: "{text}"

Extract these fields:
- summary: Short imperative task title (null if unclear)
- description: The input cleaned up as a complete sentence
- due_date: ISO-8601 date-time (null if none). Convert relative dates:
  - "tomorrow" = {tomorrow}
  - "next week" = 7 days from now
  - "Friday" = the coming Friday
- priority: One of High, Medium, Low (null if not indicated). Prefer the user's typical priority when unsure.
- category: Short category name. Prefer one of the user's common categories when it fits (null if unsure).
- estimated_duration: Like "30m", "2h" or "1d" (null if not indicated)
- related_keywords: Up to 5 key phrases
- confidence: Your overall confidence (0.0-1.0)
- details: For category, priority, due_date and duration an object with confidence (0.0-1.0) and a short reason

Return only valid JSON matching this schema:
{{
  "summary": "string or null",
  "description": "string",
  "due_date": "ISO-8601 or null",
  "priority": "High|Medium|Low or null",
  "category": "string or null",
  "estimated_duration": "string or null",
  "related_keywords": ["string"],
  "confidence": 0.0-1.0,
  "details": {{
    "category": {{"confidence": 0.0-1.0, "reason": "string"}},
    "priority": {{"confidence": 0.0-1.0, "reason": "string"}},
    "due_date": {{"confidence": 0.0-1.0, "reason": "string"}},
    "duration": {{"confidence": 0.0-1.0, "reason": "string"}}
  }}
}}"""

    async def extract(
        self,
        text: str,
        current_time: datetime,
        user_context: UserContext | None = None,
    ) -> RawExtraction:
        """
        Ask Claude for task fields.

        Raises:
            ExtractionError: Bedrock call failed
            UnknownResponseError: The reply was not a JSON object of the expected shape
        """
        prompt = self._build_prompt(text, current_time, user_context)

        try:
            content = await self.client.complete(
                system="You extract structured task fields for a personal task manager.",
                user=prompt,
                max_tokens=600,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Bedrock API error: {e}")
            raise ExtractionError(f"Bedrock API error: {e}") from e

        try:
            data = extract_json(content)
        except (json.JSONDecodeError, IndexError) as e:
            logger.error(f"Failed to parse AI response: {e}")
            raise UnknownResponseError() from e

        if not isinstance(data, dict):
            raise UnknownResponseError()

        try:
            return RawExtraction.model_validate(data)
        except ValidationError as e:
            logger.error(f"AI response has unexpected fields: {e}")
            raise UnknownResponseError() from e


# Keyword heuristics for offline extraction
PRIORITY_PATTERNS = {
    TaskPriority.HIGH: re.compile(
        r"\b(urgent|asap|important|critical|high priority|crucial|emergency|immediate|vital)\b", re.I
    ),
    TaskPriority.LOW: re.compile(
        r"\b(low priority|whenever possible|not urgent|can wait|optional|flexible|minor)\b", re.I
    ),
}

CATEGORY_PATTERNS = {
    "Meeting": re.compile(r"\b(meet|meeting|conference|call|sync|discussion|presentation)\b", re.I),
    "Development": re.compile(r"\b(code|develop|programming|debug|feature|implement|build|test)\b", re.I),
    "Planning": re.compile(r"\b(plan|strategy|roadmap|outline|organize|coordinate|schedule)\b", re.I),
    "Research": re.compile(r"\b(research|investigate|study|analyze|explore|review|evaluate)\b", re.I),
    "Documentation": re.compile(r"\b(document|write|draft|report|update docs|create guide)\b", re.I),
    "Design": re.compile(r"\b(design|mockup|prototype|wireframe|ui|ux|layout)\b", re.I),
    "Bug Fix": re.compile(r"\b(bug|fix|issue|problem|error|defect|patch)\b", re.I),
}

# (pattern, days from now, confidence), checked in order
TIMEFRAME_PATTERNS = [
    (re.compile(r"\b(today|now|asap|immediately|urgent)\b", re.I), 0, 0.9),
    (re.compile(r"\b(tomorrow|next day|this week)\b", re.I), 2, 0.8),
    (re.compile(r"\b(next week|coming weeks|this month)\b", re.I), 7, 0.7),
    (re.compile(r"\b(next month|coming months|long term)\b", re.I), 30, 0.6),
]

DURATION_PATTERNS = [
    (re.compile(r"\b(\d+)\s*(min|minute|minutes)\b", re.I), lambda n: f"{math.ceil(n / 60)}h"),
    (re.compile(r"\b(\d+)\s*(h|hour|hours)\b", re.I), lambda n: f"{n}h"),
    (re.compile(r"\b(\d+)\s*(d|day|days)\b", re.I), lambda n: f"{n}d"),
    # weeks are counted in working days
    (re.compile(r"\b(\d+)\s*(w|week|weeks)\b", re.I), lambda n: f"{n * 5}d"),
]

KEY_PHRASE_PATTERN = re.compile(r"\b[A-Za-z]+(?:\s+[A-Za-z]+)*\b")


class PatternExtractor:
    """Keyword and regex heuristics; needs no external service."""

    async def extract(
        self,
        text: str,
        current_time: datetime,
        user_context: UserContext | None = None,
    ) -> RawExtraction:
        priority, priority_detail = None, FieldDetail(confidence=0.5, reason="No urgency indicators found")
        for level, pattern in PRIORITY_PATTERNS.items():
            match = pattern.search(text)
            if match:
                priority = level.value
                priority_detail = FieldDetail(confidence=0.8, reason=f"Found '{match.group(0)}' in text")
                break

        category, category_detail = None, FieldDetail(confidence=0.3, reason="No category keywords found")
        for name, pattern in CATEGORY_PATTERNS.items():
            match = pattern.search(text)
            if match:
                category = name
                category_detail = FieldDetail(confidence=0.7, reason=f"Matched '{match.group(0)}'")
                break

        due_date, due_detail = None, FieldDetail(confidence=0.5, reason="No time references found")
        for pattern, days, confidence in TIMEFRAME_PATTERNS:
            match = pattern.search(text)
            if match:
                due_date = (current_time + timedelta(days=days)).isoformat()
                due_detail = FieldDetail(confidence=confidence, reason=f"Time reference '{match.group(0)}'")
                break

        duration, duration_detail = None, FieldDetail(confidence=0.4, reason="No explicit duration")
        for pattern, to_duration in DURATION_PATTERNS:
            match = pattern.search(text)
            if match:
                duration = to_duration(int(match.group(1)))
                duration_detail = FieldDetail(confidence=0.8, reason=f"Explicit duration '{match.group(0)}'")
                break

        phrases = dict.fromkeys(KEY_PHRASE_PATTERN.findall(text))
        keywords = [p for p in phrases if len(p) > 3][:MAX_KEYWORDS]

        details = ExtractionDetails(
            category=category_detail,
            priority=priority_detail,
            due_date=due_detail,
            duration=duration_detail,
        )
        confidences = [d.confidence for d in (category_detail, priority_detail, due_detail, duration_detail)]

        return RawExtraction(
            description=text,
            due_date=due_date,
            priority=priority,
            category=category,
            estimated_duration=duration,
            related_keywords=keywords,
            confidence=sum(confidences) / len(confidences),
            details=details,
        )


def first_sentence(text: str) -> str:
    """Text up to the first period."""
    return text.split(".")[0].strip() or text.strip()


def has_urgency_marker(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in URGENCY_MARKERS)


def _normalize_priority(value: str | None) -> TaskPriority | None:
    if not value:
        return None
    for priority in TaskPriority:
        if priority.value.lower() == value.strip().lower():
            return priority
    return None


def _normalize_due_date(value: str | None) -> str | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).isoformat()
    except ValueError:
        logger.info(f"Ignoring unparseable due date: {value}")
        return None


def derive_task_fields(
    text: str,
    raw: RawExtraction,
    current_time: datetime,
    user_context: UserContext | None = None,
) -> ExtractionResult:
    """Fill the gaps the capability left and build the task draft."""
    priority = _normalize_priority(raw.priority)
    if priority is None:
        priority = TaskPriority.HIGH if has_urgency_marker(text) else TaskPriority.MEDIUM

    due_date = _normalize_due_date(raw.due_date)
    if due_date is None:
        due_date = (current_time + timedelta(days=DEFAULT_DUE_DAYS)).isoformat()

    duration = (raw.estimated_duration or "").strip()
    if not duration:
        duration = user_context.average_duration if user_context else DEFAULT_DURATION

    draft = TaskDraft(
        summary=(raw.summary or "").strip() or first_sentence(text),
        description=raw.description or text,
        due_date=due_date,
        estimated_duration=duration,
        priority=priority,
        category=(raw.category or "").strip() or DEFAULT_CATEGORY,
    )

    keywords = [k for k in dict.fromkeys(raw.related_keywords) if k]

    return ExtractionResult(
        task=draft,
        confidence=raw.confidence,
        related_keywords=keywords,
        details=raw.details,
    )


class FieldExtractor:
    """Derives a complete task draft from text via an extraction capability."""

    def __init__(self, capability: ExtractionCapability):
        self.capability = capability

    async def extract(
        self,
        text: str,
        current_time: datetime,
        user_context: UserContext | None = None,
    ) -> ExtractionResult:
        """
        Extract task fields from text.

        Args:
            text: Raw user input
            current_time: Reference time for relative dates
            user_context: Optional patterns used to bias suggestions

        Returns:
            ExtractionResult with a complete TaskDraft

        Raises:
            ExtractionError: The capability failed or answered in an unknown shape
        """
        try:
            raw = await self.capability.extract(text, current_time, user_context)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(str(e) or "Extraction failed") from e

        if not isinstance(raw, RawExtraction):
            raise UnknownResponseError()

        return derive_task_fields(text, raw, current_time, user_context)
