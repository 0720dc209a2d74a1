"""Plain-text replies shared by the chat channels."""

import logging

from ..models.analysis import UserContext
from ..models.pipeline import CreateOutcome, SearchOutcome
from .bedrock import BedrockClient
from .errors import EmptyInputError, PipelineError, user_facing_message
from .pipeline import SessionRegistry

logger = logging.getLogger(__name__)

MAX_SEARCH_LINES = 5

TASK_KEYWORDS = (
    "todo", "to-do", "to do", "task", "finish", "complete", "work on", "create",
    "prepare", "write", "send", "review", "check", "call", "email", "meeting",
    "appointment", "deadline", "schedule", "remind", "remember", "need to", "have to",
    "should", "must", "urgent", "important", "asap",
)
PRIORITY_KEYWORDS = ("urgent", "important", "asap", "critical", "high priority", "low priority")

CHAT_FALLBACK_REPLY = (
    "I'm having trouble answering right now. "
    "Send a task description, or use /create followed by your task."
)


def is_probably_task_description(text: str) -> bool:
    """Keyword heuristic for chat messages that read like a task."""
    lowered = text.lower()
    if not 8 < len(lowered) < 300:
        return False

    has_task_keyword = any(k in lowered for k in TASK_KEYWORDS)
    has_priority_keyword = any(k in lowered for k in PRIORITY_KEYWORDS)
    if "?" in lowered and not has_task_keyword:
        return False
    return has_task_keyword or has_priority_keyword


def confidence_band(confidence: float) -> str:
    """Label a 0..1 confidence as high, medium or low."""
    percent = round(confidence * 100)
    if percent >= 80:
        return "high"
    if percent >= 60:
        return "medium"
    return "low"


def format_outcome(outcome: SearchOutcome | CreateOutcome) -> str:
    """Describe a pipeline outcome for a chat message."""
    if isinstance(outcome, SearchOutcome):
        if not outcome.results:
            return "No matching tasks found."
        lines = [f"Found {len(outcome.results)} matching tasks:"]
        lines.extend(f"- {t.summary} ({t.priority.value})" for t in outcome.results[:MAX_SEARCH_LINES])
        if len(outcome.results) > MAX_SEARCH_LINES:
            lines.append(f"...and {len(outcome.results) - MAX_SEARCH_LINES} more")
        return "\n".join(lines)

    task = outcome.task
    lines = [
        f"Task created: {task.summary}",
        f"Due: {task.due_date[:10]}",
        f"Duration: {task.estimated_duration}",
        f"Priority: {task.priority.value}",
        f"Category: {task.category}",
    ]
    if outcome.analysis:
        confidence = outcome.analysis.confidence
        lines.append(f"Confidence: {round(confidence * 100)}% ({confidence_band(confidence)})")
    return "\n".join(lines)


async def submit_from_chat(registry: SessionRegistry, user_id: str, text: str) -> str:
    """Run the user's pipeline session for a chat message and describe the result."""
    session = registry.get(user_id)
    if session.is_busy:
        return "Still working on your previous request. Please wait a moment."

    try:
        outcome = await session.submit(text)
    except EmptyInputError as e:
        return str(e)
    except PipelineError as e:
        return user_facing_message(e, session.state.retry_count, session.max_retries)
    return format_outcome(outcome)


def _context_prompt(user_context: UserContext) -> str:
    recent = "\n".join(f"- {t.summary} ({t.priority.value})" for t in user_context.recent_tasks[:5])
    return (
        "You are a task management assistant in a chat app. Keep answers short and practical.\n"
        f"The user has {user_context.total_tasks} recent tasks.\n"
        f"Common categories: {', '.join(user_context.common_categories) or 'none yet'}\n"
        f"Usual priority: {user_context.most_used_priority}\n"
        f"Recent tasks:\n{recent or '- none'}"
    )


async def conversational_reply(client: BedrockClient, text: str, user_context: UserContext) -> str:
    """Answer free text using the user's task context, or a static reply on failure."""
    try:
        reply = await client.complete(
            system=_context_prompt(user_context),
            user=text,
            max_tokens=300,
            temperature=0.7,
        )
    except Exception as e:
        logger.error(f"Conversational reply failed: {e}")
        return CHAT_FALLBACK_REPLY
    return reply.strip() or CHAT_FALLBACK_REPLY
