"""Task-intent pipeline endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from ..config import settings
from ..models.analysis import UserContext
from ..models.pipeline import (
    PipelineErrorDetail,
    PipelineOutcome,
    PipelineStateResponse,
    TaskAnalyzeRequest,
    TaskProcessRequest,
)
from ..models.summary import TaskSummaryRequest, TaskSummaryResponse
from ..services.bedrock import BedrockClient
from ..services.errors import (
    ClassificationError,
    EmptyInputError,
    ExtractionError,
    NotAuthenticatedError,
    PipelineError,
    RetryUnavailableError,
    SearchError,
    user_facing_message,
)
from ..services.pipeline import PipelineSession, SessionRegistry, TaskTextProcessor
from ..services.summarizer import summarize_tasks
from ..services.task_store import TaskStore
from ..services.user_context import gather_user_context
from .dependencies import (
    get_completion_client,
    get_current_user,
    get_processor,
    get_session_registry,
    get_task_store,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tasks"])


def _status_for(error: PipelineError) -> int:
    if isinstance(error, NotAuthenticatedError):
        return 401
    if isinstance(error, EmptyInputError):
        return 400
    if isinstance(error, RetryUnavailableError):
        return 409
    if isinstance(error, (ClassificationError, ExtractionError, SearchError)):
        return 502
    return 500


def _session_error(session: PipelineSession, error: PipelineError) -> HTTPException:
    state = session.state
    detail = PipelineErrorDetail(
        message=user_facing_message(error, state.retry_count, session.max_retries),
        error=str(error),
        retry_count=state.retry_count,
        can_retry=state.can_retry,
    )
    return HTTPException(status_code=_status_for(error), detail=detail.model_dump())


def _busy_guard(session: PipelineSession) -> None:
    if session.is_busy:
        raise HTTPException(status_code=409, detail="A request is already being processed")


def _parse_time(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid current_time: {value}")


@router.post("/analyze", response_model=PipelineOutcome)
async def analyze_text(
    request: TaskAnalyzeRequest,
    user_id: str = Depends(get_current_user),
    processor: TaskTextProcessor = Depends(get_processor),
) -> PipelineOutcome:
    """
    Classify text and return a search result or a task draft.

    Nothing is persisted. The caller may pass its own `user_context`;
    otherwise the draft is built without history.

    Example input: "Finish the quarterly report by Friday, urgent, takes 4 hours"
    """
    current_time = _parse_time(request.current_time)
    try:
        return await processor.analyze(request.text, user_id, current_time, request.user_context)
    except PipelineError as e:
        logger.error(f"Analysis failed for user {user_id}: {e}")
        raise HTTPException(status_code=_status_for(e), detail=str(e))


@router.post("/process", response_model=PipelineOutcome)
async def process_text(
    request: TaskProcessRequest,
    user_id: str = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_session_registry),
) -> PipelineOutcome:
    """
    Run the full pipeline for the caller and persist a created task.

    Resubmitting the text of a failed attempt counts as a retry. While an
    attempt is in flight further submissions are rejected with 409.
    """
    session = registry.get(user_id)
    _busy_guard(session)
    try:
        return await session.submit(request.text)
    except EmptyInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PipelineError as e:
        raise _session_error(session, e)


@router.post("/retry", response_model=PipelineOutcome)
async def retry_last(
    user_id: str = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_session_registry),
) -> PipelineOutcome:
    """Re-run the caller's last failed submission."""
    session = registry.get(user_id)
    _busy_guard(session)
    try:
        return await session.retry()
    except PipelineError as e:
        raise _session_error(session, e)


@router.get("/state", response_model=PipelineStateResponse)
async def get_state(
    user_id: str = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_session_registry),
) -> PipelineStateResponse:
    """Current processing state and the analysis of the last created task."""
    session = registry.get(user_id)
    state = session.state
    return PipelineStateResponse(
        step=state.step,
        error=state.error,
        last_text=state.last_text,
        retry_count=state.retry_count,
        can_retry=state.can_retry,
        analysis=session.analysis,
    )


@router.delete("/state", response_model=PipelineStateResponse)
async def clear_state(
    user_id: str = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_session_registry),
) -> PipelineStateResponse:
    """Clear the last analysis and return the session to idle."""
    session = registry.get(user_id)
    _busy_guard(session)
    session.reset()
    return PipelineStateResponse(step=session.state.step)


@router.get("/context", response_model=UserContext)
async def get_context(
    user_id: str = Depends(get_current_user),
    store: TaskStore = Depends(get_task_store),
) -> UserContext:
    """Patterns drawn from the caller's most recent tasks."""
    return await gather_user_context(store, user_id, settings.recent_task_limit)


@router.post("/summary", response_model=TaskSummaryResponse)
async def summarize(
    request: TaskSummaryRequest,
    user_id: str = Depends(get_current_user),
    client: BedrockClient = Depends(get_completion_client),
) -> TaskSummaryResponse:
    """
    Summarize the supplied tasks, typically the caller's priority tasks.

    Falls back to a plain summary when the model is unavailable.
    """
    logger.info(f"Summary requested by user {user_id}")
    return await summarize_tasks(request.tasks, client)
