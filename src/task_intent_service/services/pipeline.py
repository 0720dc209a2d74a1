"""Task-intent pipeline: classification, extraction and the processing state machine."""

import logging
from datetime import datetime, timezone

from ..models.analysis import EnhancedAnalysis, UserContext
from ..models.pipeline import (
    CreateOutcome,
    ProcessingState,
    ProcessingStep,
    SearchOutcome,
)
from ..models.task import Task, TaskDraft
from .classifier import IntentClassifier
from .confidence import build_enhanced_analysis
from .errors import (
    EmptyInputError,
    NotAuthenticatedError,
    PersistenceError,
    PipelineError,
    RetryUnavailableError,
    SearchError,
)
from .extractor import FieldExtractor
from .task_store import TaskStore
from .user_context import RECENT_TASK_LIMIT, gather_user_context

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
MAX_SESSIONS = 1000
SEARCH_FIELD = "summary"

IN_FLIGHT_STEPS = {
    ProcessingStep.GATHERING_CONTEXT,
    ProcessingStep.ANALYZING,
    ProcessingStep.CREATING,
}


class TaskTextProcessor:
    """Stateless analysis of one piece of text: search it or turn it into a task draft."""

    def __init__(self, classifier: IntentClassifier, extractor: FieldExtractor, store: TaskStore):
        self.classifier = classifier
        self.extractor = extractor
        self.store = store

    async def is_search(self, text: str) -> bool:
        return await self.classifier.is_search_intent(text)

    async def search(self, user_id: str, text: str) -> SearchOutcome:
        """Full-text search over the user's task summaries."""
        try:
            results = await self.store.full_text_search(user_id, SEARCH_FIELD, text)
        except Exception as e:
            raise SearchError(str(e) or "Search failed") from e
        logger.info(f"Search for user {user_id} found {len(results)} tasks")
        return SearchOutcome(results=results)

    async def draft(
        self,
        text: str,
        current_time: datetime,
        user_context: UserContext | None = None,
    ) -> CreateOutcome:
        """Extract a task draft and score it against the user's context."""
        extraction = await self.extractor.extract(text, current_time, user_context)
        analysis = build_enhanced_analysis(extraction, user_context or UserContext())
        return CreateOutcome(task=extraction.task, analysis=analysis)

    async def analyze(
        self,
        text: str,
        user_id: str,
        current_time: datetime | None = None,
        user_context: UserContext | None = None,
    ) -> SearchOutcome | CreateOutcome:
        """Classify the text and run the matching branch, without persisting anything."""
        if not user_id:
            raise NotAuthenticatedError()
        text = text.strip()
        if not text:
            raise EmptyInputError("No text provided")

        if await self.is_search(text):
            return await self.search(user_id, text)
        return await self.draft(text, current_time or datetime.now(timezone.utc), user_context)


class PipelineSession:
    """
    One caller's pipeline with its processing state.

    Steps run strictly in order: gathering-context, analyzing, then either
    search (back to idle) or creating and complete. A fatal error returns the
    state to idle with the error recorded and the retry count incremented.
    Retrying re-runs the last text while fewer than `max_retries` attempts
    have failed; a new, distinct text starts a fresh submission.

    The session does not lock; callers check `is_busy` before submitting.
    """

    def __init__(
        self,
        user_id: str | None,
        processor: TaskTextProcessor,
        store: TaskStore,
        max_retries: int = MAX_RETRIES,
        context_limit: int = RECENT_TASK_LIMIT,
    ):
        self.user_id = user_id
        self.processor = processor
        self.store = store
        self.max_retries = max_retries
        self.context_limit = context_limit
        self.state = ProcessingState(max_retries=max_retries)
        self.analysis: EnhancedAnalysis | None = None

    @property
    def is_busy(self) -> bool:
        return self.state.step in IN_FLIGHT_STEPS

    def reset(self) -> None:
        """Drop the last analysis and return to a clean idle state."""
        self.state = ProcessingState(max_retries=self.max_retries)
        self.analysis = None

    async def submit(self, text: str, current_time: datetime | None = None) -> SearchOutcome | CreateOutcome:
        """
        Run the pipeline for a submission.

        Resubmitting the text of a failed attempt counts as a retry of the
        same submission.

        Raises:
            EmptyInputError: Text is blank (state is left untouched)
            RetryUnavailableError: Same failed text but the retry budget is spent
            PipelineError: Any fatal failure of the attempt
        """
        text = (text or "").strip()
        if not text:
            raise EmptyInputError()

        is_resubmission = self.state.error is not None and text == self.state.last_text
        if is_resubmission and not self.state.can_retry:
            raise RetryUnavailableError(
                f"Retry limit reached ({self.state.retry_count}/{self.max_retries}). Submit a new request."
            )

        retry_count = self.state.retry_count if is_resubmission else 0
        return await self._run(text, retry_count, current_time)

    async def retry(self, current_time: datetime | None = None) -> SearchOutcome | CreateOutcome:
        """Re-run the last failed text if the retry budget allows it."""
        if not self.state.can_retry:
            raise RetryUnavailableError("No failed request available to retry")
        return await self._run(self.state.last_text, self.state.retry_count, current_time)

    def _advance(self, step: ProcessingStep) -> None:
        self.state = self.state.model_copy(update={"step": step})

    def _fail(self, error: PipelineError) -> None:
        self.state = ProcessingState(
            step=ProcessingStep.IDLE,
            error=str(error) or "Failed to process your request",
            last_text=self.state.last_text,
            retry_count=min(self.state.retry_count + 1, self.max_retries),
            retryable=error.retryable,
            max_retries=self.max_retries,
        )
        logger.warning(
            f"Pipeline attempt failed ({self.state.retry_count}/{self.max_retries}): {self.state.error}"
        )

    async def _persist(self, draft: TaskDraft) -> Task:
        try:
            return await self.store.insert(self.user_id, draft.to_row(self.user_id))
        except Exception as e:
            logger.error(f"Error creating task: {e}")
            raise PersistenceError(str(e) or "Failed to create task") from e

    async def _run(
        self,
        text: str,
        retry_count: int,
        current_time: datetime | None,
    ) -> SearchOutcome | CreateOutcome:
        self.analysis = None
        self.state = ProcessingState(
            step=ProcessingStep.GATHERING_CONTEXT,
            last_text=text,
            retry_count=retry_count,
            max_retries=self.max_retries,
        )

        try:
            if not self.user_id:
                raise NotAuthenticatedError()

            user_context = await gather_user_context(self.store, self.user_id, self.context_limit)

            self._advance(ProcessingStep.ANALYZING)
            if await self.processor.is_search(text):
                outcome = await self.processor.search(self.user_id, text)
                self._advance(ProcessingStep.IDLE)
                return outcome

            self._advance(ProcessingStep.CREATING)
            outcome = await self.processor.draft(text, current_time or datetime.now(timezone.utc), user_context)
            stored = await self._persist(outcome.task)
        except PipelineError as e:
            self._fail(e)
            raise
        except Exception as e:
            logger.exception("Unexpected error processing request")
            error = PipelineError(str(e) or "Failed to process your request")
            self._fail(error)
            raise error from e

        outcome.task_id = stored.id
        self.analysis = outcome.analysis
        self._advance(ProcessingStep.COMPLETE)
        logger.info(f"Task created for user {self.user_id}: {outcome.task.summary}")
        return outcome


class SessionRegistry:
    """
    In-memory pipeline sessions keyed by owning user, least recently used first.

    Once `max_sessions` is reached, sessions with nothing in flight and no
    recorded error are dropped. If every session is failed or busy, the least
    recently used one that is not busy goes.
    """

    def __init__(
        self,
        processor: TaskTextProcessor,
        store: TaskStore,
        max_retries: int = MAX_RETRIES,
        context_limit: int = RECENT_TASK_LIMIT,
        max_sessions: int = MAX_SESSIONS,
    ):
        self.processor = processor
        self.store = store
        self.max_retries = max_retries
        self.context_limit = context_limit
        self.max_sessions = max_sessions
        self._sessions: dict[str, PipelineSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, user_id: str) -> PipelineSession:
        """Return the user's session, creating it on first use."""
        session = self._sessions.pop(user_id, None)
        if session is None:
            self._evict()
            session = PipelineSession(
                user_id,
                self.processor,
                self.store,
                max_retries=self.max_retries,
                context_limit=self.context_limit,
            )
        self._sessions[user_id] = session
        return session

    def _evict(self) -> None:
        if len(self._sessions) < self.max_sessions:
            return

        reclaimable = [
            user_id
            for user_id, session in self._sessions.items()
            if not session.is_busy and session.state.error is None
        ]
        if not reclaimable:
            reclaimable = [user_id for user_id, session in self._sessions.items() if not session.is_busy][:1]

        for user_id in reclaimable:
            del self._sessions[user_id]
        logger.info(f"Evicted {len(reclaimable)} pipeline sessions ({len(self._sessions)} kept)")
