"""Shared fixtures: in-memory collaborators and an app client wired to them."""

from collections.abc import Iterator
from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from src.task_intent_service.main import app
from src.task_intent_service.models.analysis import ClassificationResult, RawExtraction, UserContext
from src.task_intent_service.models.task import Task
from src.task_intent_service.routes import dependencies
from src.task_intent_service.services.classifier import CREATE_LABEL, SEARCH_LABEL, IntentClassifier
from src.task_intent_service.services.extractor import FieldExtractor, PatternExtractor
from src.task_intent_service.services.pipeline import SessionRegistry, TaskTextProcessor

USER_ID = "user-1"
NOW = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)


class InMemoryTaskStore:
    """TaskStore keeping rows in a list, newest first."""

    def __init__(self, tasks: list[Task] | None = None):
        self.tasks = list(tasks or [])
        self.inserted: list[dict[str, Any]] = []
        self.query_error: Exception | None = None
        self.insert_error: Exception | None = None

    async def insert(self, user_id: str, row: dict[str, Any]) -> Task:
        if self.insert_error:
            raise self.insert_error
        self.inserted.append(row)
        task = Task.model_validate({**row, "id": f"task-{len(self.inserted)}", "user_id": user_id})
        self.tasks.insert(0, task)
        return task

    async def update(self, user_id: str, task_id: str, patch: dict[str, Any]) -> Task | None:
        for i, task in enumerate(self.tasks):
            if task.id == task_id and task.user_id == user_id:
                self.tasks[i] = task.model_copy(update=patch)
                return self.tasks[i]
        return None

    async def delete(self, user_id: str, task_id: str) -> None:
        self.tasks = [t for t in self.tasks if not (t.id == task_id and t.user_id == user_id)]

    async def query(
        self,
        user_id: str,
        *,
        order: str = "created_at.desc",
        limit: int | None = None,
        filters: dict[str, str] | None = None,
    ) -> list[Task]:
        if self.query_error:
            raise self.query_error
        owned = [t for t in self.tasks if t.user_id == user_id]
        return owned[:limit] if limit is not None else owned

    async def full_text_search(self, user_id: str, field: str, text: str) -> list[Task]:
        words = [w for w in text.lower().split() if len(w) > 3]
        return [
            t
            for t in self.tasks
            if t.user_id == user_id and any(w in (getattr(t, field) or "").lower() for w in words)
        ]


class KeywordClassifier:
    """Zero-shot stand-in: texts starting with a search verb rank "search query" first."""

    SEARCH_VERBS = ("find", "search", "show", "list")

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def classify(self, text: str, candidate_labels: list[str]) -> ClassificationResult:
        self.calls.append(text)
        if text.lower().startswith(self.SEARCH_VERBS):
            return ClassificationResult(labels=[SEARCH_LABEL, CREATE_LABEL], scores=[0.9, 0.1])
        return ClassificationResult(labels=[CREATE_LABEL, SEARCH_LABEL], scores=[0.8, 0.2])


class ScriptedExtraction:
    """Extraction capability that raises or returns queued results in order."""

    def __init__(self, *results: RawExtraction | Exception):
        self.results = list(results)
        self.calls: list[tuple[str, UserContext | None]] = []

    async def extract(
        self,
        text: str,
        current_time: datetime,
        user_context: UserContext | None = None,
    ) -> RawExtraction:
        self.calls.append((text, user_context))
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


class FakeCompletion:
    """Completion client returning a canned reply or raising."""

    model_id = "fake-model"

    def __init__(self, reply: str = "All good.", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def complete(self, system: str, user: str, max_tokens: int = 500, temperature: float = 0.2) -> str:
        self.calls.append({"system": system, "user": user})
        if self.error:
            raise self.error
        return self.reply


def make_task(
    summary: str = "Write report",
    category: str | None = "Work",
    priority: str = "Medium",
    duration: str | None = None,
    user_id: str = USER_ID,
    **fields: Any,
) -> Task:
    """Build a stored task row for tests."""
    return Task(
        summary=summary,
        category=category,
        priority=priority,
        estimated_duration=duration,
        user_id=user_id,
        **fields,
    )


@pytest.fixture
def store() -> InMemoryTaskStore:
    return InMemoryTaskStore()


@pytest.fixture
def classifier() -> KeywordClassifier:
    return KeywordClassifier()


@pytest.fixture
def processor(store: InMemoryTaskStore, classifier: KeywordClassifier) -> TaskTextProcessor:
    return TaskTextProcessor(
        classifier=IntentClassifier(classifier),
        extractor=FieldExtractor(PatternExtractor()),
        store=store,
    )


@pytest.fixture
def registry(processor: TaskTextProcessor, store: InMemoryTaskStore) -> SessionRegistry:
    return SessionRegistry(processor, store)


@pytest.fixture
def completion() -> FakeCompletion:
    return FakeCompletion()


@pytest.fixture
def client(
    store: InMemoryTaskStore,
    processor: TaskTextProcessor,
    registry: SessionRegistry,
    completion: FakeCompletion,
) -> Iterator[TestClient]:
    """Test client with the service singletons replaced by in-memory fakes."""
    app.dependency_overrides[dependencies.get_task_store] = lambda: store
    app.dependency_overrides[dependencies.get_processor] = lambda: processor
    app.dependency_overrides[dependencies.get_session_registry] = lambda: registry
    app.dependency_overrides[dependencies.get_completion_client] = lambda: completion
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"X-User-Id": USER_ID}
