"""Search-vs-create intent classification with a zero-shot model."""

import logging
from typing import Protocol

import httpx
from pydantic import ValidationError

from ..config import settings
from ..models.analysis import ClassificationResult
from .errors import ClassificationError

logger = logging.getLogger(__name__)

SEARCH_LABEL = "search query"
CREATE_LABEL = "task creation"
CANDIDATE_LABELS = [SEARCH_LABEL, CREATE_LABEL]


class TextClassifier(Protocol):
    """External zero-shot classification capability."""

    async def classify(self, text: str, candidate_labels: list[str]) -> ClassificationResult: ...


class HuggingFaceClassifier:
    """Zero-shot classification through the Hugging Face Inference API."""

    def __init__(
        self,
        token: str | None = None,
        model: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token if token is not None else settings.huggingface_token
        self.model = model or settings.classifier_model
        self.api_url = (api_url or settings.huggingface_api_url).rstrip("/")
        self.timeout = timeout or settings.classifier_timeout
        self._transport = transport

    async def classify(self, text: str, candidate_labels: list[str]) -> ClassificationResult:
        """Rank candidate labels for the text.

        Raises:
            ClassificationError: On transport errors, non-2xx answers or an
                unexpected payload shape
        """
        payload = {
            "inputs": text,
            "parameters": {"candidate_labels": candidate_labels},
        }
        headers = {"Authorization": f"Bearer {self.token}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(f"{self.api_url}/{self.model}", json=payload, headers=headers)
                response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise ClassificationError(f"Classification request timeout: {e}") from e
        except httpx.HTTPStatusError as e:
            raise ClassificationError(
                f"Hugging Face API error: {e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ClassificationError(f"Classification request failed: {e}") from e

        # Batched answers come back as a one-element list
        if isinstance(data, list) and data:
            data = data[0]

        try:
            return ClassificationResult.model_validate(data)
        except ValidationError as e:
            raise ClassificationError("Unknown response type from classifier") from e


class IntentClassifier:
    """Labels text as a search request or a task-creation request."""

    def __init__(self, capability: TextClassifier):
        self.capability = capability

    async def is_search_intent(self, text: str) -> bool:
        """True when the capability ranks "search query" first."""
        try:
            result = await self.capability.classify(text, CANDIDATE_LABELS)
        except ClassificationError:
            raise
        except Exception as e:
            raise ClassificationError(str(e) or "Classification failed") from e

        logger.info(f"Classification for '{text[:60]}': {result.labels[0]}")
        return result.labels[0] == SEARCH_LABEL
