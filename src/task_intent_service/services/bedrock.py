"""Chat-style completion with Claude via Bedrock."""

import asyncio
import json
import logging
from typing import Any

import boto3

from ..config import settings

logger = logging.getLogger(__name__)


class BedrockClient:
    """Minimal `complete(system, user)` wrapper around bedrock-runtime."""

    def __init__(self, model_id: str | None = None, region: str | None = None):
        self.model_id = model_id or settings.bedrock_model_id
        self.region = region or settings.aws_region

    def complete_sync(
        self,
        system: str,
        user: str,
        max_tokens: int = 500,
        temperature: float = 0.2,
    ) -> str:
        """Call Bedrock Claude and return the text of the first content block."""
        client = boto3.client("bedrock-runtime", region_name=self.region)

        body: dict[str, Any] = {
            "anthropic_version": "bedrock-2023-05-31",
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": user}],
        }
        if system:
            body["system"] = system

        response = client.invoke_model(
            modelId=self.model_id,
            body=json.dumps(body),
            contentType="application/json",
        )

        response_body = json.loads(response["body"].read())
        return response_body["content"][0]["text"]

    async def complete(
        self,
        system: str,
        user: str,
        max_tokens: int = 500,
        temperature: float = 0.2,
    ) -> str:
        """Async variant; the boto3 call runs in a worker thread."""
        return await asyncio.to_thread(self.complete_sync, system, user, max_tokens, temperature)


def extract_json(content: str) -> Any:
    """Parse JSON from a model reply, tolerating markdown code fences."""
    if "```json" in content:
        content = content.split("```json")[1].split("```")[0]
    elif "```" in content:
        content = content.split("```")[1].split("```")[0]

    return json.loads(content.strip())
