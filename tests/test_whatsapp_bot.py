"""Tests for the WhatsApp bot."""

import json

import httpx
import pytest
from conftest import USER_ID, InMemoryTaskStore

from src.task_intent_service.models.bots import WhatsAppWebhook
from src.task_intent_service.services.pipeline import SessionRegistry
from src.task_intent_service.services.whatsapp_bot import LINK_REQUIRED_TEXT, WhatsAppBot


class FakeIdentities:
    """In-memory phone number links."""

    def __init__(self, links: dict[str, str]):
        self.links = links

    async def linked_user_for_whatsapp(self, phone_number: str) -> str | None:
        return self.links.get(phone_number)


class GraphApi:
    """Graph API stand-in recording outbound messages."""

    def __init__(self):
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(200, json={"messages": [{"id": "wamid.1"}]})

    @property
    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


def _payload(*messages: dict) -> WhatsAppWebhook:
    return WhatsAppWebhook.model_validate(
        {
            "object": "whatsapp_business_account",
            "entry": [{"id": "e1", "changes": [{"field": "messages", "value": {"messages": list(messages)}}]}],
        }
    )


def _text(sender: str, body: str) -> dict:
    return {"from": sender, "type": "text", "text": {"body": body}, "timestamp": "1700000000"}


@pytest.fixture
def graph() -> GraphApi:
    return GraphApi()


@pytest.fixture
def bot(registry: SessionRegistry, graph: GraphApi) -> WhatsAppBot:
    return WhatsAppBot(
        token="wa-token",
        phone_number_id="123",
        verify_token="verify-me",
        registry=registry,
        identities=FakeIdentities({"15550001": USER_ID}),
        api_base="https://graph.test/v18.0",
        transport=httpx.MockTransport(graph),
    )


def test_verify_webhook(bot: WhatsAppBot) -> None:
    """Test the subscription handshake."""
    assert bot.verify_webhook("subscribe", "verify-me", "challenge-1") == "challenge-1"
    assert bot.verify_webhook("subscribe", "wrong", "challenge-1") is None
    assert bot.verify_webhook("unsubscribe", "verify-me", "challenge-1") is None


@pytest.mark.asyncio
async def test_text_message_creates_task(bot: WhatsAppBot, graph: GraphApi, store: InMemoryTaskStore) -> None:
    """Test that a linked number's message runs the pipeline and gets a reply."""
    handled = await bot.handle_webhook(_payload(_text("15550001", "Call the dentist tomorrow, urgent")))

    assert handled == 1
    assert store.inserted[0]["priority"] == "High"
    request = graph.requests[0]
    assert str(request.url) == "https://graph.test/v18.0/123/messages"
    assert request.headers["Authorization"] == "Bearer wa-token"
    body = graph.bodies[0]
    assert body["messaging_product"] == "whatsapp"
    assert body["to"] == "15550001"
    assert body["text"]["body"].startswith("Task created: Call the dentist tomorrow, urgent")


@pytest.mark.asyncio
async def test_unlinked_number(bot: WhatsAppBot, graph: GraphApi, store: InMemoryTaskStore) -> None:
    """Test that an unknown number is told to link its account."""
    await bot.handle_webhook(_payload(_text("15559999", "Call the dentist")))

    assert graph.bodies[0]["text"]["body"] == LINK_REQUIRED_TEXT
    assert store.inserted == []


@pytest.mark.asyncio
async def test_non_text_messages_skipped(bot: WhatsAppBot, graph: GraphApi) -> None:
    """Test that images and other types are ignored."""
    handled = await bot.handle_webhook(_payload({"from": "15550001", "type": "image"}))

    assert handled == 0
    assert graph.requests == []


@pytest.mark.asyncio
async def test_status_only_delivery(bot: WhatsAppBot) -> None:
    """Test that deliveries without messages are handled as empty."""
    payload = WhatsAppWebhook.model_validate(
        {"object": "whatsapp_business_account", "entry": [{"changes": [{"value": {"statuses": []}}]}]}
    )

    assert await bot.handle_webhook(payload) == 0
