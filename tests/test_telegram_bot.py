"""Tests for the Telegram bot."""

import json

import httpx
import pytest
from conftest import USER_ID, FakeCompletion, InMemoryTaskStore, make_task

from src.task_intent_service.models.bots import TelegramUpdate
from src.task_intent_service.services.chat_replies import (
    CHAT_FALLBACK_REPLY,
    confidence_band,
    is_probably_task_description,
)
from src.task_intent_service.services.pipeline import SessionRegistry
from src.task_intent_service.services.telegram_bot import TelegramBot


class FakeIdentities:
    """In-memory chat links."""

    def __init__(self, links: dict[str, str] | None = None):
        self.links = dict(links or {})
        self.codes: dict[str, str] = {}

    async def linked_user_for_telegram(self, chat_id: str) -> str | None:
        return self.links.get(chat_id)

    async def issue_telegram_code(self, chat_id: str) -> str | None:
        if chat_id in self.links:
            return None
        self.codes["ABC123"] = chat_id
        return "ABC123"

    async def link_telegram_code(self, code: str, user_id: str) -> str | None:
        chat_id = self.codes.pop(code.upper(), None)
        if chat_id:
            self.links[chat_id] = user_id
        return chat_id


class SentMessages:
    """Bot API stand-in recording sendMessage calls."""

    def __init__(self):
        self.messages: list[dict] = []
        self.urls: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.urls.append(str(request.url))
        self.messages.append(json.loads(request.content))
        return httpx.Response(200, json={"ok": True})

    @property
    def texts(self) -> list[str]:
        return [m["text"] for m in self.messages]


def _update(text: str, chat_id: int = 42) -> TelegramUpdate:
    return TelegramUpdate.model_validate(
        {"update_id": 1, "message": {"message_id": 5, "chat": {"id": chat_id}, "text": text}}
    )


@pytest.fixture
def sent() -> SentMessages:
    return SentMessages()


@pytest.fixture
def bot(registry: SessionRegistry, store: InMemoryTaskStore, sent: SentMessages) -> TelegramBot:
    return TelegramBot(
        token="bot-token",
        registry=registry,
        identities=FakeIdentities({"42": USER_ID}),
        store=store,
        completion=FakeCompletion(reply="You have a busy week."),
        api_base="https://telegram.test",
        transport=httpx.MockTransport(sent),
    )


def test_task_description_heuristic() -> None:
    """Test the keyword heuristic for task-like chat text."""
    assert is_probably_task_description("Need to finish the slides by Monday")
    assert is_probably_task_description("Pay the invoice ASAP")
    assert not is_probably_task_description("hello there")
    assert not is_probably_task_description("How are you today?")
    assert not is_probably_task_description("call")


def test_confidence_bands() -> None:
    """Test the high, medium and low bands."""
    assert confidence_band(0.85) == "high"
    assert confidence_band(0.8) == "high"
    assert confidence_band(0.6) == "medium"
    assert confidence_band(0.59) == "low"


@pytest.mark.asyncio
async def test_start_issues_code(registry, store, sent) -> None:
    """Test that /start on an unlinked chat replies with a verification code."""
    bot = TelegramBot(
        token="bot-token",
        registry=registry,
        identities=FakeIdentities(),
        store=store,
        completion=FakeCompletion(),
        api_base="https://telegram.test",
        transport=httpx.MockTransport(sent),
    )

    assert await bot.handle_update(_update("/start", chat_id=7)) is True

    assert sent.urls == ["https://telegram.test/botbot-token/sendMessage"]
    assert sent.messages[0]["chat_id"] == "7"
    assert "ABC123" in sent.texts[0]


@pytest.mark.asyncio
async def test_verify_links_chat_and_confirms(registry, store, sent) -> None:
    """Test that a valid code links the chat and confirms on it."""
    identities = FakeIdentities()
    bot = TelegramBot(
        token="bot-token",
        registry=registry,
        identities=identities,
        store=store,
        completion=FakeCompletion(),
        api_base="https://telegram.test",
        transport=httpx.MockTransport(sent),
    )
    await bot.handle_update(_update("/start", chat_id=7))

    response = await bot.verify("abc123", "user-9")

    assert response.success is True
    assert identities.links == {"7": "user-9"}
    assert "linked" in sent.texts[-1]


@pytest.mark.asyncio
async def test_verify_unknown_code(bot: TelegramBot) -> None:
    """Test that an unknown code is refused."""
    response = await bot.verify("ZZZ999", USER_ID)

    assert response.success is False
    assert response.message == "Invalid verification code"


@pytest.mark.asyncio
async def test_unlinked_chat_is_asked_to_link(bot: TelegramBot, sent: SentMessages, store) -> None:
    """Test that text from an unlinked chat creates nothing."""
    await bot.handle_update(_update("Finish the report by Friday", chat_id=99))

    assert "/start" in sent.texts[0]
    assert store.inserted == []


@pytest.mark.asyncio
async def test_create_command_creates_task(bot: TelegramBot, sent: SentMessages, store) -> None:
    """Test that /create runs the pipeline and reports the task."""
    await bot.handle_update(_update("/create Finish the quarterly report by Friday, urgent, 4 hours"))

    assert len(store.inserted) == 1
    reply = sent.texts[0]
    assert reply.startswith("Task created: Finish the quarterly report by Friday, urgent, 4 hours")
    assert "Priority: High" in reply
    assert "Duration: 4h" in reply
    assert "Confidence:" in reply


@pytest.mark.asyncio
async def test_create_command_without_text(bot: TelegramBot, sent: SentMessages) -> None:
    """Test that a bare /create asks for a description."""
    await bot.handle_update(_update("/create"))

    assert sent.texts == ["Please add a task description after /create."]


@pytest.mark.asyncio
async def test_task_like_text_creates_task(bot: TelegramBot, store) -> None:
    """Test that plain task-like text is captured."""
    await bot.handle_update(_update("Need to email the landlord tomorrow"))

    assert store.inserted[0]["summary"] == "Need to email the landlord tomorrow"


@pytest.mark.asyncio
async def test_search_text_lists_matches(bot: TelegramBot, sent: SentMessages, store) -> None:
    """Test that search-like task text returns matching tasks."""
    store.tasks.append(make_task(summary="Review meeting notes", priority="High"))

    await bot.handle_update(_update("/create find tasks about meeting"))

    assert sent.texts[0] == "Found 1 matching tasks:\n- Review meeting notes (High)"
    assert store.inserted == []


@pytest.mark.asyncio
async def test_other_text_gets_conversational_reply(bot: TelegramBot, sent: SentMessages) -> None:
    """Test that chit-chat is answered by the completion model."""
    await bot.handle_update(_update("hello there"))

    assert sent.texts == ["You have a busy week."]


@pytest.mark.asyncio
async def test_conversational_reply_falls_back(registry, store, sent) -> None:
    """Test that a failing model yields the static reply."""
    bot = TelegramBot(
        token="bot-token",
        registry=registry,
        identities=FakeIdentities({"42": USER_ID}),
        store=store,
        completion=FakeCompletion(error=RuntimeError("throttled")),
        api_base="https://telegram.test",
        transport=httpx.MockTransport(sent),
    )

    await bot.handle_update(_update("hello there"))

    assert sent.texts == [CHAT_FALLBACK_REPLY]


@pytest.mark.asyncio
async def test_update_without_text_is_ignored(bot: TelegramBot, sent: SentMessages) -> None:
    """Test that non-text updates are acknowledged without a reply."""
    assert await bot.handle_update(TelegramUpdate(update_id=3)) is False
    assert sent.messages == []
