"""Tests for chat identity linking."""

import json

import httpx
import pytest

from src.task_intent_service.services.chat_identity import ChatIdentityStore, generate_verification_code
from src.task_intent_service.services.task_store import PostgrestClient


class FakeTable:
    """Answers PostgREST calls against in-memory rows and records writes."""

    def __init__(self, rows: list[dict]):
        self.rows = rows
        self.writes: list[tuple[str, str, dict, object]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        params = dict(request.url.params)
        if request.method == "GET":
            filters = {k: v.removeprefix("eq.") for k, v in params.items() if k not in ("select", "limit")}
            matches = [r for r in self.rows if all(str(r.get(k)) == v for k, v in filters.items())]
            return httpx.Response(200, json=matches[:1])
        self.writes.append((request.method, request.url.path, params, json.loads(request.content)))
        return httpx.Response(201 if request.method == "POST" else 204)


def _identities(table: FakeTable) -> ChatIdentityStore:
    return ChatIdentityStore(
        PostgrestClient("https://db.test", "service-key", transport=httpx.MockTransport(table))
    )


def test_verification_code_shape() -> None:
    """Test that codes are six uppercase letters or digits."""
    code = generate_verification_code()
    assert len(code) == 6
    assert code == code.upper()
    assert code.isalnum()


@pytest.mark.asyncio
async def test_issue_code_for_new_chat() -> None:
    """Test that a first /start inserts a row with a code."""
    table = FakeTable([])

    code = await _identities(table).issue_telegram_code("42")

    method, path, _, body = table.writes[0]
    assert method == "POST"
    assert path == "/rest/v1/telegram_users"
    assert body == [{"telegram_id": "42", "verification_code": code}]


@pytest.mark.asyncio
async def test_issue_code_refreshes_unlinked_chat() -> None:
    """Test that an unlinked chat gets its code replaced."""
    table = FakeTable([{"id": 1, "telegram_id": "42", "user_id": None, "verification_code": "OLD123"}])

    code = await _identities(table).issue_telegram_code("42")

    method, _, params, body = table.writes[0]
    assert method == "PATCH"
    assert params == {"telegram_id": "eq.42"}
    assert body == {"verification_code": code}


@pytest.mark.asyncio
async def test_issue_code_for_linked_chat() -> None:
    """Test that a linked chat gets no new code."""
    table = FakeTable([{"id": 1, "telegram_id": "42", "user_id": "user-1", "verification_code": None}])

    assert await _identities(table).issue_telegram_code("42") is None
    assert table.writes == []


@pytest.mark.asyncio
async def test_link_code_sets_user_and_clears_code() -> None:
    """Test that linking is case-insensitive and clears the code."""
    table = FakeTable([{"id": 7, "telegram_id": "42", "user_id": None, "verification_code": "ABC123"}])

    chat_id = await _identities(table).link_telegram_code(" abc123 ", "user-1")

    assert chat_id == "42"
    method, _, params, body = table.writes[0]
    assert method == "PATCH"
    assert params == {"id": "eq.7"}
    assert body == {"user_id": "user-1", "verification_code": None}


@pytest.mark.asyncio
async def test_link_unknown_code() -> None:
    """Test that an unknown code links nothing."""
    table = FakeTable([])

    assert await _identities(table).link_telegram_code("NOPE00", "user-1") is None
    assert table.writes == []


@pytest.mark.asyncio
async def test_whatsapp_lookup() -> None:
    """Test that linked phone numbers resolve to their user."""
    table = FakeTable([{"phone_number": "15550001", "user_id": "user-1"}])
    identities = _identities(table)

    assert await identities.linked_user_for_whatsapp("15550001") == "user-1"
    assert await identities.linked_user_for_whatsapp("15559999") is None
