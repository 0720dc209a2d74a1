"""Mapping of external chat identities to owning users."""

import logging
import secrets
import string
from typing import Any

from .task_store import PostgrestClient

logger = logging.getLogger(__name__)

TELEGRAM_USERS_TABLE = "telegram_users"
WHATSAPP_USERS_TABLE = "whatsapp_users"
CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6


def generate_verification_code() -> str:
    """Random six-character code the user types into the web app."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


class ChatIdentityStore:
    """Chat-id to user-id links kept in the hosted database."""

    def __init__(self, client: PostgrestClient):
        self.client = client

    async def _first(self, table: str, params: dict[str, str]) -> dict[str, Any] | None:
        rows = await self.client.request("GET", table, params={"select": "*", **params, "limit": "1"})
        return rows[0] if rows else None

    async def find_telegram_user(self, chat_id: str) -> dict[str, Any] | None:
        """Row for a Telegram chat, linked or not."""
        return await self._first(TELEGRAM_USERS_TABLE, {"telegram_id": f"eq.{chat_id}"})

    async def linked_user_for_telegram(self, chat_id: str) -> str | None:
        """Owning user id for a Telegram chat, or None if it is not linked."""
        row = await self.find_telegram_user(chat_id)
        return row.get("user_id") if row else None

    async def issue_telegram_code(self, chat_id: str) -> str | None:
        """
        Store a fresh verification code for the chat.

        Returns:
            The code, or None if the chat is already linked to a user
        """
        existing = await self.find_telegram_user(chat_id)
        if existing and existing.get("user_id"):
            return None

        code = generate_verification_code()
        if existing:
            await self.client.request(
                "PATCH",
                TELEGRAM_USERS_TABLE,
                params={"telegram_id": f"eq.{chat_id}"},
                json={"verification_code": code},
            )
        else:
            await self.client.request(
                "POST",
                TELEGRAM_USERS_TABLE,
                json=[{"telegram_id": chat_id, "verification_code": code}],
            )
        logger.info(f"Verification code issued for chat {chat_id}")
        return code

    async def link_telegram_code(self, code: str, user_id: str) -> str | None:
        """
        Link the chat holding `code` to `user_id` and clear the code.

        Returns:
            The linked chat id, or None if the code is unknown
        """
        row = await self._first(TELEGRAM_USERS_TABLE, {"verification_code": f"eq.{code.strip().upper()}"})
        if not row:
            return None

        await self.client.request(
            "PATCH",
            TELEGRAM_USERS_TABLE,
            params={"id": f"eq.{row['id']}"},
            json={"user_id": user_id, "verification_code": None},
        )
        logger.info(f"Telegram chat {row['telegram_id']} linked to user {user_id}")
        return str(row["telegram_id"])

    async def linked_user_for_whatsapp(self, phone_number: str) -> str | None:
        """Owning user id for a WhatsApp number, or None if it is not linked."""
        row = await self._first(WHATSAPP_USERS_TABLE, {"phone_number": f"eq.{phone_number}"})
        return row.get("user_id") if row else None
