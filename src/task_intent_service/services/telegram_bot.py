"""Telegram bot: account linking and chat-driven task capture."""

import logging

import httpx

from ..models.bots import TelegramUpdate, TelegramVerifyResponse
from .bedrock import BedrockClient
from .chat_identity import ChatIdentityStore
from .chat_replies import (
    conversational_reply,
    is_probably_task_description,
    submit_from_chat,
)
from .pipeline import SessionRegistry
from .task_store import TaskStore
from .user_context import gather_user_context

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Send me a task in plain words, like 'Finish the report by Friday, urgent'.\n"
    "/create <task> - create a task\n"
    "/start - link this chat to your account"
)


class TelegramBot:
    """Handles Telegram webhook updates and replies through the Bot API."""

    def __init__(
        self,
        token: str,
        registry: SessionRegistry,
        identities: ChatIdentityStore,
        store: TaskStore,
        completion: BedrockClient | None = None,
        api_base: str = "https://api.telegram.org",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token
        self.registry = registry
        self.identities = identities
        self.store = store
        self.completion = completion or BedrockClient()
        self.api_base = api_base.rstrip("/")
        self.transport = transport

    async def send_message(self, chat_id: str | int, text: str) -> None:
        """Send a plain-text message to a chat."""
        if not self.token:
            raise ValueError("Telegram bot token not configured")

        async with httpx.AsyncClient(transport=self.transport, timeout=10.0) as client:
            response = await client.post(
                f"{self.api_base}/bot{self.token}/sendMessage",
                json={"chat_id": chat_id, "text": text},
            )
            response.raise_for_status()

    async def handle_update(self, update: TelegramUpdate) -> bool:
        """
        Process one webhook update.

        Commands:
        - /start: issue a verification code for linking
        - /help: usage
        - /create <text>: run the pipeline on the text
        Any other text runs the pipeline when it reads like a task and gets
        a conversational reply otherwise.

        Returns:
            True if the update carried a text message that was answered
        """
        message = update.message
        if message is None or not message.text:
            return False

        chat_id = str(message.chat.id)
        text = message.text.strip()
        logger.info(f"Telegram message from chat {chat_id}")

        if text.startswith("/start"):
            await self.send_message(chat_id, await self._start(chat_id))
            return True
        if text.startswith("/help"):
            await self.send_message(chat_id, HELP_TEXT)
            return True

        user_id = await self.identities.linked_user_for_telegram(chat_id)
        if not user_id:
            await self.send_message(chat_id, "Please link your account first. Send /start to get a code.")
            return True

        if text.startswith("/create"):
            task_text = text[len("/create"):].strip()
            if not task_text:
                reply = "Please add a task description after /create."
            else:
                reply = await submit_from_chat(self.registry, user_id, task_text)
        elif is_probably_task_description(text):
            reply = await submit_from_chat(self.registry, user_id, text)
        else:
            user_context = await gather_user_context(self.store, user_id)
            reply = await conversational_reply(self.completion, text, user_context)

        await self.send_message(chat_id, reply)
        return True

    async def _start(self, chat_id: str) -> str:
        code = await self.identities.issue_telegram_code(chat_id)
        if code is None:
            return "Your account is already linked. " + HELP_TEXT
        return (
            f"Welcome! Your verification code is: {code}\n"
            "Enter it in the web app to link this chat to your account."
        )

    async def verify(self, code: str, user_id: str) -> TelegramVerifyResponse:
        """Link the chat that was issued `code` to `user_id`."""
        chat_id = await self.identities.link_telegram_code(code, user_id)
        if chat_id is None:
            return TelegramVerifyResponse(success=False, message="Invalid verification code")

        try:
            await self.send_message(chat_id, "Your account is now linked. " + HELP_TEXT)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Could not confirm link on chat {chat_id}: {e}")
        return TelegramVerifyResponse(success=True, message="Telegram account linked")
