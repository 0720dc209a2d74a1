"""WhatsApp Cloud API webhook handling."""

import logging

import httpx

from ..models.bots import WhatsAppMessage, WhatsAppWebhook
from .chat_identity import ChatIdentityStore
from .chat_replies import submit_from_chat
from .pipeline import SessionRegistry

logger = logging.getLogger(__name__)

LINK_REQUIRED_TEXT = (
    "This number is not linked to an account yet. "
    "Add it in the web app settings, then send your task again."
)


class WhatsAppBot:
    """Runs the pipeline for inbound WhatsApp text messages and replies via the Graph API."""

    def __init__(
        self,
        token: str,
        phone_number_id: str,
        verify_token: str,
        registry: SessionRegistry,
        identities: ChatIdentityStore,
        api_base: str = "https://graph.facebook.com/v18.0",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token
        self.phone_number_id = phone_number_id
        self.verify_token = verify_token
        self.registry = registry
        self.identities = identities
        self.api_base = api_base.rstrip("/")
        self.transport = transport

    def verify_webhook(self, mode: str | None, token: str | None, challenge: str | None) -> str | None:
        """Return the challenge to echo back, or None if verification fails."""
        if mode == "subscribe" and self.verify_token and token == self.verify_token:
            logger.info("WhatsApp webhook verified")
            return challenge or ""
        logger.warning("WhatsApp webhook verification failed")
        return None

    async def send_message(self, to: str, text: str) -> None:
        """Send a text message to a WhatsApp number."""
        if not self.token or not self.phone_number_id:
            raise ValueError("WhatsApp credentials not configured")

        async with httpx.AsyncClient(transport=self.transport, timeout=10.0) as client:
            response = await client.post(
                f"{self.api_base}/{self.phone_number_id}/messages",
                headers={"Authorization": f"Bearer {self.token}"},
                json={
                    "messaging_product": "whatsapp",
                    "to": to,
                    "type": "text",
                    "text": {"body": text},
                },
            )
            response.raise_for_status()

    async def handle_webhook(self, payload: WhatsAppWebhook) -> int:
        """
        Answer every text message in a webhook delivery.

        Returns:
            Number of text messages handled
        """
        handled = 0
        for entry in payload.entry:
            for change in entry.changes:
                for message in change.value.messages:
                    if message.type != "text" or message.text is None:
                        continue
                    await self._handle_message(message)
                    handled += 1
        return handled

    async def _handle_message(self, message: WhatsAppMessage) -> None:
        logger.info(f"WhatsApp message from {message.sender}")

        user_id = await self.identities.linked_user_for_whatsapp(message.sender)
        if not user_id:
            await self.send_message(message.sender, LINK_REQUIRED_TEXT)
            return

        reply = await submit_from_chat(self.registry, user_id, message.text.body)
        await self.send_message(message.sender, reply)
