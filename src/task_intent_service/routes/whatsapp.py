"""WhatsApp Cloud API webhook endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse

from ..models.bots import WebhookAck, WhatsAppWebhook
from ..services.whatsapp_bot import WhatsAppBot
from .dependencies import get_whatsapp_bot

logger = logging.getLogger(__name__)

router = APIRouter(tags=["whatsapp"])


@router.get("/webhook", response_class=PlainTextResponse)
async def verify_whatsapp(
    mode: str | None = Query(None, alias="hub.mode"),
    token: str | None = Query(None, alias="hub.verify_token"),
    challenge: str | None = Query(None, alias="hub.challenge"),
    bot: WhatsAppBot = Depends(get_whatsapp_bot),
) -> str:
    """Meta webhook subscription handshake: echo the challenge when the token matches."""
    echoed = bot.verify_webhook(mode, token, challenge)
    if echoed is None:
        raise HTTPException(status_code=403, detail="Verification failed")
    return echoed


@router.post("/webhook", response_model=WebhookAck)
async def whatsapp_webhook(
    payload: WhatsAppWebhook,
    bot: WhatsAppBot = Depends(get_whatsapp_bot),
) -> WebhookAck:
    """Receive WhatsApp messages; always answers 200."""
    try:
        handled = await bot.handle_webhook(payload)
    except Exception:
        logger.exception("Failed to handle WhatsApp webhook")
        return WebhookAck(ok=False)
    return WebhookAck(handled=handled)
