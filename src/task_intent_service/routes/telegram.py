"""Telegram bot webhook and account-linking endpoints."""

import logging

from fastapi import APIRouter, Depends

from ..models.bots import (
    TelegramUpdate,
    TelegramVerifyRequest,
    TelegramVerifyResponse,
    WebhookAck,
)
from ..services.telegram_bot import TelegramBot
from .dependencies import get_current_user, get_telegram_bot

logger = logging.getLogger(__name__)

router = APIRouter(tags=["telegram"])


@router.post("/webhook", response_model=WebhookAck)
async def telegram_webhook(
    update: TelegramUpdate,
    bot: TelegramBot = Depends(get_telegram_bot),
) -> WebhookAck:
    """
    Receive Telegram bot updates.

    Always answers 200 so Telegram does not redeliver the update; failures
    are logged and reported with `ok: false`.
    """
    try:
        handled = await bot.handle_update(update)
    except Exception:
        logger.exception(f"Failed to handle Telegram update {update.update_id}")
        return WebhookAck(ok=False)
    return WebhookAck(handled=int(handled))


@router.post("/verify", response_model=TelegramVerifyResponse)
async def verify_telegram(
    request: TelegramVerifyRequest,
    user_id: str = Depends(get_current_user),
    bot: TelegramBot = Depends(get_telegram_bot),
) -> TelegramVerifyResponse:
    """Link the Telegram chat that was issued `code` to the calling user."""
    return await bot.verify(request.code, user_id)
