"""Shared route dependencies and service singletons."""

import logging
from functools import lru_cache

from fastapi import Header, HTTPException

from ..config import settings
from ..services.bedrock import BedrockClient
from ..services.chat_identity import ChatIdentityStore
from ..services.classifier import HuggingFaceClassifier, IntentClassifier
from ..services.extractor import BedrockExtractor, FieldExtractor, PatternExtractor
from ..services.pipeline import SessionRegistry, TaskTextProcessor
from ..services.task_store import PostgrestClient, SupabaseTaskStore, TaskStore
from ..services.telegram_bot import TelegramBot
from ..services.whatsapp_bot import WhatsAppBot

logger = logging.getLogger(__name__)


async def get_current_user(x_user_id: str | None = Header(None)) -> str:
    """Owning user id, set by the auth gateway in front of the service."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="User not authenticated")
    return x_user_id.strip()


@lru_cache(maxsize=1)
def get_postgrest_client() -> PostgrestClient:
    """Get or create the PostgREST client singleton."""
    return PostgrestClient(
        base_url=settings.supabase_url,
        service_key=settings.supabase_service_key,
        timeout=settings.store_timeout,
    )


@lru_cache(maxsize=1)
def get_task_store() -> TaskStore:
    """Get or create the task store singleton."""
    return SupabaseTaskStore(get_postgrest_client())


@lru_cache(maxsize=1)
def get_completion_client() -> BedrockClient:
    """Get or create the Bedrock completion client."""
    return BedrockClient()


@lru_cache(maxsize=1)
def get_field_extractor() -> FieldExtractor:
    """Field extractor backed by Bedrock, or by local patterns when configured."""
    if settings.extractor == "patterns":
        logger.info("Using pattern-based field extraction")
        return FieldExtractor(PatternExtractor())
    return FieldExtractor(BedrockExtractor(get_completion_client()))


@lru_cache(maxsize=1)
def get_processor() -> TaskTextProcessor:
    """Get or create the stateless text processor."""
    return TaskTextProcessor(
        classifier=IntentClassifier(HuggingFaceClassifier()),
        extractor=get_field_extractor(),
        store=get_task_store(),
    )


@lru_cache(maxsize=1)
def get_session_registry() -> SessionRegistry:
    """Pipeline sessions shared by the web API and the chat bots."""
    return SessionRegistry(
        get_processor(),
        get_task_store(),
        max_retries=settings.max_retries,
        context_limit=settings.recent_task_limit,
        max_sessions=settings.max_sessions,
    )


@lru_cache(maxsize=1)
def get_identity_store() -> ChatIdentityStore:
    """Get or create the chat identity store."""
    return ChatIdentityStore(get_postgrest_client())


@lru_cache(maxsize=1)
def get_telegram_bot() -> TelegramBot:
    """Get or create the Telegram bot."""
    return TelegramBot(
        token=settings.telegram_bot_token,
        registry=get_session_registry(),
        identities=get_identity_store(),
        store=get_task_store(),
        completion=get_completion_client(),
        api_base=settings.telegram_api_base,
    )


@lru_cache(maxsize=1)
def get_whatsapp_bot() -> WhatsAppBot:
    """Get or create the WhatsApp bot."""
    return WhatsAppBot(
        token=settings.whatsapp_token,
        phone_number_id=settings.whatsapp_phone_number_id,
        verify_token=settings.whatsapp_verify_token,
        registry=get_session_registry(),
        identities=get_identity_store(),
        api_base=settings.whatsapp_api_base,
    )
