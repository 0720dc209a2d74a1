"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    environment: str = "development"
    debug: bool = False
    service_name: str = "task-intent-service"

    # CORS
    cors_origins: list[str] = ["*"]

    # AWS
    aws_region: str = "us-east-1"

    # Bedrock - Claude Haiku 4.5 with cross-region inference
    bedrock_model_id: str = "us.anthropic.claude-haiku-4-5-20251001-v1:0"

    # Field extraction backend: "bedrock" or "patterns"
    extractor: str = "bedrock"

    # Hugging Face zero-shot classification
    huggingface_token: str = ""
    huggingface_api_url: str = "https://api-inference.huggingface.co/models"
    classifier_model: str = "facebook/bart-large-mnli"
    classifier_timeout: float = 30.0

    # Hosted Postgres (PostgREST endpoint)
    supabase_url: str = ""
    supabase_service_key: str = ""
    store_timeout: float = 10.0

    # Pipeline
    recent_task_limit: int = 20
    max_retries: int = 3
    max_sessions: int = 1000

    # Telegram
    telegram_bot_token: str = ""
    telegram_api_base: str = "https://api.telegram.org"

    # WhatsApp Cloud API
    whatsapp_token: str = ""
    whatsapp_phone_number_id: str = ""
    whatsapp_verify_token: str = ""
    whatsapp_api_base: str = "https://graph.facebook.com/v18.0"

    class Config:
        env_prefix = "TASK_INTENT_"
        case_sensitive = False


settings = Settings()
