"""Chat-bot webhook models for Telegram and WhatsApp."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TelegramChat(BaseModel):
    """Telegram chat reference."""

    id: int


class TelegramMessage(BaseModel):
    """Inbound Telegram message (only the fields the bot reads)."""

    message_id: int | None = None
    chat: TelegramChat
    text: str | None = None


class TelegramUpdate(BaseModel):
    """Telegram webhook update."""

    update_id: int | None = None
    message: TelegramMessage | None = None


class TelegramVerifyRequest(BaseModel):
    """Request from the web app to link a Telegram chat to the calling user."""

    code: str = Field(..., min_length=1)


class TelegramVerifyResponse(BaseModel):
    """Result of a verification attempt."""

    success: bool
    message: str


class WhatsAppText(BaseModel):
    """WhatsApp text body."""

    body: str


class WhatsAppMessage(BaseModel):
    """Inbound WhatsApp message."""

    model_config = ConfigDict(populate_by_name=True)

    sender: str = Field(..., alias="from")
    type: str
    text: WhatsAppText | None = None
    timestamp: str | None = None


class WhatsAppValue(BaseModel):
    """Payload of a WhatsApp change notification."""

    messages: list[WhatsAppMessage] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class WhatsAppChange(BaseModel):
    """A single change in a WhatsApp webhook entry."""

    value: WhatsAppValue
    field: str | None = None


class WhatsAppEntry(BaseModel):
    """A WhatsApp webhook entry."""

    id: str | None = None
    changes: list[WhatsAppChange] = Field(default_factory=list)


class WhatsAppWebhook(BaseModel):
    """Full WhatsApp Cloud API webhook envelope."""

    object: str | None = None
    entry: list[WhatsAppEntry] = Field(default_factory=list)


class WebhookAck(BaseModel):
    """Acknowledgement returned to chat platforms."""

    ok: bool = True
    handled: int = 0
