"""Pydantic models for request/response schemas."""

from .analysis import EnhancedAnalysis, ExtractionResult, RawExtraction, UserContext
from .bots import TelegramUpdate, TelegramVerifyRequest, TelegramVerifyResponse, WebhookAck, WhatsAppWebhook
from .pipeline import (
    CreateOutcome,
    PipelineOutcome,
    ProcessingState,
    ProcessingStep,
    SearchOutcome,
    TaskAnalyzeRequest,
    TaskProcessRequest,
)
from .summary import TaskSummaryRequest, TaskSummaryResponse
from .task import Task, TaskDraft, TaskPriority, TaskStatus

__all__ = [
    "Task",
    "TaskDraft",
    "TaskPriority",
    "TaskStatus",
    "UserContext",
    "RawExtraction",
    "ExtractionResult",
    "EnhancedAnalysis",
    "ProcessingStep",
    "ProcessingState",
    "SearchOutcome",
    "CreateOutcome",
    "PipelineOutcome",
    "TaskAnalyzeRequest",
    "TaskProcessRequest",
    "TaskSummaryRequest",
    "TaskSummaryResponse",
    "TelegramUpdate",
    "TelegramVerifyRequest",
    "TelegramVerifyResponse",
    "WhatsAppWebhook",
    "WebhookAck",
]
