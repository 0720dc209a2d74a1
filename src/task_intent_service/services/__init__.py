"""Business logic services."""

from .classifier import HuggingFaceClassifier, IntentClassifier
from .extractor import BedrockExtractor, FieldExtractor, PatternExtractor
from .pipeline import PipelineSession, SessionRegistry, TaskTextProcessor
from .summarizer import summarize_tasks
from .task_store import PostgrestClient, SupabaseTaskStore
from .user_context import gather_user_context

__all__ = [
    "HuggingFaceClassifier",
    "IntentClassifier",
    "BedrockExtractor",
    "PatternExtractor",
    "FieldExtractor",
    "TaskTextProcessor",
    "PipelineSession",
    "SessionRegistry",
    "PostgrestClient",
    "SupabaseTaskStore",
    "gather_user_context",
    "summarize_tasks",
]
