"""API route modules."""

from . import health, tasks, telegram, whatsapp

__all__ = ["health", "tasks", "telegram", "whatsapp"]
