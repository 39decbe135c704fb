"""Completion service adapters."""

from .chat_provider import ChatProvider, ChatResponse
from .interface import CompletionService

__all__ = ["ChatProvider", "ChatResponse", "CompletionService"]
