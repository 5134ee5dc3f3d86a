"""Conversation memory module for marknote.

Holds the committed chat transcript for an assistant panel.
"""

from .models import Message, MessageRole
from .transcript import DEFAULT_CONTEXT_WINDOW, ChatTranscriptStore

__all__ = [
    "DEFAULT_CONTEXT_WINDOW",
    "ChatTranscriptStore",
    "Message",
    "MessageRole",
]
