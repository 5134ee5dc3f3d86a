"""
marknote: an AI assistant panel for a markdown notes workspace.

This package follows Parnas's information hiding principles,
where each module hides a specific design decision.
"""

__version__ = "0.1.0"

from .llm import (
    SessionConfig,
    SessionState,
    StreamingChatSession,
    create_chat_transport,
)
from .memory import ChatTranscriptStore, Message, MessageRole
from .settings import SettingsStore

__all__ = [
    "ChatTranscriptStore",
    "Message",
    "MessageRole",
    "SessionConfig",
    "SessionState",
    "SettingsStore",
    "StreamingChatSession",
    "create_chat_transport",
]
