"""Data models for the conversation transcript.

These models define the committed messages that the assistant panel renders,
independent of how the transcript is held in memory.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    """Role of a message sender.

    SYSTEM only appears in outgoing request bodies and is never committed.
    """

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Message(BaseModel):
    """A committed chat message.

    Immutable once created; conversation order is commit order.
    """

    model_config = ConfigDict(frozen=True)

    role: MessageRole = Field(description="Who sent the message")
    text: str = Field(description="Message body")
    created_at: datetime = Field(default_factory=datetime.now)

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(role=MessageRole.USER, text=text)

    @classmethod
    def assistant(cls, text: str) -> "Message":
        return cls(role=MessageRole.ASSISTANT, text=text)

    def to_request_dict(self) -> dict[str, str]:
        """Convert to the chat completions wire format."""
        return {"role": self.role.value, "content": self.text}
