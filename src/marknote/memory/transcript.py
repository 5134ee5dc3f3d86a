"""Bounded, append-only transcript of committed messages.

Session-only storage: data is lost when the application exits.
The only shrink operation is automatic front eviction once the
configured bound is exceeded (plus a whole-transcript clear).
"""

from collections import deque
from collections.abc import Iterator

from .models import Message, MessageRole

DEFAULT_CONTEXT_WINDOW = 20


class ChatTranscriptStore:
    """Ordered log of finalized messages that the UI renders.

    Distinct from the in-flight partial reply a session is accumulating.
    Once more than ``max_messages`` have been appended, the oldest
    messages are evicted so the length stays at ``max_messages``.
    """

    def __init__(self, max_messages: int = DEFAULT_CONTEXT_WINDOW):
        if max_messages < 1:
            raise ValueError(f"max_messages must be at least 1, got {max_messages}")
        self._max_messages = max_messages
        self._messages: deque[Message] = deque(maxlen=max_messages)

    @property
    def max_messages(self) -> int:
        """Configured bound N."""
        return self._max_messages

    def append(self, message: Message) -> None:
        """Append a message, evicting from the front past the bound."""
        self._messages.append(message)

    def snapshot(self) -> tuple[Message, ...]:
        """Return an immutable ordered view of all current messages."""
        return tuple(self._messages)

    def last_n(self, n: int) -> list[Message]:
        """Return the most recent ``n`` messages in original order."""
        if n <= 0:
            return []
        messages = list(self._messages)
        return messages[-n:]

    def last_assistant_message(self) -> Message | None:
        for message in reversed(self._messages):
            if message.role == MessageRole.ASSISTANT:
                return message
        return None

    def clear(self) -> None:
        """Drop the whole transcript."""
        self._messages.clear()

    def to_markdown(self) -> str:
        """Render the transcript as a markdown document."""
        if not self._messages:
            return ""

        sections = []
        for message in self._messages:
            heading = "You" if message.role == MessageRole.USER else "Assistant"
            timestamp = message.created_at.strftime("%Y-%m-%d %H:%M:%S")
            sections.append(f"## {heading} ({timestamp})\n\n{message.text}")
        return "\n\n".join(sections) + "\n"

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.snapshot())
