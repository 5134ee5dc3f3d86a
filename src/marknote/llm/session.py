"""Streaming chat session for the assistant panel.

Owns the conversation state for one panel and drives at most one
request/response exchange at a time:

    IDLE -> SENDING -> STREAMING -> IDLE          (success)
    SENDING | STREAMING -> FAILED -> IDLE         (terminal error)
    SENDING | STREAMING -> IDLE                   (cancel)

All state changes happen on the event loop thread; the only suspension
points are opening the request and reading each body chunk.
"""

import asyncio
from collections.abc import Callable
from typing import Any
from uuid import uuid4

from ..memory import ChatTranscriptStore, Message
from .base import ChatTransport
from .errors import ChatError, FrameParseError, HttpError, RequestRejected, TransportFailure
from .models import (
    ChatCompletionRequest,
    SessionConfig,
    SessionState,
    analysis_prompt,
    build_request,
)
from .sse import SSEDecoder


def _truncate(text: str, limit: int = 60) -> str:
    return text[:limit] + "..." if len(text) > limit else text


class StreamingChatSession:
    """Conversation state plus the single in-flight streaming exchange.

    Constructed explicitly by the hosting view and identified by
    ``session_id``. Progress is observed through callbacks and the
    transcript store, never through return values of ``submit``:

    - on_partial(text): full partial reply after each fragment
    - on_commit(message): assistant message committed to the transcript
    - on_error(message): terminal error, reported once per exchange
    - on_state_change(state): every state transition
    """

    def __init__(
        self,
        transport: ChatTransport,
        store: ChatTranscriptStore | None = None,
        config: SessionConfig | None = None,
        on_partial: Callable[[str], None] | None = None,
        on_commit: Callable[[Message], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        on_state_change: Callable[[SessionState], None] | None = None,
        session_id: str | None = None,
    ) -> None:
        self._transport = transport
        self._store = store if store is not None else ChatTranscriptStore()
        self._config = config or SessionConfig()
        self.session_id = session_id or str(uuid4())

        self._on_partial = on_partial
        self._on_commit = on_commit
        self._on_error = on_error
        self._on_state_change = on_state_change
        self._debug_callback: Any | None = None

        self._state = SessionState.IDLE
        self._partial: list[str] = []
        self._last_error: ChatError | None = None
        self._task: asyncio.Task | None = None
        # Bumped on every new exchange and on cancel; a task only touches
        # session state while its generation is current.
        self._generation = 0
        self._background: set[asyncio.Task] = set()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def partial_reply(self) -> str:
        """Assistant text accumulated so far for the in-flight request."""
        return "".join(self._partial)

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def store(self) -> ChatTranscriptStore:
        return self._store

    @property
    def in_flight(self) -> bool:
        return self._state in (SessionState.SENDING, SessionState.STREAMING)

    @property
    def last_error(self) -> ChatError | None:
        """Terminal error of the most recent exchange, if it failed."""
        return self._last_error

    @property
    def analysis_port(self) -> Callable[[str], bool]:
        """Callable the editor invokes to request analysis of a document."""
        return self.submit_document_for_analysis

    def set_debug_callback(self, callback: Any) -> None:
        """Set the debug callback for detailed execution logging.

        Args:
            callback: Callable(level: str, component: str, message: str)
                      level: 'debug', 'info', 'warning', 'error'
        """
        self._debug_callback = callback

    def set_callbacks(
        self,
        on_partial: Callable[[str], None] | None = None,
        on_commit: Callable[[Message], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        on_state_change: Callable[[SessionState], None] | None = None,
    ) -> None:
        """Attach UI callbacks after construction."""
        self._on_partial = on_partial
        self._on_commit = on_commit
        self._on_error = on_error
        self._on_state_change = on_state_change

    def update_config(self, config: SessionConfig) -> None:
        """Replace the config. An in-flight request keeps its own snapshot."""
        self._config = config
        self._debug("info", "Session", f"Config updated (model={config.model})")

    def _debug(self, level: str, component: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, component, message)

    def submit(self, user_text: str) -> bool:
        """Send a chat message.

        Returns immediately; the reply streams in through the callbacks.
        Must be called from a running event loop.

        Returns:
            True if a request was started, False if it was rejected
        """
        if not user_text.strip():
            self._debug("debug", "Session", "Ignoring empty message")
            return False
        return self._start(user_text)

    def submit_document_for_analysis(self, document_text: str) -> bool:
        """Ask the assistant to analyze a document instead of a typed message."""
        if not document_text.strip():
            self._debug("debug", "Session", "Ignoring empty document")
            return False
        return self._start(analysis_prompt(document_text))

    def _start(self, user_text: str) -> bool:
        if self._state != SessionState.IDLE:
            rejected = RequestRejected(
                f"Request already in flight (state={self._state.value})"
            )
            self._debug("warning", "Session", str(rejected))
            return False

        loop = asyncio.get_running_loop()
        config = self._config

        self._store.append(Message.user(user_text))
        # ContextWindow is what the store still holds before the new turn
        history = list(self._store.snapshot())[:-1]
        request = build_request(config, history, user_text)
        self._debug(
            "info",
            "Session",
            f"Sending '{_truncate(user_text)}' with {len(history)} history message(s)",
        )

        self._generation += 1
        self._last_error = None
        self._partial = []
        self._set_state(SessionState.SENDING)

        task = loop.create_task(self._run_exchange(request, self._generation))
        self._task = task
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return True

    def cancel(self) -> bool:
        """Cancel the in-flight request and discard its partial reply.

        Idempotent while idle.

        Returns:
            True if a request was cancelled
        """
        if self._task is None or not self.in_flight:
            return False

        task = self._task
        self._task = None
        self._generation += 1
        task.cancel()

        discarded = len(self.partial_reply)
        self._partial = []
        self._debug("info", "Session", f"Cancelled; discarded {discarded} chars of partial reply")
        self._set_state(SessionState.IDLE)
        return True

    async def wait(self) -> Message | None:
        """Wait for the in-flight exchange to finish.

        Returns:
            The committed assistant message, or None if nothing was
            committed (error, cancellation, empty reply, nothing in flight)
        """
        task = self._task
        if task is None:
            return None
        await asyncio.wait({task})
        if task.cancelled():
            return None
        return task.result()

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _set_state(self, state: SessionState) -> None:
        if state == self._state:
            return
        self._state = state
        if self._on_state_change:
            self._on_state_change(state)

    def _on_frame_error(self, error: FrameParseError) -> None:
        self._debug("warning", "Stream", f"Skipping frame: {error}")

    async def _run_exchange(
        self, request: ChatCompletionRequest, generation: int
    ) -> Message | None:
        decoder = SSEDecoder(on_parse_error=self._on_frame_error)
        try:
            async with self._transport.open_stream(request) as stream:
                self._debug("debug", "HTTP", f"Response status {stream.status_code}")
                if not stream.is_success:
                    body = await stream.read_text()
                    raise HttpError(stream.status_code, body)

                async for chunk in stream.aiter_raw():
                    if not self._is_current(generation):
                        return None
                    if self._state == SessionState.SENDING:
                        self._set_state(SessionState.STREAMING)
                    for fragment in decoder.feed(chunk):
                        self._partial.append(fragment)
                        if self._on_partial:
                            self._on_partial(self.partial_reply)

            residue = decoder.flush()
            if residue.strip():
                self._debug(
                    "warning", "Stream", f"Discarding unterminated line: {_truncate(residue)}"
                )
            if not decoder.done:
                self._debug("debug", "Stream", "Stream ended without [DONE]")
        except ChatError as e:
            if self._is_current(generation):
                self._fail(e)
            return None
        except asyncio.CancelledError:
            # Cancelled from outside cancel(), e.g. app shutdown
            if self._is_current(generation):
                self._partial = []
                self._set_state(SessionState.IDLE)
            raise
        except Exception as e:
            if self._is_current(generation):
                self._fail(TransportFailure(f"Unexpected {type(e).__name__}: {e}"))
            return None
        finally:
            if self._is_current(generation) and self._task is asyncio.current_task():
                self._task = None

        if not self._is_current(generation):
            return None
        return self._commit()

    def _commit(self) -> Message | None:
        text = self.partial_reply
        self._partial = []

        if not text:
            self._debug("info", "Session", "Empty reply, nothing committed")
            self._set_state(SessionState.IDLE)
            return None

        message = Message.assistant(text)
        self._store.append(message)
        self._debug("info", "Session", f"Committed assistant reply ({len(text)} chars)")
        self._set_state(SessionState.IDLE)
        if self._on_commit:
            self._on_commit(message)
        return message

    def _fail(self, error: ChatError) -> None:
        discarded = len(self.partial_reply)
        self._partial = []
        self._last_error = error
        self._debug(
            "error",
            "Session",
            f"{type(error).__name__}: {error} (discarded {discarded} chars)",
        )
        self._set_state(SessionState.FAILED)
        if self._on_error:
            self._on_error(str(error))
        self._set_state(SessionState.IDLE)
