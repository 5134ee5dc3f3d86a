"""Callback interface for StreamingChatSession integration.

Hides the details of how the TUI receives updates from the session.
The session runs on the app's event loop, so widgets are updated
directly from the callbacks.
"""

from typing import TYPE_CHECKING

from ..llm.models import SessionState
from ..memory import Message
from .config import ERROR_NOTIFY_TIMEOUT, LogLevel

if TYPE_CHECKING:
    from textual.app import App

    from ..llm.session import StreamingChatSession
    from .widgets import (
        ChatHistoryWidget,
        ChatInputBar,
        DebugPanel,
        StatusBar,
        StreamingReply,
    )


class SessionCallback:
    """Routes session events to the assistant panel widgets."""

    def __init__(
        self,
        chat: "ChatHistoryWidget",
        reply: "StreamingReply",
        status: "StatusBar",
        log_panel: "DebugPanel",
        input_bar: "ChatInputBar | None" = None,
        app: "App | None" = None,
    ) -> None:
        self.chat = chat
        self.reply = reply
        self.status = status
        self.log_panel = log_panel
        self.input_bar = input_bar
        self.app = app
        self._session: "StreamingChatSession | None" = None

    def attach(self, session: "StreamingChatSession") -> None:
        """Register this handler's callbacks on ``session``."""
        self._session = session
        session.set_callbacks(
            on_partial=self.on_partial,
            on_commit=self.on_commit,
            on_error=self.on_error,
            on_state_change=self.on_state_change,
        )
        session.set_debug_callback(self.debug)
        self.status.update_status(
            state=session.state,
            messages=len(session.store),
            max_messages=session.store.max_messages,
            model=session.config.model,
        )

    def refresh_transcript(self) -> None:
        """Re-render the chat view from the session's transcript."""
        if self._session is None:
            return
        store = self._session.store
        self.chat.render_transcript(store.snapshot())
        self.status.update_status(messages=len(store))

    def on_partial(self, text: str) -> None:
        self.reply.show_partial(text)

    def on_commit(self, message: Message) -> None:
        self.reply.clear_reply()
        self.refresh_transcript()

    def on_error(self, message: str) -> None:
        self.reply.clear_reply()
        if self.app is not None:
            self.app.notify(f"Error: {message}", severity="error", timeout=ERROR_NOTIFY_TIMEOUT)

    def on_state_change(self, state: SessionState) -> None:
        self.status.update_status(state=state)
        busy = state in (SessionState.SENDING, SessionState.STREAMING)
        if self.input_bar is not None:
            self.input_bar.set_busy(busy)
        if state == SessionState.SENDING:
            self.reply.show_waiting()
        elif state == SessionState.IDLE:
            self.reply.clear_reply()

    def debug(self, level: str, component: str, message: str) -> None:
        """Route debug messages to the log panel."""
        self.log_panel.log_entry(component, message, LogLevel.from_string(level))
