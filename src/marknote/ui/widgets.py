"""Custom Textual widgets for the assistant panel.

Hides widget implementation details:
- Transcript rendering and scrolling
- Progressive rendering of the streaming reply
- Input history management
- Status line formatting
- Debug log rendering and level filtering
"""

from collections.abc import Iterable
from datetime import datetime

from rich.text import Text
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import Click
from textual.message import Message as TextualMessage
from textual.widgets import Button, Markdown, RichLog, Static, TextArea

from ..llm.models import SessionState
from ..memory import Message, MessageRole
from .config import (
    INFO_NOTIFY_TIMEOUT,
    INPUT_HISTORY_MAX_SIZE,
    LOG_MAX_MESSAGE_LENGTH,
    LOG_TIMESTAMP_FORMAT,
    LogLevel,
)

WELCOME_TEXT = (
    "Ask me anything, or press Ctrl+O to have me analyze the open document.\n"
    "Click on any message to copy it to clipboard."
)


class ClickableMessage(Vertical):
    """A chat message container that copies its content when clicked."""

    def __init__(self, content: str, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._content = content

    def on_click(self, event: Click) -> None:
        event.stop()
        self.app.copy_to_clipboard(self._content)
        self.app.notify("Copied to clipboard", timeout=INFO_NOTIFY_TIMEOUT)


class ChatHistoryWidget(VerticalScroll):
    """Scrollable view of the committed transcript.

    Always re-rendered from a transcript snapshot, so messages evicted
    from the bounded store disappear from the view too.
    """

    BORDER_TITLE = "Chat"
    BORDER_SUBTITLE = "Conversation history"
    ALLOW_MAXIMIZE = True

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._messages: tuple[Message, ...] = ()

    @property
    def messages(self) -> tuple[Message, ...]:
        return self._messages

    def render_transcript(self, messages: Iterable[Message]) -> None:
        """Replace the view with ``messages``."""
        self._messages = tuple(messages)
        self.remove_children()

        if not self._messages:
            self.mount(Static(WELCOME_TEXT, classes="welcome"))
            self.border_subtitle = "Conversation history"
            return

        self.mount_all(self._build_message(msg) for msg in self._messages)
        self.border_subtitle = f"{len(self._messages)} messages"
        self.scroll_end(animate=False)

    def get_last_response(self) -> str | None:
        """Get the last assistant response."""
        for msg in reversed(self._messages):
            if msg.role == MessageRole.ASSISTANT:
                return msg.text
        return None

    def _build_message(self, msg: Message) -> ClickableMessage:
        if msg.role == MessageRole.USER:
            header_text = f"> You [{msg.created_at.strftime('%H:%M:%S')}]"
            border_class = "user-message"
        else:
            header_text = f"< Assistant [{msg.created_at.strftime('%H:%M:%S')}]"
            border_class = "assistant-message"

        container = ClickableMessage(content=msg.text, classes=f"chat-message {border_class}")
        container.compose_add_child(Static(Text(header_text), classes="message-header"))
        if msg.role == MessageRole.ASSISTANT:
            container.compose_add_child(Markdown(msg.text, classes="message-content"))
        else:
            # Plain text for user messages, no markup interpretation
            container.compose_add_child(Static(Text(msg.text), classes="message-content"))
        return container


class StreamingReply(Static):
    """Live view of the partial reply while a request is in flight.

    Hidden while the session is idle.
    """

    BORDER_TITLE = "Assistant"

    def on_mount(self) -> None:
        self.display = False

    def show_waiting(self) -> None:
        self.border_subtitle = "waiting"
        self.update(Text("Waiting for response...", style="dim italic"))
        self.display = True

    def show_partial(self, text: str) -> None:
        """Render the accumulated partial reply."""
        self.border_subtitle = f"streaming, {len(text)} chars"
        self.update(Text(text))
        self.display = True

    def clear_reply(self) -> None:
        self.update("")
        self.border_subtitle = ""
        self.display = False


class ChatInputBar(Horizontal):
    """Chat input bar with TextArea and Send button."""

    class Submitted(TextualMessage):
        """Message sent when user submits input."""

        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._history: list[str] = []
        self._history_index: int = -1

    def compose(self):
        text_area = TextArea(id="chat-input", show_line_numbers=False)
        text_area.cursor_blink = False
        yield text_area
        yield Button("Send", id="send-btn", variant="success").with_tooltip(
            "Send message (Ctrl+J)"
        )

    def on_mount(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        text_area.focus()
        text_area.highlight_cursor_line = False

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            self._submit()

    def on_key(self, event) -> None:
        """Handle keyboard shortcuts.

        Note: ctrl+enter cannot work in terminals (terminal doesn't pass
        ctrl/shift modifiers with Enter). Use ctrl+j as the submit shortcut.
        """
        if event.key == "ctrl+j":
            self._submit()
            event.prevent_default()
            event.stop()
        elif event.key == "up" and self._is_cursor_at_start():
            self._navigate_history(-1)
            event.prevent_default()
            event.stop()
        elif event.key == "down" and self._is_cursor_at_end():
            self._navigate_history(1)
            event.prevent_default()
            event.stop()

    def _is_cursor_at_start(self) -> bool:
        text_area = self.query_one("#chat-input", TextArea)
        return text_area.cursor_location == (0, 0)

    def _is_cursor_at_end(self) -> bool:
        text_area = self.query_one("#chat-input", TextArea)
        lines = text_area.text.split("\n")
        return text_area.cursor_location == (len(lines) - 1, len(lines[-1]))

    def _navigate_history(self, direction: int) -> None:
        if not self._history:
            return
        text_area = self.query_one("#chat-input", TextArea)
        if direction < 0:
            if self._history_index == -1:
                self._history_index = len(self._history) - 1
            elif self._history_index > 0:
                self._history_index -= 1
        else:
            if self._history_index < len(self._history) - 1:
                self._history_index += 1
            else:
                self._history_index = -1
                text_area.text = ""
                return
        text_area.text = self._history[self._history_index]

    def _submit(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        value = text_area.text.strip()
        if not value:
            return
        if not self._history or self._history[-1] != value:
            self._history.append(value)
            del self._history[:-INPUT_HISTORY_MAX_SIZE]
        self._history_index = -1
        text_area.text = ""
        self.post_message(self.Submitted(value))

    def set_busy(self, busy: bool) -> None:
        """Disable the Send button while a request is in flight."""
        self.query_one("#send-btn", Button).disabled = busy

    def focus_input(self) -> None:
        """Focus the text input."""
        self.query_one("#chat-input", TextArea).focus()


class StatusBar(Static):
    """One-line session status: state, transcript fill and model."""

    _STATE_STYLES = {
        SessionState.IDLE: "green",
        SessionState.SENDING: "yellow",
        SessionState.STREAMING: "cyan",
        SessionState.FAILED: "red",
    }

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._state = SessionState.IDLE
        self._messages = 0
        self._max_messages = 0
        self._model = ""

    def on_mount(self) -> None:
        self._update_display()

    def update_status(
        self,
        state: SessionState | None = None,
        messages: int | None = None,
        max_messages: int | None = None,
        model: str | None = None,
    ) -> None:
        """Update any subset of the displayed fields."""
        if state is not None:
            self._state = state
        if messages is not None:
            self._messages = messages
        if max_messages is not None:
            self._max_messages = max_messages
        if model is not None:
            self._model = model
        self._update_display()

    def _update_display(self) -> None:
        style = self._STATE_STYLES.get(self._state, "white")
        parts = [
            f"[bold {style}]{self._state.value.upper()}[/]",
            f"[bold cyan]Messages:[/] {self._messages}/{self._max_messages}",
            f"[bold magenta]Model:[/] {self._model}",
        ]
        if self._state in (SessionState.SENDING, SessionState.STREAMING):
            parts.append("[dim]Esc to cancel[/]")
        self.update("  ".join(parts))

    def get_plain_text(self) -> str:
        return (
            f"State: {self._state.value}  "
            f"Messages: {self._messages}/{self._max_messages}  "
            f"Model: {self._model}"
        )


class DebugPanel(RichLog):
    """Log panel for real-time tracing with level filtering.

    Shows timestamped log messages from all components.
    Hidden by default, shown with --log-level flag or toggled with Ctrl+D.
    """

    BORDER_TITLE = "Log"
    BORDER_SUBTITLE = "Trace log"

    _LEVEL_COLORS = {
        LogLevel.DEBUG: "dim white",
        LogLevel.INFO: "cyan",
        LogLevel.WARNING: "yellow",
        LogLevel.ERROR: "red",
    }

    _COMPONENT_COLORS = {
        "TUI": "cyan",
        "Session": "green",
        "Stream": "magenta",
        "HTTP": "blue",
        "Settings": "bright_yellow",
        "Notes": "bright_cyan",
    }

    def __init__(self, *args, log_level: int = LogLevel.DEBUG, **kwargs) -> None:
        super().__init__(
            *args,
            markup=True,
            highlight=False,
            auto_scroll=True,
            wrap=False,
            **kwargs
        )
        self._log_level = log_level

    @property
    def log_level(self) -> int:
        """Current log level threshold."""
        return self._log_level

    @log_level.setter
    def log_level(self, level: int) -> None:
        self._log_level = level
        self._update_subtitle()

    def _update_subtitle(self) -> None:
        if self.display:
            self.border_subtitle = f"Level: {LogLevel(self._log_level).name}"
        else:
            self.border_subtitle = "Hidden"

    def on_mount(self) -> None:
        self.display = False

    def log_entry(self, component: str, message: str, level: int = LogLevel.DEBUG) -> None:
        """Add a log entry if it meets the current level threshold."""
        if level < self._log_level:
            return

        if len(message) > LOG_MAX_MESSAGE_LENGTH:
            message = message[:LOG_MAX_MESSAGE_LENGTH] + "..."

        timestamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)
        level_color = self._LEVEL_COLORS.get(level, "white")
        comp_color = self._COMPONENT_COLORS.get(component, "white")

        line = Text.from_markup(
            f"[dim]{timestamp}[/] "
            f"[{level_color}]{LogLevel(level).name:<5}[/] "
            f"[{comp_color}]\\[{component}][/] "
        )
        line.append(message)
        self.write(line)

    def debug(self, component: str, message: str) -> None:
        self.log_entry(component, message, LogLevel.DEBUG)

    def info(self, component: str, message: str) -> None:
        self.log_entry(component, message, LogLevel.INFO)

    def warning(self, component: str, message: str) -> None:
        self.log_entry(component, message, LogLevel.WARNING)

    def error(self, component: str, message: str) -> None:
        self.log_entry(component, message, LogLevel.ERROR)

    def show(self) -> None:
        self.display = True
        self._update_subtitle()

    def hide(self) -> None:
        self.display = False
        self.border_subtitle = "Hidden"

    def toggle(self) -> bool:
        """Toggle visibility. Returns new state."""
        if self.display:
            self.hide()
            return False
        self.show()
        return True
