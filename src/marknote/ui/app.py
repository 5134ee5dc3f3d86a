"""Main Textual TUI application.

Hosts one assistant panel: owns the StreamingChatSession and wires it to
the widgets and the settings store.
"""

from collections.abc import Awaitable, Callable
from pathlib import Path

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Footer, Header

from ..llm import ChatTransport, SessionConfig, StreamingChatSession, create_chat_transport
from ..memory import DEFAULT_CONTEXT_WINDOW, ChatTranscriptStore
from ..notes import NotesError
from ..settings import SettingsStore
from .callbacks import SessionCallback
from .config import ERROR_NOTIFY_TIMEOUT, INFO_NOTIFY_TIMEOUT, TRANSCRIPT_EXPORT_NAME, LogLevel
from .screens import SettingsScreen
from .styles import APP_CSS
from .widgets import (
    ChatHistoryWidget,
    ChatInputBar,
    DebugPanel,
    StatusBar,
    StreamingReply,
)

DocumentLoader = Callable[[], Awaitable[str]]


class AssistantApp(App):
    """Textual TUI for the markdown notes assistant."""

    CSS = APP_CSS
    TITLE = "marknote"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("escape", "cancel_request", "Cancel"),
        Binding("ctrl+o", "analyze_document", "Analyze"),
        Binding("ctrl+s", "open_settings", "Settings"),
        Binding("ctrl+k", "clear_chat", "Clear Chat"),
        Binding("ctrl+r", "copy_last_response", "Copy Response"),
        Binding("ctrl+e", "export_transcript", "Export"),
        Binding("ctrl+d", "toggle_debug", "Debug"),
    ]

    def __init__(
        self,
        settings: SettingsStore,
        transport: ChatTransport | None = None,
        max_messages: int = DEFAULT_CONTEXT_WINDOW,
        log_level: str | None = None,
        document_loader: DocumentLoader | None = None,
        document_name: str | None = None,
    ) -> None:
        super().__init__()
        self._settings = settings
        self._transport = transport or create_chat_transport("httpx")
        self._log_level = log_level
        self._document_loader = document_loader
        self._document_name = document_name
        self._callback: SessionCallback | None = None
        self.session = StreamingChatSession(
            transport=self._transport,
            store=ChatTranscriptStore(max_messages),
            config=settings.load(),
        )

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield ChatHistoryWidget(id="chat-history")
        yield StreamingReply(id="streaming-reply")
        with Vertical(id="bottom-bar"):
            yield StatusBar(id="status-bar")
            yield ChatInputBar(id="chat-input-bar")
        yield DebugPanel(id="debug-panel")
        yield Footer()

    def on_mount(self) -> None:
        """Called when app is mounted."""
        self.theme = "catppuccin-mocha"

        log_panel = self.query_one("#debug-panel", DebugPanel)
        if self._log_level is not None:
            log_panel.log_level = LogLevel.from_string(self._log_level)
            log_panel.show()
            log_panel.info("TUI", f"Log panel enabled with level: {self._log_level.upper()}")

        self._callback = SessionCallback(
            chat=self.query_one("#chat-history", ChatHistoryWidget),
            reply=self.query_one("#streaming-reply", StreamingReply),
            status=self.query_one("#status-bar", StatusBar),
            log_panel=log_panel,
            input_bar=self.query_one("#chat-input-bar", ChatInputBar),
            app=self,
        )
        self._callback.attach(self.session)
        self._callback.refresh_transcript()
        self._update_subtitle(self.session.config)

        log_panel.info("TUI", f"Session {self.session.session_id} ready")
        self.query_one("#chat-input-bar", ChatInputBar).focus_input()

    async def on_unmount(self) -> None:
        """Release the stream and the HTTP client when the app exits."""
        self.session.cancel()
        await self._transport.close()

    def _update_subtitle(self, config: SessionConfig) -> None:
        document = f" | {self._document_name}" if self._document_name else ""
        self.sub_title = f"{config.model} | {config.endpoint_base_url}{document}"

    def _log(self, level: str, message: str) -> None:
        if self._callback is not None:
            self._callback.debug(level, "TUI", message)

    def on_chat_input_bar_submitted(self, event: ChatInputBar.Submitted) -> None:
        """Handle user input submission."""
        if self.session.submit(event.value):
            self._callback.refresh_transcript()
        elif self.session.in_flight:
            self.notify(
                "The assistant is still answering (Esc to cancel)",
                severity="warning",
                timeout=INFO_NOTIFY_TIMEOUT,
            )

    def action_cancel_request(self) -> None:
        """Cancel the in-flight request."""
        if self.session.cancel():
            self.notify("Cancelled", severity="warning", timeout=INFO_NOTIFY_TIMEOUT)

    def action_analyze_document(self) -> None:
        """Send the open document to the assistant for analysis."""
        if self._document_loader is None:
            self.notify(
                "No document open (start with --document PATH)",
                severity="warning",
                timeout=INFO_NOTIFY_TIMEOUT,
            )
            return
        if self.session.in_flight:
            self.notify("The assistant is still answering", severity="warning", timeout=INFO_NOTIFY_TIMEOUT)
            return
        self._load_and_analyze()

    @work(exclusive=True, group="document")
    async def _load_and_analyze(self) -> None:
        """Load the document in a worker and hand it to the analysis port."""
        try:
            text = await self._document_loader()
        except (NotesError, OSError, ValueError) as e:
            self._log("error", f"Failed to load document: {e}")
            self.notify(f"Error: {e}", severity="error", timeout=ERROR_NOTIFY_TIMEOUT)
            return

        self._log("info", f"Loaded document ({len(text)} chars)")
        analyze = self.session.analysis_port
        if analyze(text):
            self._callback.refresh_transcript()
        else:
            self.notify("Document is empty", severity="warning", timeout=INFO_NOTIFY_TIMEOUT)

    def action_open_settings(self) -> None:
        """Open the settings dialog."""
        self.push_screen(SettingsScreen(self.session.config), self._apply_settings)

    def _apply_settings(self, config: SessionConfig | None) -> None:
        if config is None:
            return
        try:
            self._settings.save(config)
        except OSError as e:
            self.notify(f"Could not save settings: {e}", severity="error", timeout=ERROR_NOTIFY_TIMEOUT)
        self.session.update_config(config)
        self.query_one("#status-bar", StatusBar).update_status(model=config.model)
        self._update_subtitle(config)
        self.notify("Settings saved", timeout=INFO_NOTIFY_TIMEOUT)

    def action_clear_chat(self) -> None:
        """Clear the transcript (cancelling any in-flight request)."""
        self.session.cancel()
        self.session.store.clear()
        self._callback.refresh_transcript()
        self.notify("Chat cleared", timeout=INFO_NOTIFY_TIMEOUT)

    def action_copy_last_response(self) -> None:
        """Copy last assistant response to clipboard."""
        chat = self.query_one("#chat-history", ChatHistoryWidget)
        response = chat.get_last_response()
        if response:
            self.copy_to_clipboard(response)
            self.notify("Response copied", timeout=INFO_NOTIFY_TIMEOUT)
        else:
            self.notify("No response to copy", severity="warning", timeout=INFO_NOTIFY_TIMEOUT)

    def action_export_transcript(self) -> None:
        """Write the transcript to a markdown file in the working directory."""
        markdown = self.session.store.to_markdown()
        if not markdown:
            self.notify("Nothing to export", severity="warning", timeout=INFO_NOTIFY_TIMEOUT)
            return
        path = Path(TRANSCRIPT_EXPORT_NAME)
        try:
            path.write_text(markdown, encoding="utf-8")
        except OSError as e:
            self.notify(f"Export failed: {e}", severity="error", timeout=ERROR_NOTIFY_TIMEOUT)
            return
        self.notify(f"Transcript exported to {path}", timeout=INFO_NOTIFY_TIMEOUT)

    def action_toggle_debug(self) -> None:
        """Toggle the log panel visibility."""
        log_panel = self.query_one("#debug-panel", DebugPanel)
        is_visible = log_panel.toggle()
        self.notify(f"Log panel {'shown' if is_visible else 'hidden'}", timeout=INFO_NOTIFY_TIMEOUT)


async def run_textual_tui(
    settings: SettingsStore,
    transport: ChatTransport | None = None,
    max_messages: int = DEFAULT_CONTEXT_WINDOW,
    log_level: str | None = None,
    document_loader: DocumentLoader | None = None,
    document_name: str | None = None,
) -> None:
    """Run the Textual TUI.

    Args:
        settings: Settings store the session config is loaded from and saved to
        transport: Chat transport (default: httpx)
        max_messages: Transcript bound N
        log_level: Log level for panel (debug/info/warning/error), None to hide
        document_loader: Async callable returning the document to analyze
        document_name: Display name of the document
    """
    app = AssistantApp(
        settings=settings,
        transport=transport,
        max_messages=max_messages,
        log_level=log_level,
        document_loader=document_loader,
        document_name=document_name,
    )
    await app.run_async()
