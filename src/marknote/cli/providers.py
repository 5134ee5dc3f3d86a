"""Provider factory functions for CLI.

Centralizes creation of the settings store, chat transport, notes client
and session from environment variables. Hides configuration details from
command implementations.
"""

from collections.abc import Callable

import httpx
from rich.console import Console
from rich.markup import escape

from ..llm import ChatTransport, StreamingChatSession, create_chat_transport
from ..memory import DEFAULT_CONTEXT_WINDOW, ChatTranscriptStore
from ..notes import NotesClient
from ..settings import SettingsStore

# Default console for output
_console = Console()

_LEVEL_STYLES = {
    "debug": "dim",
    "info": "cyan",
    "warning": "yellow",
    "error": "red",
}


def get_settings_store(console: Console | None = None) -> SettingsStore:
    """Create the settings store.

    Environment variables:
        MARKNOTE_SETTINGS: Settings file path (default: ~/.marknote/assistant.json)
    """
    con = console or _console
    return SettingsStore(warn=lambda message: con.print(f"[yellow]Warning: {escape(message)}[/yellow]"))


def get_transport() -> ChatTransport:
    """Create the chat transport used for streaming completions."""
    return create_chat_transport("httpx")


def get_notes_client() -> NotesClient:
    """Create the notes server client.

    Environment variables:
        MARKNOTE_NOTES_URL: Notes server base URL (default: http://localhost:5000)
    """
    return NotesClient()


def get_http_client() -> httpx.AsyncClient:
    """Create a plain HTTP client for endpoint health checks."""
    return httpx.AsyncClient(timeout=10.0)


def make_debug_printer(console: Console) -> Callable[[str, str, str], None]:
    """Debug callback that prints session trace lines to ``console``."""

    def _print(level: str, component: str, message: str) -> None:
        style = _LEVEL_STYLES.get(level, "white")
        console.print(f"[{style}]{level.upper():<7}[/{style}] [bold]\\[{component}][/bold] {escape(message)}", highlight=False)

    return _print


def get_session(
    settings: SettingsStore,
    transport: ChatTransport,
    max_messages: int = DEFAULT_CONTEXT_WINDOW,
    debug_console: Console | None = None,
) -> StreamingChatSession:
    """Create a session from stored settings.

    Args:
        settings: Store the config is loaded from
        transport: Chat transport
        max_messages: Transcript bound N
        debug_console: Console for session trace output, None to disable
    """
    session = StreamingChatSession(
        transport=transport,
        store=ChatTranscriptStore(max_messages),
        config=settings.load(),
    )
    if debug_console is not None:
        session.set_debug_callback(make_debug_printer(debug_console))
    return session
