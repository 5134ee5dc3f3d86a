"""Terminal UI module for marknote.

Provides a Textual-based assistant panel.

Module structure (each module hides a design decision):
- widgets.py: Custom widgets (transcript view, streaming reply, input history, log)
- styles.py: CSS styling (layout decisions)
- screens.py: Modal dialogs (settings)
- callbacks.py: Session integration (how the TUI receives updates)
- app.py: Application orchestration (user interaction flow)
"""

from .app import AssistantApp, run_textual_tui
from .callbacks import SessionCallback
from .config import LogLevel
from .widgets import ChatHistoryWidget, ChatInputBar, DebugPanel, StatusBar, StreamingReply

__all__ = [
    "AssistantApp",
    "ChatHistoryWidget",
    "ChatInputBar",
    "DebugPanel",
    "LogLevel",
    "SessionCallback",
    "StatusBar",
    "StreamingReply",
    "run_textual_tui",
]
