"""CSS styles for the TUI.

Hides layout and styling decisions from the application logic.
Uses Textual CSS features: nesting, pseudo-classes, variables.
"""

APP_CSS = """
Screen {
    layout: vertical;
    background: $background;
}

/* ============================================
   Chat History Panel
   ============================================ */
#chat-history {
    height: 1fr;
    background: $panel;
    border: round $primary 60%;
    border-title-color: $primary;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    scrollbar-gutter: stable;

    &:focus {
        border: round $primary;
    }
}

.chat-message {
    height: auto;
    margin: 1 0 0 0;
    padding: 0 1;

    &:hover {
        background: $boost;
    }
}

.user-message {
    border-left: thick $secondary;
}

.assistant-message {
    border-left: thick $primary;
}

.message-header {
    color: $text-muted;
    text-style: bold;
}

.message-content {
    height: auto;
    margin: 0;
}

.welcome {
    color: $text-muted;
    padding: 1 2;
}

/* ============================================
   Streaming Reply - progressive rendering
   ============================================ */
#streaming-reply {
    height: auto;
    max-height: 40%;
    border: round $accent;
    border-title-color: $accent;
    padding: 0 1;
    overflow-y: auto;
}

/* ============================================
   Bottom Bar - status + input
   ============================================ */
#bottom-bar {
    height: auto;
    dock: bottom;
    margin-bottom: 1;
}

#status-bar {
    height: 1;
    padding: 0 1;
    background: $surface;
    color: $foreground;
}

#chat-input-bar {
    height: auto;
    max-height: 10;
    padding: 0 1;
}

#chat-input {
    width: 1fr;
    height: auto;
    min-height: 3;
    max-height: 8;
    border: tall $border;

    &:focus {
        border: tall $primary;
    }
}

#send-btn {
    width: 10;
    margin-left: 1;
}

/* ============================================
   Debug Panel
   ============================================ */
#debug-panel {
    height: 12;
    dock: bottom;
    border: round $warning 60%;
    border-title-color: $warning;
    border-subtitle-color: $text-muted;
    background: $panel;
}
"""

SETTINGS_CSS = """
SettingsScreen {
    align: center middle;
    background: $background 70%;
}

#settings-dialog {
    width: 80;
    height: auto;
    max-height: 90%;
    border: tall $accent;
    background: $surface;
    padding: 1 2;
}

#settings-title {
    width: 100%;
    text-align: center;
    text-style: bold;
    color: $accent;
    padding: 0 0 1 0;
    border-bottom: solid $border;
    margin-bottom: 1;
}

.settings-label {
    color: $text-muted;
    margin-top: 1;
}

#settings-system-prompt {
    height: 6;
}

#settings-numbers {
    height: auto;

    Vertical {
        width: 1fr;
        height: auto;
    }
}

#settings-buttons {
    width: 100%;
    height: 3;
    align: center middle;
    margin-top: 1;

    Button {
        margin: 0 1;
        min-width: 10;
    }
}
"""
