"""Modal screens for the TUI.

This module hides the design decisions about:
- Settings dialog appearance (CSS, layout)
- Which config fields are editable and how they are entered
- Keyboard shortcuts for dialogs

To change how the settings dialog looks, modify only this file.
"""

from pydantic import ValidationError
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Select, Static, TextArea

from ..llm.models import SessionConfig
from .config import ERROR_NOTIFY_TIMEOUT, KNOWN_MODELS
from .styles import SETTINGS_CSS


class SettingsScreen(ModalScreen[SessionConfig | None]):
    """Modal dialog for editing the assistant configuration.

    Dismisses with the new SessionConfig on save, or None on cancel.
    """

    CSS = SETTINGS_CSS

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
        Binding("ctrl+s", "save", "Save", show=False),
    ]

    def __init__(self, config: SessionConfig) -> None:
        super().__init__()
        self._config = config

    def _model_options(self) -> list[tuple[str, str]]:
        options = [(label, value) for value, label in KNOWN_MODELS]
        if self._config.model not in {value for value, _ in KNOWN_MODELS}:
            options.append((self._config.model, self._config.model))
        return options

    def compose(self) -> ComposeResult:
        with Vertical(id="settings-dialog"):
            yield Static("Assistant Settings", id="settings-title")

            yield Label("API key", classes="settings-label")
            yield Input(self._config.api_key, password=True, id="settings-api-key")

            yield Label("Server URL", classes="settings-label")
            yield Input(self._config.endpoint_base_url, id="settings-server-url")

            yield Label("System prompt", classes="settings-label")
            yield TextArea(self._config.system_prompt, id="settings-system-prompt")

            yield Label("Model", classes="settings-label")
            yield Select(
                self._model_options(),
                value=self._config.model,
                allow_blank=False,
                id="settings-model",
            )

            with Horizontal(id="settings-numbers"):
                with Vertical():
                    yield Label("Temperature (0-2)", classes="settings-label")
                    yield Input(
                        str(self._config.temperature),
                        type="number",
                        id="settings-temperature",
                    )
                with Vertical():
                    yield Label("Max tokens", classes="settings-label")
                    yield Input(
                        str(self._config.max_tokens),
                        type="integer",
                        id="settings-max-tokens",
                    )

            with Horizontal(id="settings-buttons"):
                yield Button("Cancel", id="btn-cancel", variant="default")
                yield Button("Save", id="btn-save", variant="success")

    def collect(self) -> SessionConfig:
        """Build a config from the current field values.

        Raises:
            ValidationError: If a field value is out of range
        """
        return self._config.with_updates(
            api_key=self.query_one("#settings-api-key", Input).value.strip(),
            endpoint_base_url=self.query_one("#settings-server-url", Input).value.strip(),
            system_prompt=self.query_one("#settings-system-prompt", TextArea).text,
            model=self.query_one("#settings-model", Select).value,
            temperature=self.query_one("#settings-temperature", Input).value,
            max_tokens=self.query_one("#settings-max-tokens", Input).value,
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-save":
            self.action_save()
        elif event.button.id == "btn-cancel":
            self.action_cancel()

    def action_save(self) -> None:
        try:
            config = self.collect()
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors())
            self.app.notify(
                f"Invalid settings: {fields}",
                severity="error",
                timeout=ERROR_NOTIFY_TIMEOUT,
            )
            return
        self.dismiss(config)

    def action_cancel(self) -> None:
        self.dismiss(None)
