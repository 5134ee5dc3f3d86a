"""Tests for the Textual assistant panel."""
import json

import pytest

from conftest import sse_frame
from marknote.llm import SessionConfig, SessionState
from marknote.settings import SettingsStore
from marknote.ui import AssistantApp, ChatHistoryWidget, ChatInputBar, LogLevel, StatusBar


class TestLogLevel:
    """Tests for LogLevel parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("debug", LogLevel.DEBUG),
            ("INFO", LogLevel.INFO),
            ("warning", LogLevel.WARNING),
            ("warn", LogLevel.WARNING),
            ("verbose", LogLevel.DEBUG),
            ("error", LogLevel.ERROR),
        ],
    )
    def test_from_string(self, value, expected):
        assert LogLevel.from_string(value) == expected

    def test_levels_are_ordered_by_severity(self):
        assert LogLevel.DEBUG < LogLevel.INFO < LogLevel.WARNING < LogLevel.ERROR
        assert LogLevel(30).name == "WARNING"


class TestAssistantApp:
    """Tests for AssistantApp."""

    @pytest.mark.asyncio
    async def test_submit_streams_into_transcript(self, settings_path, queue_transport):
        app = AssistantApp(settings=SettingsStore(), transport=queue_transport)

        async with app.run_test() as pilot:
            app.on_chat_input_bar_submitted(ChatInputBar.Submitted("Hi"))
            await pilot.pause()
            assert app.session.state == SessionState.SENDING

            await queue_transport.push(sse_frame("Hello"), None)
            await pilot.pause()

            chat = app.query_one("#chat-history", ChatHistoryWidget)
            assert [m.text for m in chat.messages] == ["Hi", "Hello"]
            assert chat.get_last_response() == "Hello"
            assert app.session.state == SessionState.IDLE
            assert "Messages: 2/20" in app.query_one("#status-bar", StatusBar).get_plain_text()

    @pytest.mark.asyncio
    async def test_clear_chat(self, settings_path, queue_transport):
        app = AssistantApp(settings=SettingsStore(), transport=queue_transport)

        async with app.run_test() as pilot:
            app.on_chat_input_bar_submitted(ChatInputBar.Submitted("Hi"))
            await pilot.pause()

            app.action_clear_chat()
            await pilot.pause()

            assert app.session.state == SessionState.IDLE
            assert len(app.session.store) == 0
            assert app.query_one("#chat-history", ChatHistoryWidget).messages == ()

    @pytest.mark.asyncio
    async def test_apply_settings_saves_and_updates_session(self, settings_path, queue_transport):
        store = SettingsStore()
        app = AssistantApp(settings=store, transport=queue_transport)

        async with app.run_test() as pilot:
            app._apply_settings(SessionConfig(model="gpt-4", api_key="sk-new"))
            await pilot.pause()

            assert app.session.config.model == "gpt-4"
            assert store.load().api_key == "sk-new"
            assert "gpt-4" in app.sub_title

    @pytest.mark.asyncio
    async def test_apply_settings_leaves_environment_key_out_of_file(
        self, settings_path, queue_transport, monkeypatch
    ):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        store = SettingsStore()
        app = AssistantApp(settings=store, transport=queue_transport)

        async with app.run_test() as pilot:
            assert app.session.config.api_key == "sk-env"
            app._apply_settings(app.session.config.model_copy(update={"model": "gpt-4"}))
            await pilot.pause()

            saved = json.loads(settings_path.read_text())
            assert saved["model"] == "gpt-4"
            assert "apiKey" not in saved
            assert app.session.config.api_key == "sk-env"

    @pytest.mark.asyncio
    async def test_analyze_document(self, settings_path, queue_transport):
        async def loader() -> str:
            return "# Note body"

        app = AssistantApp(
            settings=SettingsStore(),
            transport=queue_transport,
            document_loader=loader,
            document_name="note.md",
        )

        async with app.run_test() as pilot:
            app.action_analyze_document()
            await pilot.pause()
            await app.workers.wait_for_complete()
            await pilot.pause()

            assert queue_transport.requests
            assert queue_transport.requests[0].messages[-1]["content"].endswith("# Note body")
            app.session.cancel()
            await pilot.pause()
