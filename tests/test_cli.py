"""Tests for the Typer CLI."""
import json

import httpx
import pytest
from typer.testing import CliRunner

import marknote.cli.app as cli_module
from conftest import sse_body
from marknote.llm import HttpxChatTransport
from marknote.notes import NotesClient

runner = CliRunner()


@pytest.fixture
def chat_requests(monkeypatch, streaming_handler):
    """Route the CLI's chat transport to a MockTransport and record requests."""
    captured: list[httpx.Request] = []

    def install(chunks, status_code=200):
        handler = streaming_handler(chunks, status_code=status_code, captured=captured)
        monkeypatch.setattr(
            cli_module,
            "get_transport",
            lambda: HttpxChatTransport(transport=httpx.MockTransport(handler)),
        )
        return captured

    return install


class TestAsk:
    """Tests for the ask command."""

    def test_prints_streamed_reply(self, settings_path, chat_requests):
        captured = chat_requests([sse_body("Hel", "lo")])

        result = runner.invoke(cli_module.app, ["ask", "Hi there"])

        assert result.exit_code == 0
        assert "Hello" in result.output
        body = json.loads(captured[0].content)
        assert body["messages"][-1] == {"role": "user", "content": "Hi there"}
        assert body["stream"] is True

    def test_warns_without_api_key(self, settings_path, chat_requests):
        chat_requests([sse_body("ok")])

        result = runner.invoke(cli_module.app, ["ask", "Hi"])

        assert "no API key" in result.output

    def test_uses_stored_settings(self, settings_path, chat_requests):
        settings_path.write_text(json.dumps({"apiKey": "sk-stored", "model": "gpt-4"}))
        captured = chat_requests([sse_body("ok")])

        result = runner.invoke(cli_module.app, ["ask", "Hi"])

        assert result.exit_code == 0
        assert captured[0].headers["Authorization"] == "Bearer sk-stored"
        assert json.loads(captured[0].content)["model"] == "gpt-4"

    def test_http_error_exits_nonzero(self, settings_path, chat_requests):
        chat_requests([b'{"error": {"message": "invalid key"}}'], status_code=401)

        result = runner.invoke(cli_module.app, ["ask", "Hi"])

        assert result.exit_code == 1
        assert "HTTP 401" in result.output

    def test_unencodable_api_key_prints_error(self, settings_path, chat_requests):
        settings_path.write_text(json.dumps({"apiKey": "sk-\u201ckey\u201d"}), encoding="utf-8")
        captured = chat_requests([sse_body("unused")])

        result = runner.invoke(cli_module.app, ["ask", "Hi"])

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "API key" in result.output
        assert captured == []


class TestAnalyze:
    """Tests for the analyze command."""

    def test_analyzes_local_line_range(self, settings_path, chat_requests, sample_markdown_file):
        captured = chat_requests([sse_body("Looks good.")])

        result = runner.invoke(
            cli_module.app,
            ["analyze", str(sample_markdown_file), "--start", "2", "--end", "3"],
        )

        assert result.exit_code == 0
        assert "Looks good." in result.output
        prompt = json.loads(captured[0].content)["messages"][-1]["content"]
        assert prompt.startswith("Please analyze the following file content")
        assert prompt.endswith("\n\nline two\nline three")

    def test_missing_file(self, settings_path, chat_requests, tmp_path):
        captured = chat_requests([sse_body("unused")])

        result = runner.invoke(cli_module.app, ["analyze", str(tmp_path / "missing.md")])

        assert result.exit_code == 1
        assert "File not found" in result.output
        assert captured == []

    def test_empty_document(self, settings_path, chat_requests, tmp_path):
        empty = tmp_path / "empty.md"
        empty.write_text("\n\n")
        chat_requests([sse_body("unused")])

        result = runner.invoke(cli_module.app, ["analyze", str(empty)])

        assert result.exit_code == 1
        assert "Nothing to send" in result.output

    def test_remote_document(self, settings_path, chat_requests, monkeypatch):
        def notes_handler(request):
            return httpx.Response(200, json={"content": "remote note body"})

        monkeypatch.setattr(
            cli_module,
            "get_notes_client",
            lambda: NotesClient(
                base_url="http://notes.test",
                transport=httpx.MockTransport(notes_handler),
            ),
        )
        captured = chat_requests([sse_body("Summary")])

        result = runner.invoke(cli_module.app, ["analyze", "daily/today.md", "--remote"])

        assert result.exit_code == 0
        prompt = json.loads(captured[0].content)["messages"][-1]["content"]
        assert prompt.endswith("remote note body")


class TestConfig:
    """Tests for the config commands."""

    def test_set_and_show(self, settings_path):
        result = runner.invoke(cli_module.app, ["config", "set", "model", "gpt-4"])
        assert result.exit_code == 0
        assert json.loads(settings_path.read_text())["model"] == "gpt-4"

        result = runner.invoke(cli_module.app, ["config", "show"])
        assert result.exit_code == 0
        assert "gpt-4" in result.output
        assert "maxTokens" in result.output

    def test_api_key_is_masked(self, settings_path):
        result = runner.invoke(cli_module.app, ["config", "set", "apiKey", "sk-abcdefghijkl"])

        assert result.exit_code == 0
        assert "sk-abcdefghijkl" not in result.output
        assert json.loads(settings_path.read_text())["apiKey"] == "sk-abcdefghijkl"

    def test_unknown_key(self, settings_path):
        result = runner.invoke(cli_module.app, ["config", "set", "colour", "blue"])

        assert result.exit_code == 1
        assert "Unknown setting" in result.output

    def test_invalid_value(self, settings_path):
        result = runner.invoke(cli_module.app, ["config", "set", "temperature", "5"])

        assert result.exit_code == 1
        assert "invalid value" in result.output
        assert not settings_path.exists()

    def test_set_does_not_write_environment_api_key(self, settings_path, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-from-environment")

        result = runner.invoke(cli_module.app, ["config", "set", "model", "gpt-4"])

        assert result.exit_code == 0
        assert "apiKey" not in json.loads(settings_path.read_text())


class TestHealth:
    """Tests for the health command."""

    def _install_http(self, monkeypatch, handler):
        monkeypatch.setattr(
            cli_module,
            "get_http_client",
            lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

    def test_healthy(self, settings_path, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-abcdefghijkl")
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"data": []})

        self._install_http(monkeypatch, handler)

        result = runner.invoke(cli_module.app, ["health"])

        assert result.exit_code == 0
        assert "reachable" in result.output
        assert seen[0].url.path == "/v1/models"
        assert seen[0].headers["Authorization"] == "Bearer sk-abcdefghijkl"

    def test_missing_api_key(self, settings_path, monkeypatch):
        self._install_http(monkeypatch, lambda request: httpx.Response(401))

        result = runner.invoke(cli_module.app, ["health"])

        assert result.exit_code == 1
        assert "missing" in result.output

    def test_unreachable_endpoint(self, settings_path, monkeypatch):
        monkeypatch.setenv("MARKNOTE_API_KEY", "sk-abcdefghijkl")

        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        self._install_http(monkeypatch, handler)

        result = runner.invoke(cli_module.app, ["health"])

        assert result.exit_code == 1
        assert "unreachable" in result.output


class TestChat:
    """Tests for the chat command."""

    def test_missing_local_document(self, settings_path, tmp_path):
        result = runner.invoke(cli_module.app, ["chat", "--document", str(tmp_path / "nope.md")])

        assert result.exit_code == 1
        assert "File not found" in result.output
