"""Unit tests for the notes server client."""
import httpx
import pytest

from marknote.notes import NotesClient, NotesError, read_line_range
from marknote.notes.client import DEFAULT_NOTES_URL


def notes_client(handler) -> NotesClient:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return NotesClient(base_url="http://notes.test", client=client)


class TestReadLineRange:
    """Tests for read_line_range."""

    def test_whole_file(self, sample_markdown_file):
        assert read_line_range(sample_markdown_file) == "# Title\nline two\nline three\nline four"

    def test_inclusive_range(self, sample_markdown_file):
        assert read_line_range(sample_markdown_file, 2, 3) == "line two\nline three"

    def test_open_ended_range(self, sample_markdown_file):
        assert read_line_range(sample_markdown_file, start=3) == "line three\nline four"
        assert read_line_range(sample_markdown_file, end=1) == "# Title"

    def test_range_past_end(self, sample_markdown_file):
        assert read_line_range(sample_markdown_file, 4, 100) == "line four"

    @pytest.mark.parametrize("start,end", [(0, 2), (3, 2)])
    def test_invalid_range(self, sample_markdown_file, start, end):
        with pytest.raises(ValueError):
            read_line_range(sample_markdown_file, start, end)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_line_range(tmp_path / "nope.md")


class TestNotesClient:
    """Tests for NotesClient."""

    def test_default_url(self, monkeypatch):
        monkeypatch.delenv("MARKNOTE_NOTES_URL", raising=False)
        assert NotesClient(client=httpx.AsyncClient()).base_url == DEFAULT_NOTES_URL

    def test_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("MARKNOTE_NOTES_URL", "http://example.test:9000/")
        assert NotesClient(client=httpx.AsyncClient()).base_url == "http://example.test:9000"

    @pytest.mark.asyncio
    async def test_get_file_content(self):
        seen = []

        def handler(request):
            seen.append(request.url)
            return httpx.Response(200, json={"content": "# Daily"})

        async with notes_client(handler) as notes:
            assert await notes.get_file_content("journal/today.md") == "# Daily"

        assert seen[0].path == "/api/files/journal/today.md"

    @pytest.mark.asyncio
    async def test_get_content_range(self):
        seen = []

        def handler(request):
            seen.append(request.url)
            return httpx.Response(200, json={"content": "lines"})

        async with notes_client(handler) as notes:
            assert await notes.get_content_range("a.md", 3, 7) == "lines"

        assert seen[0].path == "/api/files/content/a.md"
        assert seen[0].params["start"] == "3"
        assert seen[0].params["end"] == "7"

    @pytest.mark.asyncio
    async def test_error_status_uses_server_message(self):
        handler = lambda request: httpx.Response(404, json={"error": "File not found"})  # noqa: E731

        async with notes_client(handler) as notes:
            with pytest.raises(NotesError, match="HTTP 404: File not found"):
                await notes.get_file_content("missing.md")

    @pytest.mark.asyncio
    async def test_error_status_with_plain_body(self):
        handler = lambda request: httpx.Response(500, text="oops")  # noqa: E731

        async with notes_client(handler) as notes:
            with pytest.raises(NotesError, match="HTTP 500: oops"):
                await notes.get_file_content("a.md")

    @pytest.mark.asyncio
    async def test_unreachable_server(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with notes_client(handler) as notes:
            with pytest.raises(NotesError, match="unreachable"):
                await notes.get_file_content("a.md")

    @pytest.mark.asyncio
    async def test_missing_content_field(self):
        async with notes_client(lambda request: httpx.Response(200, json={"data": 1})) as notes:
            with pytest.raises(NotesError, match="no content"):
                await notes.get_file_content("a.md")
