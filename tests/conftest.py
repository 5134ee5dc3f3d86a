"""Pytest configuration and shared fixtures."""
import asyncio
import json
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager

import httpx
import pytest

from marknote.llm import ChatCompletionRequest, ChatStream, ChatTransport, HttpxChatTransport


def sse_frame(content: str) -> bytes:
    """Encode one chat completion delta as a ``data:`` line."""
    payload = {"choices": [{"index": 0, "delta": {"content": content}}]}
    return f"data: {json.dumps(payload)}\n".encode()


def sse_body(*fragments: str, done: bool = True) -> bytes:
    """Full SSE body carrying ``fragments``, blank-line separated."""
    body = b"".join(sse_frame(fragment) + b"\n" for fragment in fragments)
    if done:
        body += b"data: [DONE]\n\n"
    return body


class ChunkedByteStream(httpx.AsyncByteStream):
    """Response body that yields the given chunks with their boundaries intact."""

    def __init__(self, chunks: Iterable[bytes]):
        self._chunks = list(chunks)

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            yield chunk


class ClosedByteStream(httpx.AsyncByteStream):
    """Response body that was closed before anything could be read."""

    async def __aiter__(self) -> AsyncIterator[bytes]:
        raise httpx.StreamClosed()
        yield b""  # pragma: no cover


class QueueStream(ChatStream):
    """ChatStream fed by the test through an asyncio.Queue.

    Putting ``None`` ends the body; putting an exception raises it.
    """

    def __init__(self, status_code: int = 200, body: str = ""):
        self._status_code = status_code
        self._body = body
        self.queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    @property
    def status_code(self) -> int:
        return self._status_code

    async def aiter_raw(self) -> AsyncIterator[bytes]:
        while True:
            item = await self.queue.get()
            if item is None:
                return
            if isinstance(item, BaseException):
                raise item
            yield item

    async def read_text(self) -> str:
        return self._body


class QueueTransport(ChatTransport):
    """Transport whose streams are driven step by step from a test."""

    def __init__(self, status_code: int = 200, body: str = ""):
        self._status_code = status_code
        self._body = body
        self.requests: list[ChatCompletionRequest] = []
        self.streams: list[QueueStream] = []

    @property
    def stream(self) -> QueueStream:
        return self.streams[-1]

    @asynccontextmanager
    async def open_stream(self, request: ChatCompletionRequest) -> AsyncIterator[ChatStream]:
        stream = QueueStream(self._status_code, self._body)
        self.requests.append(request)
        self.streams.append(stream)
        try:
            yield stream
        finally:
            stream.closed = True

    async def push(self, *chunks: bytes | None) -> None:
        """Deliver chunks and let the session consume them."""
        for chunk in chunks:
            await self.stream.queue.put(chunk)
        await settle()

    async def close(self) -> None:
        pass


async def settle(rounds: int = 10) -> None:
    """Give scheduled tasks a chance to run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def queue_transport():
    """Transport driven chunk by chunk from the test."""
    return QueueTransport()


@pytest.fixture
def mock_http():
    """Factory for an HttpxChatTransport backed by httpx.MockTransport.

    Usage:
        transport = mock_http(handler)
    """

    def _make(handler) -> HttpxChatTransport:
        return HttpxChatTransport(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def streaming_handler():
    """Factory for a MockTransport handler that streams the given chunks."""

    def _make(chunks: Iterable[bytes], status_code: int = 200, captured: list | None = None):
        chunks = list(chunks)

        def handler(request: httpx.Request) -> httpx.Response:
            if captured is not None:
                captured.append(request)
            return httpx.Response(
                status_code,
                headers={"Content-Type": "text/event-stream"},
                stream=ChunkedByteStream(chunks),
            )

        return handler

    return _make


@pytest.fixture
def settings_path(tmp_path, monkeypatch):
    """Isolated settings file location with a clean environment."""
    path = tmp_path / "assistant.json"
    monkeypatch.setenv("MARKNOTE_SETTINGS", str(path))
    for name in ("MARKNOTE_API_KEY", "OPENAI_API_KEY", "MARKNOTE_SERVER_URL", "MARKNOTE_MODEL"):
        monkeypatch.delenv(name, raising=False)
    return path


@pytest.fixture
def sample_markdown_file(tmp_path):
    """Create a temporary markdown note."""
    note = tmp_path / "note.md"
    note.write_text("# Title\nline two\nline three\nline four\n", encoding="utf-8")
    return note
