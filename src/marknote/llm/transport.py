from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from .base import ChatStream, ChatTransport
from .errors import StreamUnavailable, TransportFailure
from .models import ChatCompletionRequest

# Connect/write bounded, reads left long so slow token streams survive
DEFAULT_TIMEOUT = httpx.Timeout(30.0, read=300.0)


class HttpxChatStream(ChatStream):
    """ChatStream over a streamed ``httpx.Response``."""

    def __init__(self, response: httpx.Response):
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    async def aiter_raw(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_bytes():
                if chunk:
                    yield chunk
        except httpx.StreamError as e:
            raise StreamUnavailable(f"Response body is not readable: {e}") from e
        except httpx.HTTPError as e:
            raise TransportFailure(f"Connection lost while streaming: {e}") from e

    async def read_text(self) -> str:
        try:
            await self._response.aread()
        except httpx.StreamError as e:
            raise StreamUnavailable(f"Response body is not readable: {e}") from e
        except httpx.HTTPError as e:
            raise TransportFailure(f"Connection lost while reading error body: {e}") from e
        return self._response.text


class HttpxChatTransport(ChatTransport):
    """Chat transport implemented with ``httpx.AsyncClient``.

    Hidden design decisions:
    - Client initialization and connection pooling
    - Timeout policy
    - Mapping of httpx exceptions to TransportFailure
    """

    def __init__(
        self,
        timeout: httpx.Timeout | float | None = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
        **client_kwargs: Any
    ):
        """Initialize the transport.

        Args:
            timeout: httpx timeout policy for the underlying client
            client: Pre-built client to use instead of creating one
            **client_kwargs: Additional kwargs for httpx.AsyncClient
                (e.g. ``transport=httpx.MockTransport(...)``)
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, **client_kwargs)

    @asynccontextmanager
    async def open_stream(
        self, request: ChatCompletionRequest
    ) -> AsyncIterator[ChatStream]:
        try:
            async with self._client.stream(
                "POST",
                request.url,
                json=request.payload(),
                headers=request.headers(),
            ) as response:
                yield HttpxChatStream(response)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportFailure(f"Request to {request.url} failed: {e}") from e
        except UnicodeEncodeError as e:
            # Header values must be ASCII; usually a pasted API key with smart quotes
            raise TransportFailure(f"Request headers could not be encoded (check the API key): {e}") from e

    async def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()
