from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager
from typing import Any

from .models import ChatCompletionRequest


class ChatStream(ABC):
    """An open streamed response from the chat completion endpoint.

    Exclusively owned by the request that opened it; nothing else
    reads from it.
    """

    @property
    @abstractmethod
    def status_code(self) -> int:
        """HTTP status of the response."""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @abstractmethod
    def aiter_raw(self) -> AsyncIterator[bytes]:
        """Iterate over the body as opaque byte chunks.

        Raises:
            TransportFailure: If the connection drops mid-stream
            StreamUnavailable: If the body cannot be read
        """

    @abstractmethod
    async def read_text(self) -> str:
        """Read the whole remaining body as text (used for error details)."""


class ChatTransport(ABC):
    """Abstract base class for chat completion transports.

    This module hides the design decision of which HTTP client carries
    the request. Implementations must handle:
    - Connection setup and pooling
    - Sending the request headers and JSON body
    - Mapping client-specific failures to TransportFailure
    - Releasing the response when the stream is closed or cancelled

    Supports async context manager protocol for proper resource cleanup:
        async with transport:
            async with transport.open_stream(request) as stream:
                ...
    """

    @abstractmethod
    def open_stream(
        self, request: ChatCompletionRequest
    ) -> AbstractAsyncContextManager[ChatStream]:
        """Issue ``request`` with streaming enabled.

        The context manager resolves once response headers arrive and
        releases the response on exit, including on cancellation.

        Raises:
            TransportFailure: If the request cannot be sent
        """

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "ChatTransport":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
