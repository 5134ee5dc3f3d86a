from typing import Any

from .base import ChatTransport
from .transport import HttpxChatTransport


def create_chat_transport(transport: str = "httpx", **config: Any) -> ChatTransport:
    """Create a chat transport instance.

    This factory function hides the instantiation logic for different transports.

    Args:
        transport: Transport type ('httpx')
        **config: Transport-specific configuration
            For httpx:
                - timeout: httpx.Timeout | float | None
                - client: httpx.AsyncClient | None
                - any other httpx.AsyncClient keyword argument

    Returns:
        Initialized chat transport

    Raises:
        ValueError: If transport type is not supported

    Examples:
        >>> transport = create_chat_transport("httpx", timeout=60.0)
    """
    if transport.lower() == "httpx":
        return HttpxChatTransport(**config)

    raise ValueError(
        f"Unsupported transport: {transport}. "
        f"Supported transports: 'httpx'"
    )
