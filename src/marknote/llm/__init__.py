from .base import ChatStream, ChatTransport
from .errors import (
    ChatError,
    FrameParseError,
    HttpError,
    RequestRejected,
    StreamUnavailable,
    TransportFailure,
)
from .factory import create_chat_transport
from .models import (
    ChatCompletionRequest,
    SessionConfig,
    SessionState,
    analysis_prompt,
    build_request,
)
from .session import StreamingChatSession
from .sse import SSEDecoder
from .transport import HttpxChatTransport

__all__ = [
    "ChatCompletionRequest",
    "ChatError",
    "ChatStream",
    "ChatTransport",
    "FrameParseError",
    "HttpError",
    "HttpxChatTransport",
    "RequestRejected",
    "SSEDecoder",
    "SessionConfig",
    "SessionState",
    "StreamUnavailable",
    "StreamingChatSession",
    "TransportFailure",
    "analysis_prompt",
    "build_request",
    "create_chat_transport",
]
