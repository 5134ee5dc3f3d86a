"""Error kinds raised while talking to the chat completion endpoint.

Terminal errors (TransportFailure, HttpError, StreamUnavailable) end an
exchange and are reported to the user once. FrameParseError is recovered
inside the stream decoder and RequestRejected is only logged.
"""


class ChatError(Exception):
    """Base class for assistant chat errors."""


class RequestRejected(ChatError):
    """A submit was attempted while another request was in flight."""


class TransportFailure(ChatError):
    """Network or connection failure before or during streaming."""


class StreamUnavailable(TransportFailure):
    """The response carried no readable body."""


class HttpError(ChatError):
    """The endpoint answered with a non-success status."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        detail = body.strip() or "no response body"
        super().__init__(f"Chat service request failed (HTTP {status_code}): {detail}")


class FrameParseError(ChatError):
    """A single ``data:`` line could not be decoded."""

    def __init__(self, line: str, reason: str):
        self.line = line
        self.reason = reason
        super().__init__(f"Malformed stream frame ({reason}): {line[:200]}")
