"""Incremental decoder for server-sent-event chat completion streams.

Hides the wire framing of a streamed chat completion:
- Byte chunks arrive with arbitrary boundaries (mid-line, mid-character)
- Only complete ``\\n``-terminated lines are ever examined
- ``data: [DONE]`` marks the end of the stream and carries no text
- A malformed frame is reported and skipped, never raised

Usage:
    decoder = SSEDecoder()
    async for chunk in stream.aiter_raw():
        for fragment in decoder.feed(chunk):
            print(fragment, end="")
    decoder.flush()
"""

import codecs
import json
from collections.abc import Callable
from typing import Any

from .errors import FrameParseError

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


def extract_fragment(payload: Any) -> str:
    """Pull the incremental text out of a decoded frame.

    Reads ``choices[0].delta.content``. Frames without choices (usage
    reports, keep-alives) or without content contribute nothing.

    Raises:
        ValueError: If the payload is not a JSON object or content is not text
    """
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")

    choices = payload.get("choices")
    if not choices or not isinstance(choices, list):
        return ""

    first = choices[0]
    delta = first.get("delta") if isinstance(first, dict) else None
    if not isinstance(delta, dict):
        return ""

    content = delta.get("content")
    if content is None:
        return ""
    if not isinstance(content, str):
        raise ValueError(f"delta.content is {type(content).__name__}, not a string")
    return content


class SSEDecoder:
    """Rolling-buffer decoder that turns raw chunks into text fragments.

    Strictly sequential: fragments come out in the order their lines were
    completed, and nothing past the last newline is parsed.
    """

    def __init__(
        self,
        on_parse_error: Callable[[FrameParseError], None] | None = None,
    ) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._done = False
        self._on_parse_error = on_parse_error
        self.malformed_frames = 0

    @property
    def done(self) -> bool:
        """True once a ``data: [DONE]`` line has been seen."""
        return self._done

    @property
    def pending(self) -> str:
        """Buffered text of the current, not yet terminated line."""
        return self._buffer

    def feed(self, chunk: bytes) -> list[str]:
        """Decode one raw chunk and return the fragments it completed."""
        self._buffer += self._decoder.decode(chunk)
        if "\n" not in self._buffer:
            return []

        *lines, self._buffer = self._buffer.split("\n")
        fragments = []
        for line in lines:
            fragment = self._parse_line(line.rstrip("\r"))
            if fragment:
                fragments.append(fragment)
        return fragments

    def flush(self) -> str:
        """Finish decoding at end of stream.

        Returns the unterminated residue (if any), which is discarded
        rather than parsed.
        """
        residue = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        return residue

    def _parse_line(self, line: str) -> str:
        if not line.startswith(DATA_PREFIX):
            # Blank separators, comments, event:/id:/retry: fields
            return ""

        data = line[len(DATA_PREFIX):]
        if data.strip() == DONE_SENTINEL:
            self._done = True
            return ""

        try:
            return extract_fragment(json.loads(data))
        except ValueError as e:
            # json.JSONDecodeError is a ValueError too
            self.malformed_frames += 1
            if self._on_parse_error:
                self._on_parse_error(FrameParseError(line, str(e)))
            return ""
