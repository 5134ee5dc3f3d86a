"""Read-side client for the notes server.

The notes server owns the notes tree (list/read/write/delete/rename). The
assistant only needs to read content to seed analysis prompts, so only
those endpoints are wrapped here.
"""

import os
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx

DEFAULT_NOTES_URL = "http://localhost:5000"


class NotesError(Exception):
    """The notes server could not provide the requested content."""


def default_notes_url() -> str:
    return os.getenv("MARKNOTE_NOTES_URL", DEFAULT_NOTES_URL)


def read_line_range(path: str | Path, start: int | None = None, end: int | None = None) -> str:
    """Read a 1-based, inclusive line range from a local file.

    Args:
        path: File to read
        start: First line (default: first line of the file)
        end: Last line (default: last line of the file)

    Returns:
        The selected lines joined with newlines

    Raises:
        ValueError: If the range is invalid
        OSError: If the file cannot be read
    """
    if start is not None and start < 1:
        raise ValueError(f"start must be >= 1, got {start}")
    if start is not None and end is not None and end < start:
        raise ValueError(f"end ({end}) must not be before start ({start})")

    lines = Path(path).read_text(encoding="utf-8").splitlines()
    first = (start or 1) - 1
    last = end if end is not None else len(lines)
    return "\n".join(lines[first:last])


class NotesClient:
    """Async client for the notes server's read endpoints.

    Usage:
        async with NotesClient() as notes:
            text = await notes.get_content_range("daily/today.md", 10, 40)
    """

    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        **client_kwargs: Any
    ):
        self._base_url = (base_url or default_notes_url()).rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=30.0, **client_kwargs)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def get_file_content(self, path: str) -> str:
        """Fetch the full content of a note (``GET /api/files/{path}``)."""
        return await self._get_content(f"/api/files/{quote(path)}")

    async def get_content_range(self, path: str, start: int, end: int) -> str:
        """Fetch a line range of a note.

        ``GET /api/files/content/{path}?start={start}&end={end}``
        """
        return await self._get_content(
            f"/api/files/content/{quote(path)}",
            params={"start": start, "end": end},
        )

    async def _get_content(self, endpoint: str, params: dict[str, Any] | None = None) -> str:
        url = f"{self._base_url}{endpoint}"
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            raise NotesError(f"Notes server unreachable at {self._base_url}: {e}") from e

        if response.is_error:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            detail = payload.get("error") if isinstance(payload, dict) else None
            detail = detail or response.text
            raise NotesError(f"Notes server returned HTTP {response.status_code}: {detail}")

        try:
            data = response.json()
        except ValueError as e:
            raise NotesError(f"Notes server sent invalid JSON for {endpoint}") from e
        content = data.get("content") if isinstance(data, dict) else None
        if not isinstance(content, str):
            raise NotesError(f"Notes server response for {endpoint} has no content")
        return content

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "NotesClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
