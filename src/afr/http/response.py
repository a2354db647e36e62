"""HTTP responses with a chainable ``.with_*()`` transformation API.

Each transformation returns a new response. Three shapes:

- ``Response``: a complete body, sent in one ASGI message.
- ``FileResponse``: a file on disk, streamed in chunks.
- ``StreamResponse``: an async iterator of chunks that stays open until
  the iterator ends or the client disconnects.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from afr.cancel import CancelToken

DEFAULT_CHUNK_SIZE = 1 << 14


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    ``content_type=None`` sends no ``content-type`` header at all.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str | None = "text/plain; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        """Return a new Response with additional headers.

        A ``content-type`` entry replaces the content type instead of
        adding a second header.
        """
        response = self
        for name, value in headers.items():
            if name.lower() == "content-type":
                response = replace(response, content_type=value)
            else:
                response = response.with_header(name, value)
        return response

    def with_content_type(self, content_type: str | None) -> Response:
        """Return a new Response with a different content type."""
        return replace(self, content_type=content_type)

    # -- Body helpers --

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    def json(self) -> Any:
        """Body parsed as JSON."""
        return json_module.loads(self.body_bytes)

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive)."""
        lower = name.lower()
        if lower == "content-type":
            return self.content_type
        for key, value in self.headers:
            if key.lower() == lower:
                return value
        return None


@dataclass(frozen=True, slots=True)
class FileResponse:
    """A file streamed from disk in chunks of ``chunk_size`` bytes."""

    path: Path
    status: int = 200
    content_type: str | None = None
    headers: tuple[tuple[str, str], ...] = ()
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def with_status(self, status: int) -> FileResponse:
        """Return a new FileResponse with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> FileResponse:
        """Return a new FileResponse with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> FileResponse:
        """Return a new FileResponse with additional headers."""
        response = self
        for name, value in headers.items():
            if name.lower() == "content-type":
                response = replace(response, content_type=value)
            else:
                response = response.with_header(name, value)
        return response

    def with_content_type(self, content_type: str | None) -> FileResponse:
        """Return a new FileResponse with a different content type."""
        return replace(self, content_type=content_type)


@dataclass(frozen=True, slots=True)
class StreamResponse:
    """A long-lived response fed by an async iterator of byte chunks.

    The sender cancels ``signal`` when the client disconnects or a write
    fails; whoever owns the iterator is expected to end it then.
    """

    chunks: AsyncIterator[bytes]
    status: int = 200
    content_type: str | None = None
    headers: tuple[tuple[str, str], ...] = ()
    signal: CancelToken | None = None

    def with_status(self, status: int) -> StreamResponse:
        """Return a new StreamResponse with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> StreamResponse:
        """Return a new StreamResponse with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> StreamResponse:
        """Return a new StreamResponse with additional headers."""
        response = self
        for name, value in headers.items():
            if name.lower() == "content-type":
                response = replace(response, content_type=value)
            else:
                response = response.with_header(name, value)
        return response

    def with_content_type(self, content_type: str | None) -> StreamResponse:
        """Return a new StreamResponse with a different content type."""
        return replace(self, content_type=content_type)


type AnyResponse = Response | FileResponse | StreamResponse
