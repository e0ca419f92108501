"""Contracts between the cache engine and the server it runs inside.

The engine never reaches for ambient request state. Everything it needs from
the surrounding server is passed in as a :class:`RequestContext`, and output
captured for caching lives in a :class:`Capture` owned by the caller.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class RequestContext(Protocol):
    """What the engine needs from the current request and response.

    See :class:`pagecache.wsgi.WSGIRequestContext` for a concrete
    implementation.
    """

    def request_uri(self) -> str:
        """Path plus query string of the current request, percent-decoded."""
        ...

    def response_headers(self) -> Iterable[tuple[str, str]]:
        """Headers staged for the outgoing response so far."""
        ...

    def status_code(self) -> Optional[int]:
        """Status of the outgoing response, ``None`` if none was set."""
        ...

    def send_headers(self, status: int, content_type: str) -> None:
        """Emit the status line and ``Content-Type`` before any body bytes."""
        ...

    def write(self, data: bytes) -> None:
        """Send body bytes to the client."""
        ...


class Capture:
    """Buffered output for one request, returned by ``begin_capture``.

    The handler (or the adapter running it) writes the response body here
    instead of to the client. ``end_capture`` consumes the capture, after
    which further writes raise :class:`ValueError`.
    """

    def __init__(self, context: RequestContext) -> None:
        self.context = context
        self._chunks: list[bytes] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, data: bytes) -> int:
        if self._closed:
            raise ValueError("write to a consumed capture")
        self._chunks.append(bytes(data))
        return len(data)

    def getvalue(self) -> bytes:
        return b"".join(self._chunks)

    def close(self) -> bytes:
        """Mark the capture consumed and return everything written to it."""
        if self._closed:
            raise ValueError("capture already consumed")
        self._closed = True
        body = self.getvalue()
        self._chunks = []
        return body
