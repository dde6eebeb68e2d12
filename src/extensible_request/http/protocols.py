"""Protocol definitions for the transport abstraction."""

from collections.abc import AsyncIterator, Mapping
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from ..models.options import RequestOptions


class BodyStream(Protocol):
    """
    Incrementally produced response body.

    Iterating yields byte chunks. ``complete`` is False until the stream
    has ended cleanly; a stream cut short by the peer ends iteration with
    ``complete`` still False.
    """

    complete: bool

    def __aiter__(self) -> AsyncIterator[bytes]: ...

    async def discard(self) -> None:
        """Read and drop whatever is left of the body."""
        ...


@dataclass
class RawResponse:
    """
    Response as surfaced by the transport, before any buffering.

    Attributes:
        status_code: HTTP status code (200, 404, etc.)
        reason: Reason phrase sent by the server, if any
        headers: Response headers (case-insensitive lookup)
        stream: Body stream; check ``complete`` once it is exhausted
    """

    status_code: int
    headers: Mapping[str, str]
    stream: BodyStream
    reason: Optional[str] = None

    @property
    def complete(self) -> bool:
        return self.stream.complete


@dataclass(frozen=True)
class DecodedResult:
    """
    Immutable result of a successful call.

    Attributes:
        status_code: HTTP status code in [200, 300)
        headers: Response headers (case-insensitive lookup)
        body: Parsed JSON value for JSON media types, decoded text otherwise
        media_type: Lower-cased media type, "text/plain" when not declared
        encoding: Character encoding used to decode the body
    """

    status_code: int
    headers: Mapping[str, str]
    body: Any
    media_type: str = "text/plain"
    encoding: str = "utf-8"

    @property
    def is_json(self) -> bool:
        return self.media_type.startswith("application/json")

    def to_dict(self) -> dict:
        """Convert to a plain dict of status code, headers and body."""
        return {
            "status_code": self.status_code,
            "headers": dict(self.headers),
            "body": self.body,
        }


class Transport(Protocol):
    """
    Protocol for transports.

    This abstraction allows for:
    - Mock implementations in tests
    - Different backends (aiohttp, httpx, etc.)

    ``open`` performs exactly one attempt: it connects, writes the request
    and yields the response once headers have arrived. Connection-level
    failures propagate unchanged. The connection is released when the
    context exits.
    """

    def open(self, options: RequestOptions) -> AbstractAsyncContextManager[RawResponse]: ...
