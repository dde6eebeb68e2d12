"""Shared fakes for request pipeline tests."""

from contextlib import asynccontextmanager
from typing import Callable, Optional, Union

import pytest
from multidict import CIMultiDict, CIMultiDictProxy

from extensible_request.http.protocols import RawResponse
from extensible_request.models.options import RequestOptions


class FakeStream:
    """Body stream yielding fixed chunks, then optionally failing or ending early."""

    def __init__(
        self,
        chunks: list[bytes],
        complete: bool = True,
        error: Optional[Exception] = None,
    ) -> None:
        self._chunks = chunks
        self._complete_on_end = complete
        self._error = error
        self.complete = False
        self.discarded = False

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error
        self.complete = self._complete_on_end

    async def discard(self) -> None:
        self.discarded = True


def make_raw(
    status_code: int = 200,
    body: bytes = b"",
    content_type: Optional[str] = "text/plain",
    complete: bool = True,
    error: Optional[Exception] = None,
    chunk_size: int = 4,
) -> RawResponse:
    """Build a RawResponse whose body arrives in small chunks."""
    headers = CIMultiDict()
    if content_type is not None:
        headers["Content-Type"] = content_type
    chunks = [body[i : i + chunk_size] for i in range(0, len(body), chunk_size)]
    return RawResponse(
        status_code=status_code,
        headers=CIMultiDictProxy(headers),
        stream=FakeStream(chunks, complete=complete, error=error),
    )


Scripted = Union[Callable[[], RawResponse], Exception]


class FakeTransport:
    """
    Transport replaying a script of responses, one per attempt.

    Each script item is either a zero-argument factory returning a fresh
    RawResponse or an exception raised instead of connecting.
    """

    def __init__(self, script: list[Scripted]) -> None:
        self._script = list(script)
        self.calls: list[RequestOptions] = []

    @asynccontextmanager
    async def open(self, options: RequestOptions):
        self.calls.append(options)
        item = self._script.pop(0)
        if isinstance(item, Exception):
            raise item
        yield item()


@pytest.fixture
def options() -> RequestOptions:
    """Plain GET options for example.com."""
    return RequestOptions(method="GET", protocol="http", host="example.com", path="/resource")


@pytest.fixture
def raw_response() -> Callable[..., RawResponse]:
    """Factory for fake raw responses (see make_raw)."""
    return make_raw


@pytest.fixture
def scripted_transport() -> type:
    """The FakeTransport class, for building scripted transports."""
    return FakeTransport
