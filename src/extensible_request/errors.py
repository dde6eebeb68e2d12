"""Error taxonomy for the request pipeline.

Every failure a caller can see falls into one :class:`ErrorKind`. Errors
raised by this package carry the kind as a ``kind`` attribute; transport
errors from aiohttp are passed through unchanged and classified by
:func:`error_kind`.

Example:
    try:
        result = await get("https://api.example.com/items")
    except RequestError as e:
        if e.status_code == 404:
            ...
    except ExtensibleRequestError as e:
        logger.error(f"{e.kind.value}: {e}")
"""

from __future__ import annotations

import asyncio
from enum import Enum
from http import HTTPStatus

import aiohttp


class ErrorKind(str, Enum):
    """Discriminant for request failures."""

    ARGUMENT = "argument"
    TRANSPORT = "transport"
    REQUEST = "request"
    ABNORMAL_TERMINATION = "abnormal_termination"
    DECODE = "decode"
    UNEXPECTED = "unexpected"


# Low-level failures below the HTTP layer
TRANSPORT_EXCEPTIONS = (
    aiohttp.ClientError,
    asyncio.TimeoutError,
    OSError,
)

GATEWAY_TIMEOUT = 504


class ExtensibleRequestError(Exception):
    """Base class for errors raised by extensible_request."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""


class ArgumentError(ExtensibleRequestError, ValueError):
    """A required argument is missing or unusable. Raised before any I/O."""

    kind = ErrorKind.ARGUMENT


class RequestError(ExtensibleRequestError):
    """
    The server answered with a status outside [200, 300).

    Attributes:
        status_code: HTTP status code of the response
        message: Standard reason phrase for the code ("" if nonstandard)
    """

    kind = ErrorKind.REQUEST

    def __init__(self, status_code: int, message: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"RequestError(status_code={self.status_code}, message={self.message!r})"

    @classmethod
    def from_status(cls, status_code: int) -> RequestError:
        """Build an error carrying the standard reason phrase for a status code."""
        return cls(status_code, reason_phrase(status_code))


class AbnormalTerminationError(ExtensibleRequestError):
    """The response stream ended before the message was complete."""

    kind = ErrorKind.ABNORMAL_TERMINATION

    def __init__(self, message: str = "Connection terminated while message was being received") -> None:
        super().__init__(message)


class DecodeError(ExtensibleRequestError, ValueError):
    """A response body could not be decoded for its declared media type."""

    kind = ErrorKind.DECODE


def reason_phrase(status_code: int) -> str:
    """Return the standard reason phrase for a status code, or "" if unknown."""
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""


def error_kind(error: BaseException) -> ErrorKind:
    """Classify any exception into an :class:`ErrorKind`."""
    if isinstance(error, ExtensibleRequestError):
        return error.kind
    if isinstance(error, TRANSPORT_EXCEPTIONS):
        return ErrorKind.TRANSPORT
    return ErrorKind.UNEXPECTED


def is_retriable(error: BaseException) -> bool:
    """
    Decide whether a failed attempt may be retried.

    Transient failures are a 504 response, an abnormally terminated stream
    and transport errors. Every other status, decode errors, argument errors
    and unexpected exceptions are terminal.

    Only RequestError is filtered by status. Exceptions that are neither
    library errors nor transport errors (a TypeError, a KeyError) are not
    retried and surface from the first attempt.
    """
    kind = error_kind(error)
    if kind == ErrorKind.REQUEST:
        return getattr(error, "status_code", None) == GATEWAY_TIMEOUT
    return kind in (ErrorKind.TRANSPORT, ErrorKind.ABNORMAL_TERMINATION)
