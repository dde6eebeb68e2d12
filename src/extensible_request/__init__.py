"""
extensible_request - Outbound HTTP GET/POST with response decoding and retries.

Usage:
    from extensible_request import get, post, RequestError

    result = await get("https://api.example.com/items", {"page": 1}, retry_options={"retries": 2})
    print(result.status_code, result.body)

    try:
        await post("https://api.example.com/items", '{"name": "x"}',
                   {"headers": {"content-type": "application/json"}})
    except RequestError as e:
        print(e.status_code, e.message)
"""

__version__ = "1.0.0"

from .client import get, get_blocking, post, post_blocking
from .errors import (
    AbnormalTerminationError,
    ArgumentError,
    DecodeError,
    ErrorKind,
    ExtensibleRequestError,
    RequestError,
    error_kind,
    is_retriable,
)
from .http.protocols import DecodedResult, RawResponse
from .models.config import ClientConfig, QueryStringOptions, RetryPolicy, TransportOptions
from .models.events import EventType, RequestEvent
from .models.options import RequestOptions
from .retry import RetryOrchestrator

__all__ = [
    "__version__",
    # Entry points
    "get",
    "post",
    "get_blocking",
    "post_blocking",
    # Errors
    "ExtensibleRequestError",
    "ArgumentError",
    "RequestError",
    "AbnormalTerminationError",
    "DecodeError",
    "ErrorKind",
    "error_kind",
    "is_retriable",
    # Results
    "DecodedResult",
    "RawResponse",
    # Config
    "ClientConfig",
    "QueryStringOptions",
    "RetryPolicy",
    "TransportOptions",
    "RequestOptions",
    # Retry
    "RetryOrchestrator",
    # Events
    "EventType",
    "RequestEvent",
]
