"""Transport, query-string and URL collaborators."""

from .protocols import BodyStream, DecodedResult, RawResponse, Transport
from .querystring import stringify
from .transport import AiohttpTransport, select_scheme
from .url import append_query, parse_url

__all__ = [
    "AiohttpTransport",
    "BodyStream",
    "DecodedResult",
    "RawResponse",
    "Transport",
    "append_query",
    "parse_url",
    "select_scheme",
    "stringify",
]
