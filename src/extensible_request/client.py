"""Public entry points: get and post with retries."""

import asyncio
import logging
from collections.abc import Awaitable, Mapping
from typing import Any, Optional, Union

from pydantic import ValidationError

from .errors import ArgumentError
from .http.protocols import DecodedResult, Transport
from .http.querystring import stringify
from .http.url import append_query, parse_url
from .models.config import QueryStringOptions, RetryPolicy, TransportOptions
from .models.options import RequestOptions
from .pipeline import build_pipeline
from .pipeline.base import EventEmitter
from .retry import RetryOrchestrator

logger = logging.getLogger(__name__)

HttpOptions = Union[TransportOptions, Mapping[str, Any], None]
QueryOptions = Union[QueryStringOptions, Mapping[str, Any], None]
RetryOptions = Union[RetryPolicy, Mapping[str, Any], None]


def _require_url(url: Optional[str]) -> str:
    if url is None or not str(url).strip():
        raise ArgumentError("The parameter 'url' is required")
    return str(url)


def _coerce(model: type, value: Any) -> Any:
    """Validate a mapping (or pass through a model instance) as ``model``."""
    if value is None:
        return model()
    if isinstance(value, model):
        return value
    try:
        return model.model_validate(dict(value))
    except ValidationError as e:
        raise ArgumentError(f"Invalid {model.__name__}: {e}") from e


def build_request_options(
    base: Mapping[str, Any],
    url: str,
    http_options: HttpOptions = None,
) -> RequestOptions:
    """
    Merge call defaults, URL fields and caller options into RequestOptions.

    Later sources win: ``base`` <- fields parsed from ``url`` <- fields the
    caller set in ``http_options``.

    Raises:
        ArgumentError: If the merged options are unusable (no host, bad port)
    """
    transport_options = _coerce(TransportOptions, http_options)

    merged: dict[str, Any] = dict(base)
    merged.update(parse_url(url))
    merged.update(transport_options.model_dump(exclude_unset=True, exclude_none=True))

    if not merged.get("host"):
        raise ArgumentError(f"Cannot determine host for url {url!r}; use an absolute URL")

    try:
        return RequestOptions(**merged)
    except ValidationError as e:
        raise ArgumentError(f"Invalid request options for {url!r}: {e}") from e


def _orchestrator(
    retry_options: RetryOptions,
    transport: Optional[Transport],
    on_event: Optional[EventEmitter],
) -> RetryOrchestrator:
    return RetryOrchestrator(
        build_pipeline(transport),
        policy=_coerce(RetryPolicy, retry_options),
        emit=on_event,
    )


def get(
    url: Optional[str],
    query_params: Optional[Mapping[str, Any]] = None,
    http_options: HttpOptions = None,
    query_string_options: QueryOptions = None,
    retry_options: RetryOptions = None,
    *,
    on_event: Optional[EventEmitter] = None,
    transport: Optional[Transport] = None,
) -> Awaitable[DecodedResult]:
    """
    HTTP GET with query parameters and retries.

    Arguments are validated immediately; the returned awaitable performs
    the I/O.

    Args:
        url: Absolute URL with scheme, host, optional port and path
        query_params: Mapping encoded into the query string
        http_options: TransportOptions or a mapping of its fields
            (headers, auth, timeout, host, port, path, ...); fields set here
            override the ones parsed from ``url``
        query_string_options: QueryStringOptions or a mapping (sep, eq,
            array_format, encoder)
        retry_options: RetryPolicy or a mapping (retries, interval)
        on_event: Optional callback receiving RequestEvent objects
        transport: Transport to use instead of aiohttp

    Returns:
        Awaitable resolving to a DecodedResult

    Raises:
        ArgumentError: Immediately, if ``url`` is missing or an option is invalid
        RequestError: For non-2xx responses (504 only after retries)
        AbnormalTerminationError: If the body was cut short on the last attempt
        DecodeError: If a JSON body cannot be parsed
        aiohttp.ClientError: For connection failures after retries

    Example:
        result = await get(
            "https://api.example.com/items",
            {"page": 2, "tags": ["a", "b"]},
            {"headers": {"accept": "application/json"}},
            retry_options={"retries": 5, "interval": 100},
        )
        print(result.status_code, result.body)
    """
    url = _require_url(url)
    qs_options = _coerce(QueryStringOptions, query_string_options)
    target = append_query(url, stringify(query_params, qs_options))

    options = build_request_options({"method": "GET"}, target, http_options)
    orchestrator = _orchestrator(retry_options, transport, on_event)

    logger.debug(f"GET {options.target} (retries={orchestrator.policy.retries})")
    return orchestrator.run(options)


def post(
    url: Optional[str],
    body: Optional[Union[str, bytes]] = None,
    http_options: HttpOptions = None,
    retry_options: RetryOptions = None,
    *,
    on_event: Optional[EventEmitter] = None,
    transport: Optional[Transport] = None,
) -> Awaitable[DecodedResult]:
    """
    HTTP POST with a body and retries.

    The content-length header is always set from the body's byte length,
    replacing any caller-supplied value.

    Args:
        url: Absolute URL with scheme, host, optional port and path
        body: Request body (str is sent as UTF-8)
        http_options: TransportOptions or a mapping of its fields
        retry_options: RetryPolicy or a mapping (retries, interval)
        on_event: Optional callback receiving RequestEvent objects
        transport: Transport to use instead of aiohttp

    Returns:
        Awaitable resolving to a DecodedResult

    Raises:
        Same as :func:`get`
    """
    url = _require_url(url)

    options = build_request_options({"method": "POST", "body": body}, url, http_options)
    orchestrator = _orchestrator(retry_options, transport, on_event)

    logger.debug(f"POST {options.target} (retries={orchestrator.policy.retries})")
    return orchestrator.run(options)


def get_blocking(url: Optional[str], *args: Any, **kwargs: Any) -> DecodedResult:
    """
    Blocking GET for sync code that can't use async/await.

    WARNING: Do not call from within an existing event loop (e.g., Jupyter,
    asyncio-based frameworks). Await :func:`get` instead.
    """
    return asyncio.run(_await(get(url, *args, **kwargs)))


def post_blocking(url: Optional[str], *args: Any, **kwargs: Any) -> DecodedResult:
    """
    Blocking POST for sync code that can't use async/await.

    WARNING: Do not call from within an existing event loop. Await
    :func:`post` instead.
    """
    return asyncio.run(_await(post(url, *args, **kwargs)))


async def _await(awaitable: Awaitable[DecodedResult]) -> DecodedResult:
    return await awaitable
