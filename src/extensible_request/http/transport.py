"""aiohttp transport: one request attempt, no retries, no buffering."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

import aiohttp
from yarl import URL

from .. import __version__
from ..models.options import RequestOptions
from .protocols import RawResponse

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = f"extensible-request/{__version__}"


def select_scheme(protocol: Optional[str]) -> str:
    """
    Pick the transport for a protocol string.

    Anything starting with "https" (any case) selects TLS, everything else
    the plain transport.
    """
    return "https" if (protocol or "").lower().startswith("https") else "http"


def build_url(options: RequestOptions) -> URL:
    """Build the wire URL from request options without re-encoding the path."""
    scheme = select_scheme(options.protocol)
    host = options.host
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"  # IPv6 literal
    port = f":{options.port}" if options.port else ""
    path = options.path or "/"
    if not path.startswith("/"):
        path = f"/{path}"
    return URL(f"{scheme}://{host}{port}{path}", encoded=True)


def _basic_auth(auth: Optional[str]) -> Optional[aiohttp.BasicAuth]:
    if not auth:
        return None
    login, _, password = auth.partition(":")
    return aiohttp.BasicAuth(login, password)


class AiohttpBodyStream:
    """
    Body stream over an aiohttp response.

    aiohttp reports a body cut short by the peer (fewer bytes than the
    declared content-length, or a broken chunked encoding) as a
    ClientPayloadError. That ends iteration and leaves ``complete`` False.
    Any other read error propagates.
    """

    def __init__(self, response: aiohttp.ClientResponse) -> None:
        self._response = response
        self.complete = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.content.iter_any():
                yield chunk
        except aiohttp.ClientPayloadError as e:
            logger.debug(f"Payload not completed for {self._response.url}: {e}")
            return
        self.complete = True

    async def discard(self) -> None:
        """Drain the remaining body so the connection can be released."""
        try:
            async for _ in self:
                pass
        except aiohttp.ClientError as e:
            # The caller is already failing with the response status
            logger.debug(f"Error while discarding body of {self._response.url}: {e}")


class AiohttpTransport:
    """
    Transport backed by aiohttp.

    A new ClientSession is opened for every attempt and closed when the
    response context exits, so no connection outlives a single attempt.
    Redirects are not followed and no content-type is added beyond the
    caller's headers.

    Example:
        transport = AiohttpTransport()
        async with transport.open(options) as raw:
            print(raw.status_code)
            async for chunk in raw.stream:
                ...
    """

    def __init__(self, user_agent: Optional[str] = None) -> None:
        """
        Initialize the transport.

        Args:
            user_agent: Default User-Agent header (a request header wins)
        """
        self._user_agent = user_agent or DEFAULT_USER_AGENT

    @asynccontextmanager
    async def open(self, options: RequestOptions) -> AsyncIterator[RawResponse]:
        """
        Send one request and yield the response once headers arrive.

        Args:
            options: Normalized request options

        Yields:
            RawResponse whose stream is readable until the context exits

        Raises:
            aiohttp.ClientError: On connection-level failures
            asyncio.TimeoutError: When the socket read timeout expires
        """
        url = build_url(options)
        # Only a socket idle timeout; no total deadline
        timeout = aiohttp.ClientTimeout(
            total=None,
            sock_read=options.timeout / 1000 if options.timeout else None,
        )
        payload = options.payload

        logger.debug(f"{options.method} {url} ({len(payload)} bytes)")

        async with aiohttp.ClientSession(
            timeout=timeout,
            headers={"User-Agent": self._user_agent},
        ) as session:
            async with session.request(
                options.method,
                url,
                headers=options.headers,
                data=payload or None,
                auth=_basic_auth(options.auth),
                ssl=options.verify_ssl,
                skip_auto_headers=("Content-Type",),
                allow_redirects=False,
            ) as response:
                logger.debug(f"{options.method} {url} -> {response.status}")
                yield RawResponse(
                    status_code=response.status,
                    reason=response.reason,
                    headers=response.headers,
                    stream=AiohttpBodyStream(response),
                )
