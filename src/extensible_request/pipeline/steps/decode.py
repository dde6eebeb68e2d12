"""DecodeStep - turns the buffered body into a result value."""

import json
import logging
from typing import Optional

from ...errors import DecodeError
from ...http.protocols import DecodedResult
from ...models.events import EventType, RequestEvent
from ..base import EventEmitter, RequestContext

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "text/plain"
DEFAULT_ENCODING = "utf-8"
JSON_MEDIA_TYPE = "application/json"


def parse_content_type(content_type: Optional[str]) -> tuple[str, str]:
    """
    Split a Content-Type header into media type and character encoding.

    The media type is everything before the first ";", trimmed and
    lower-cased ("text/plain" when empty). The parameters are searched for
    charset=; the encoding falls back to utf-8 when the parameter is
    missing, malformed or names an encoding Python does not know.

    Args:
        content_type: Content-Type header value

    Returns:
        (media_type, encoding)

    Example:
        >>> parse_content_type("Application/JSON; charset=ISO-8859-1")
        ('application/json', 'iso-8859-1')
    """
    media_type, _, params = (content_type or "").partition(";")
    media_type = media_type.strip().lower() or DEFAULT_MEDIA_TYPE

    encoding = DEFAULT_ENCODING
    for param in params.split(";"):
        name, sep, value = param.strip().partition("=")
        if not sep or name.strip().lower() != "charset":
            continue
        candidate = value.strip().strip("\"'").lower()
        if not candidate:
            break
        try:
            b"".decode(candidate)
        except LookupError:
            logger.debug(f"Unknown charset {candidate!r}, using {DEFAULT_ENCODING}")
            break
        encoding = candidate
        break

    return media_type, encoding


class DecodeStep:
    """
    Pipeline step that decodes the body according to its media type.

    Populates:
        ctx.media_type, ctx.encoding: Parsed from the Content-Type header
        ctx.result: DecodedResult for the caller

    JSON media types (application/json and its variants) are parsed into
    Python values; everything else is returned as text.

    Raises:
        DecodeError: If a JSON body is not valid in the declared charset
            or is not valid JSON
    """

    name = "decode"

    async def execute(
        self,
        ctx: RequestContext,
        emit: Optional[EventEmitter] = None,
    ) -> RequestContext:
        raw = ctx.raw
        if raw is None:
            raise RuntimeError("DecodeStep requires a response; run SendStep first")

        media_type, encoding = parse_content_type(raw.headers.get("content-type"))
        ctx.media_type = media_type
        ctx.encoding = encoding

        if media_type.startswith(JSON_MEDIA_TYPE):
            try:
                body = json.loads(ctx.body.decode(encoding))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                raise DecodeError(f"Invalid {media_type} body from {ctx.options.target}: {e}") from e
        else:
            body = ctx.body.decode(encoding, errors="replace")

        ctx.result = DecodedResult(
            status_code=raw.status_code,
            headers=raw.headers,
            body=body,
            media_type=media_type,
            encoding=encoding,
        )

        logger.debug(f"Decoded {len(ctx.body)} bytes of {media_type} from {ctx.options.target}")

        if emit:
            emit(
                RequestEvent(
                    type=EventType.REQUEST_COMPLETED,
                    url=ctx.options.target,
                    method=ctx.options.method,
                    attempt=ctx.attempt,
                    status_code=raw.status_code,
                    bytes_received=len(ctx.body),
                    message=f"Received {len(ctx.body)} bytes",
                )
            )

        return ctx
