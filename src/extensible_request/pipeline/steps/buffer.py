"""BufferStep - reads the full response body."""

import logging
from typing import Optional

from ...errors import AbnormalTerminationError
from ..base import EventEmitter, RequestContext

logger = logging.getLogger(__name__)


class BufferStep:
    """
    Pipeline step that accumulates the whole body before decoding.

    Populates:
        ctx.body: Raw body bytes

    Raises:
        AbnormalTerminationError: If the stream ended before the message
            was complete
        Transport errors raised mid-stream, unchanged
    """

    name = "buffer"

    async def execute(
        self,
        ctx: RequestContext,
        emit: Optional[EventEmitter] = None,
    ) -> RequestContext:
        raw = ctx.raw
        if raw is None:
            raise RuntimeError("BufferStep requires a response; run SendStep first")

        chunks: list[bytes] = []
        async for chunk in raw.stream:
            chunks.append(chunk)
        body = b"".join(chunks)

        if not raw.complete:
            logger.debug(f"{ctx.options.target}: stream ended after {len(body)} bytes without completing")
            raise AbnormalTerminationError()

        ctx.body = body
        return ctx
