"""SendStep - hands the request to the transport."""

import logging
from typing import Optional

from ...http.protocols import Transport
from ...models.events import EventType, RequestEvent
from ..base import EventEmitter, RequestContext

logger = logging.getLogger(__name__)


class SendStep:
    """
    Pipeline step that performs the single transport attempt.

    Populates:
        ctx.raw: Response with headers received and body unread

    The open response is registered on ctx.exit_stack so later steps can
    read the body; it is released when the pipeline finishes.

    Raises:
        Transport errors (connection refused, reset, timed out) unchanged
    """

    name = "send"

    def __init__(self, transport: Transport) -> None:
        """
        Initialize the send step.

        Args:
            transport: Transport implementing the Transport protocol
        """
        self._transport = transport

    async def execute(
        self,
        ctx: RequestContext,
        emit: Optional[EventEmitter] = None,
    ) -> RequestContext:
        options = ctx.options

        if emit:
            emit(
                RequestEvent(
                    type=EventType.REQUEST_STARTED,
                    url=options.target,
                    method=options.method,
                    attempt=ctx.attempt,
                    message=f"{options.method} {options.target}",
                )
            )

        ctx.raw = await ctx.exit_stack.enter_async_context(self._transport.open(options))
        logger.debug(f"{options.method} {options.target}: HTTP {ctx.raw.status_code}")
        return ctx
