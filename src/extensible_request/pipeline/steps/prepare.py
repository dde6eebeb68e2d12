"""PrepareStep - request header normalization."""

from typing import Optional

from ..base import EventEmitter, RequestContext


class PrepareStep:
    """
    Pipeline step that normalizes the outgoing request.

    Replaces ctx.options with a copy whose content-length header equals the
    byte length of the body (0 without a body), overriding any value the
    caller supplied under any letter case.
    """

    name = "prepare"

    async def execute(
        self,
        ctx: RequestContext,
        emit: Optional[EventEmitter] = None,
    ) -> RequestContext:
        ctx.options = ctx.options.with_content_length()
        return ctx
