"""StatusStep - rejects responses outside the 2xx range."""

import logging
from typing import Optional

from ...errors import RequestError
from ..base import EventEmitter, RequestContext

logger = logging.getLogger(__name__)


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


class StatusStep:
    """
    Pipeline step that checks the response status.

    For a status outside [200, 300) the remaining body is drained and
    discarded, then RequestError is raised with the standard reason phrase
    for the code (not the phrase sent by the server).
    """

    name = "status"

    async def execute(
        self,
        ctx: RequestContext,
        emit: Optional[EventEmitter] = None,
    ) -> RequestContext:
        raw = ctx.raw
        if raw is None:
            raise RuntimeError("StatusStep requires a response; run SendStep first")

        if not is_success(raw.status_code):
            await raw.stream.discard()
            logger.debug(f"{ctx.options.target}: rejecting HTTP {raw.status_code}")
            raise RequestError.from_status(raw.status_code)

        return ctx
