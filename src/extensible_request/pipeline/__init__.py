"""Pipeline architecture for request attempts."""

from typing import Optional

from ..http.protocols import Transport
from ..http.transport import AiohttpTransport
from .base import EventEmitter, RequestContext, RequestPipeline, RequestStep
from .steps import BufferStep, DecodeStep, PrepareStep, SendStep, StatusStep


def build_pipeline(transport: Optional[Transport] = None) -> RequestPipeline:
    """Build the standard prepare -> send -> status -> buffer -> decode pipeline."""
    return RequestPipeline(
        steps=[
            PrepareStep(),
            SendStep(transport or AiohttpTransport()),
            StatusStep(),
            BufferStep(),
            DecodeStep(),
        ]
    )


__all__ = [
    "EventEmitter",
    "RequestContext",
    "RequestPipeline",
    "RequestStep",
    "build_pipeline",
]
