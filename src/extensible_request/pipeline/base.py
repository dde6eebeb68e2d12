"""Base classes for the per-attempt request pipeline."""

import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, runtime_checkable

from ..errors import error_kind
from ..http.protocols import DecodedResult, RawResponse
from ..models.events import EventType, RequestEvent
from ..models.options import RequestOptions

logger = logging.getLogger(__name__)

# Type alias for event emitter function
EventEmitter = Callable[[RequestEvent], None]


@dataclass
class RequestContext:
    """
    Context object passed through pipeline steps.

    Holds all state for a single attempt, accumulated as it moves
    through the pipeline. A fresh context is created per attempt.

    Attributes:
        options: Request options (normalized by the prepare step)
        exit_stack: Owns resources that must outlive a step, such as the
            open response; closed when the pipeline finishes
        attempt: 1-based attempt number within the call
        raw: Response surfaced by the transport
        body: Fully buffered response body
        media_type: Lower-cased media type of the response
        encoding: Character encoding used for decoding
        result: Decoded result once the last step succeeds
        error: Exception that stopped the pipeline, if any
        failed_step: Name of the step that raised ``error``
    """

    options: RequestOptions
    exit_stack: AsyncExitStack
    attempt: int = 1

    # Response (accumulated through pipeline)
    raw: Optional[RawResponse] = None
    body: bytes = b""
    media_type: Optional[str] = None
    encoding: Optional[str] = None
    result: Optional[DecodedResult] = None

    # Status
    error: Optional[Exception] = None
    failed_step: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@runtime_checkable
class RequestStep(Protocol):
    """
    Protocol for pipeline steps.

    Each step receives a RequestContext, processes it, and returns
    the (possibly modified) context.

    Error Handling Contract:
    - Raise an exception to fail the attempt
    - The pipeline catches it, records it in ctx.error and skips the
      remaining steps

    Example implementation:
        class StatusStep:
            name = "status"

            async def execute(
                self,
                ctx: RequestContext,
                emit: Optional[EventEmitter] = None
            ) -> RequestContext:
                if not 200 <= ctx.raw.status_code < 300:
                    raise RequestError.from_status(ctx.raw.status_code)
                return ctx
    """

    name: str

    async def execute(
        self,
        ctx: RequestContext,
        emit: Optional[EventEmitter] = None,
    ) -> RequestContext:
        """
        Execute this pipeline step.

        Args:
            ctx: The request context with accumulated state
            emit: Optional callback to emit events

        Returns:
            The (possibly modified) request context
        """
        ...


@dataclass
class RequestPipeline:
    """
    Pipeline running one request attempt through ordered steps.

    Steps are executed in order. If a step raises an exception, the
    exception is captured in ctx.error and processing stops. Resources
    registered on ctx.exit_stack are released before returning.

    Example:
        pipeline = RequestPipeline(steps=[
            PrepareStep(),
            SendStep(transport),
            StatusStep(),
            BufferStep(),
            DecodeStep(),
        ])

        ctx = await pipeline.execute(options, emit=log_event)
        if ctx.error:
            logger.error(f"Failed in {ctx.failed_step}: {ctx.error}")
        else:
            print(ctx.result.body)
    """

    steps: list[RequestStep]

    async def execute(
        self,
        options: RequestOptions,
        emit: Optional[EventEmitter] = None,
        attempt: int = 1,
    ) -> RequestContext:
        """
        Execute the pipeline for one attempt.

        Args:
            options: Request options for the call
            emit: Optional callback for emitting events
            attempt: 1-based attempt number, for events and logs

        Returns:
            RequestContext with final state (check error/result for outcome)
        """
        async with AsyncExitStack() as stack:
            ctx = RequestContext(options=options, exit_stack=stack, attempt=attempt)

            for step in self.steps:
                try:
                    ctx = await step.execute(ctx, emit)
                except Exception as e:
                    ctx.error = e
                    ctx.failed_step = step.name
                    logger.debug(
                        f"Attempt {attempt} for {options.target} failed in {step.name}: "
                        f"{error_kind(e).value}: {e!r}"
                    )

                    if emit:
                        emit(
                            RequestEvent(
                                type=EventType.REQUEST_FAILED,
                                url=options.target,
                                method=options.method,
                                attempt=attempt,
                                status_code=getattr(e, "status_code", None),
                                error=f"{step.name}: {e!r}",
                            )
                        )
                    break

        return ctx

    def add_step(self, step: RequestStep) -> "RequestPipeline":
        """
        Add a step to the pipeline (fluent API).

        Args:
            step: The step to add

        Returns:
            Self for chaining
        """
        self.steps.append(step)
        return self
