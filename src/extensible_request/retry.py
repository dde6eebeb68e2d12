"""Retry orchestration with exponential backoff."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .errors import error_kind, is_retriable
from .http.protocols import DecodedResult
from .models.config import RetryPolicy
from .models.events import EventType, RequestEvent
from .models.options import RequestOptions
from .pipeline.base import EventEmitter, RequestPipeline

logger = logging.getLogger(__name__)

Wait = Callable[[float], Awaitable[None]]


async def wait(interval: float) -> None:
    """Suspend for ``interval`` milliseconds without blocking the loop."""
    await asyncio.sleep(interval / 1000)


class RetryOrchestrator:
    """
    Runs the request pipeline until it succeeds or fails terminally.

    Attempts are strictly sequential. After a retriable failure the
    orchestrator waits ``interval`` ms, then retries with one retry fewer
    and the interval doubled. A RequestError other than 504, a decode
    error or an unexpected exception ends the call at once; once the retry
    budget is spent the last error is raised unchanged.

    Example:
        orchestrator = RetryOrchestrator(build_pipeline(), RetryPolicy(retries=2))
        result = await orchestrator.run(options)
    """

    def __init__(
        self,
        pipeline: RequestPipeline,
        policy: Optional[RetryPolicy] = None,
        sleep: Optional[Wait] = None,
        emit: Optional[EventEmitter] = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            pipeline: Pipeline executing one attempt
            policy: Retry budget and initial interval (defaults: 3, 200 ms)
            sleep: Coroutine function taking milliseconds (default: wait)
            emit: Optional callback for retry and pipeline events
        """
        self._pipeline = pipeline
        self._policy = policy or RetryPolicy()
        self._wait = sleep or wait
        self._emit = emit

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def run(self, options: RequestOptions) -> DecodedResult:
        """
        Execute the call with retries.

        Args:
            options: Request options for the call

        Returns:
            DecodedResult of the first successful attempt

        Raises:
            The error of the last attempt when it is terminal or the
            retry budget is exhausted
        """
        retries = self._policy.retries
        interval = self._policy.interval
        attempt = 0

        while True:
            attempt += 1
            ctx = await self._pipeline.execute(options, emit=self._emit, attempt=attempt)

            if ctx.error is None:
                if ctx.result is None:
                    raise RuntimeError("Pipeline finished without a result")
                return ctx.result

            error = ctx.error

            if not is_retriable(error):
                raise error

            if retries <= 0:
                if attempt > 1:
                    logger.error(f"{options.method} {options.target} failed after {attempt} attempts: {error!r}")
                    if self._emit:
                        self._emit(
                            RequestEvent(
                                type=EventType.REQUEST_GAVE_UP,
                                url=options.target,
                                method=options.method,
                                attempt=attempt,
                                error=repr(error),
                            )
                        )
                raise error

            logger.warning(
                f"{error_kind(error).value} error for {options.method} {options.target}: {error!r}, "
                f"retrying in {interval:g}ms (attempt {attempt}/{attempt + retries})"
            )
            if self._emit:
                self._emit(
                    RequestEvent(
                        type=EventType.REQUEST_RETRYING,
                        url=options.target,
                        method=options.method,
                        attempt=attempt,
                        delay_ms=interval,
                        status_code=getattr(error, "status_code", None),
                        error=repr(error),
                    )
                )

            await self._wait(interval)
            retries -= 1
            interval *= 2
