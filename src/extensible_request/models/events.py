"""Event types emitted while a request is in flight."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class EventType(str, Enum):
    """Types of events emitted during a call."""

    REQUEST_STARTED = "request_started"
    REQUEST_COMPLETED = "request_completed"
    REQUEST_FAILED = "request_failed"
    REQUEST_RETRYING = "request_retrying"
    REQUEST_GAVE_UP = "request_gave_up"


@dataclass
class RequestEvent:
    """
    Event emitted during a call.

    Provides typed fields for common event data instead of a generic dict.

    Example:
        def on_event(event: RequestEvent) -> None:
            if event.type == EventType.REQUEST_RETRYING:
                print(f"Retry {event.attempt} in {event.delay_ms}ms: {event.error}")

        await get("https://example.com/api", on_event=on_event)
    """

    type: EventType

    # Timestamp (always UTC)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # Common fields
    url: Optional[str] = None
    method: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None

    # Typed payload fields for specific events
    status_code: Optional[int] = None
    attempt: Optional[int] = None
    delay_ms: Optional[float] = None
    bytes_received: Optional[int] = None

    @property
    def is_error(self) -> bool:
        """Check if this is an error event."""
        return self.type in (EventType.REQUEST_FAILED, EventType.REQUEST_GAVE_UP)
