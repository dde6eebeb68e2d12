"""Configuration, option and event models."""

from .config import ClientConfig, QueryStringOptions, RetryPolicy, TransportOptions
from .events import EventType, RequestEvent
from .options import RequestOptions

__all__ = [
    # Config
    "ClientConfig",
    "QueryStringOptions",
    "RetryPolicy",
    "TransportOptions",
    # Options
    "RequestOptions",
    # Events
    "EventType",
    "RequestEvent",
]
