"""Request pipeline step implementations."""

from .buffer import BufferStep
from .decode import DecodeStep, parse_content_type
from .prepare import PrepareStep
from .send import SendStep
from .status import StatusStep

__all__ = [
    "BufferStep",
    "DecodeStep",
    "PrepareStep",
    "SendStep",
    "StatusStep",
    "parse_content_type",
]
