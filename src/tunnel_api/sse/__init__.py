from __future__ import annotations

from .connection import SseConnection
from .models import SessionState, serialize_frame
from .publisher import EventPublisher
from .registry import SubscriberDirectory
from .session import FrameWriter, StreamingSession


__all__ = [
    "EventPublisher",
    "FrameWriter",
    "SessionState",
    "SseConnection",
    "StreamingSession",
    "SubscriberDirectory",
    "serialize_frame",
]
