from __future__ import annotations

from enum import Enum


class SessionState(str, Enum):
    INIT = "init"
    REGISTERED = "registered"
    ACTIVE = "active"
    CLOSED = "closed"


def serialize_frame(content: str) -> bytes:
    """Serialize published content into an SSE frame.

    Each line of the content becomes its own ``data:`` field so that clients
    reassemble the original text; single-line content yields
    ``data: <content>\\n\\n``.
    """
    lines = content.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    return ("".join(f"data: {line}\n" for line in lines) + "\n").encode("utf-8")


__all__ = ["SessionState", "serialize_frame"]
