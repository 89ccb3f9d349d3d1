from __future__ import annotations

import asyncio
from typing import Dict, List, Tuple

from .connection import SseConnection

Key = Tuple[str, str]


class SubscriberDirectory:
    """In-memory registry of SSE connections, organised by tunnel/sub-channel.

    Each key maps to an insertion-ordered set (a dict with ``None`` values) so
    fan-out visits subscribers in subscription order.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._connections: Dict[Key, Dict[SseConnection, None]] = {}

    async def subscribe(self, tunnel_id: str, subchannel: str, connection: SseConnection) -> None:
        async with self._lock:
            self._connections.setdefault((tunnel_id, subchannel), {})[connection] = None

    async def unsubscribe(self, tunnel_id: str, subchannel: str, connection: SseConnection) -> bool:
        async with self._lock:
            key = (tunnel_id, subchannel)
            subscribers = self._connections.get(key)
            if not subscribers or connection not in subscribers:
                return False
            del subscribers[connection]
            if not subscribers:
                self._connections.pop(key, None)
            return True

    async def snapshot(self, tunnel_id: str, subchannel: str) -> List[SseConnection]:
        """Return a stable copy of the current subscribers of one key."""
        async with self._lock:
            return list(self._connections.get((tunnel_id, subchannel), ()))

    async def count(self, tunnel_id: str, subchannel: str) -> int:
        async with self._lock:
            return len(self._connections.get((tunnel_id, subchannel), ()))

    async def total(self) -> int:
        async with self._lock:
            return sum(len(subscribers) for subscribers in self._connections.values())

    async def drop_tunnel(self, tunnel_id: str) -> List[SseConnection]:
        """Remove every subscriber of a tunnel and return them."""
        async with self._lock:
            keys = [key for key in self._connections if key[0] == tunnel_id]
            dropped: List[SseConnection] = []
            for key in keys:
                dropped.extend(self._connections.pop(key))
            return dropped


__all__ = ["SubscriberDirectory"]
