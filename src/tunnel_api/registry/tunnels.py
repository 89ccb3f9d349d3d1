"""In-memory tunnel storage with per-tunnel expiry."""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Literal, Optional

from tunnel_api.errors import TunnelConflict, TunnelNotFound
from tunnel_api.ids import IdentifierSource, RandomIdentifierSource

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TunnelRecord:
    tunnel_id: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    content: Dict[str, str] = field(default_factory=dict)
    generation: int = 0

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now


class TunnelRegistry:
    """Live tunnels and the last published content of each sub-channel.

    Expired tunnels are invisible to ``read`` and ``publish`` even before
    ``purge_expired`` removes them.
    """

    def __init__(
        self,
        *,
        ttl: Optional[timedelta] = None,
        collision_policy: Literal["reset", "reject"] = "reset",
        id_source: Optional[IdentifierSource] = None,
        clock: Clock = _utc_now,
    ) -> None:
        self._lock = asyncio.Lock()
        self._tunnels: Dict[str, TunnelRecord] = {}
        self._ttl = ttl
        self._collision_policy = collision_policy
        self._ids = id_source or RandomIdentifierSource()
        self._clock = clock
        self._generations = itertools.count(1)

    def _deadline(self, now: datetime) -> Optional[datetime]:
        if self._ttl is None:
            return None
        return now + self._ttl

    def _live(self, tunnel_id: str, now: datetime) -> TunnelRecord:
        record = self._tunnels.get(tunnel_id)
        if record is None or record.is_expired(now):
            raise TunnelNotFound(tunnel_id)
        return record

    async def create(self, tunnel_id: Optional[str] = None) -> str:
        async with self._lock:
            now = self._clock()
            generation: Optional[int] = None
            if tunnel_id is None:
                tunnel_id = self._ids.new_tunnel_id()
                while tunnel_id in self._tunnels:
                    tunnel_id = self._ids.new_tunnel_id()
            else:
                existing = self._tunnels.get(tunnel_id)
                if existing is not None and not existing.is_expired(now):
                    if self._collision_policy == "reject":
                        raise TunnelConflict(tunnel_id)
                    LOGGER.info("Tunnel %s already exists; resetting its content", tunnel_id)
                    # A reset keeps the tunnel's identity for its subscribers.
                    generation = existing.generation
            self._tunnels[tunnel_id] = TunnelRecord(
                tunnel_id=tunnel_id,
                created_at=now,
                expires_at=self._deadline(now),
                generation=generation if generation is not None else next(self._generations),
            )
            return tunnel_id

    async def restore(self, record: TunnelRecord) -> None:
        """Put back a record removed by ``delete``."""
        async with self._lock:
            self._tunnels.setdefault(record.tunnel_id, record)

    async def publish(self, tunnel_id: str, subchannel: str, content: str) -> None:
        async with self._lock:
            now = self._clock()
            record = self._live(tunnel_id, now)
            record.content[subchannel] = content
            record.expires_at = self._deadline(now)

    async def read(self, tunnel_id: str, subchannel: str) -> str:
        async with self._lock:
            record = self._live(tunnel_id, self._clock())
            return record.content.get(subchannel, "")

    async def exists(self, tunnel_id: str) -> bool:
        async with self._lock:
            try:
                self._live(tunnel_id, self._clock())
            except TunnelNotFound:
                return False
            return True

    async def generation(self, tunnel_id: str) -> Optional[int]:
        """Generation of the live tunnel, or None when it is gone.

        Every fresh ``create`` of an id gets a new generation, so a caller can
        tell a recreated tunnel from the one it validated earlier.
        """
        async with self._lock:
            try:
                return self._live(tunnel_id, self._clock()).generation
            except TunnelNotFound:
                return None

    async def delete(self, tunnel_id: str) -> TunnelRecord:
        async with self._lock:
            self._live(tunnel_id, self._clock())
            return self._tunnels.pop(tunnel_id)

    async def purge_expired(self, now: Optional[datetime] = None) -> List[str]:
        """Drop every tunnel whose expiry instant is at or before ``now``."""
        async with self._lock:
            now = now or self._clock()
            expired = [
                tunnel_id
                for tunnel_id, record in self._tunnels.items()
                if record.is_expired(now)
            ]
            for tunnel_id in expired:
                del self._tunnels[tunnel_id]
            return expired

    async def count(self) -> int:
        async with self._lock:
            return len(self._tunnels)


__all__ = ["Clock", "TunnelRecord", "TunnelRegistry"]
