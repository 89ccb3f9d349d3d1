"""Tunnel lifecycle: the single owner of registry, ownership and subscribers."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from tunnel_api.config.settings import TunnelSettings
from tunnel_api.errors import OwnershipDenied, StorageInconsistency, TunnelNotFound
from tunnel_api.ids import IdentifierSource, RandomIdentifierSource
from tunnel_api.registry.ownership import OwnershipGuard
from tunnel_api.registry.tunnels import Clock, TunnelRegistry, _utc_now
from tunnel_api.sse.publisher import EventPublisher
from tunnel_api.sse.registry import SubscriberDirectory
from tunnel_api.sse.session import StreamingSession

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreatedTunnel:
    tunnel_id: str
    auth: Optional[str] = None


class TunnelService:
    """Create, publish, read, stream and delete tunnels.

    Creation, deletion and expiry of a tunnel touch the registry and the
    ownership guard inside one critical section so the two stores never
    disagree about which tunnels exist.
    """

    def __init__(
        self,
        settings: Optional[TunnelSettings] = None,
        *,
        id_source: Optional[IdentifierSource] = None,
        clock: Clock = _utc_now,
    ) -> None:
        self.settings = settings or TunnelSettings()
        self._ids = id_source or RandomIdentifierSource()
        self._clock = clock
        ttl = timedelta(seconds=self.settings.ttl_seconds) if self.settings.ttl_enabled else None
        self.registry = TunnelRegistry(
            ttl=ttl,
            collision_policy=self.settings.create_collision_policy,
            id_source=self._ids,
            clock=clock,
        )
        self.ownership: Optional[OwnershipGuard] = (
            OwnershipGuard() if self.settings.ownership_enabled else None
        )
        self.directory = SubscriberDirectory()
        self.publisher = EventPublisher(
            self.directory,
            delivery_timeout=self.settings.delivery_timeout_seconds,
        )
        self._lifecycle_lock = asyncio.Lock()

    def subchannel_name(self, subchannel: Optional[str]) -> str:
        return subchannel or self.settings.default_subchannel

    async def create(
        self,
        tunnel_id: Optional[str] = None,
        auth: Optional[str] = None,
    ) -> CreatedTunnel:
        async with self._lifecycle_lock:
            tunnel_id = await self.registry.create(tunnel_id or None)
            secret: Optional[str] = None
            if self.ownership is not None:
                secret = auth or self._ids.new_secret()
                try:
                    await self.ownership.register(tunnel_id, secret)
                except Exception:
                    await self.registry.delete(tunnel_id)
                    raise
        LOGGER.info("Tunnel %s has been created.", tunnel_id)
        return CreatedTunnel(tunnel_id=tunnel_id, auth=secret)

    async def publish(self, tunnel_id: str, subchannel: Optional[str], content: str) -> int:
        """Store content and push it to current subscribers; returns deliveries."""
        name = self.subchannel_name(subchannel)
        await self.registry.publish(tunnel_id, name, content)
        LOGGER.info("Tunnel %s has been updated.", tunnel_id)
        delivered = await self.publisher.publish(tunnel_id, name, content)
        LOGGER.debug("Tunnel %s/%s delivered to %d subscriber(s)", tunnel_id, name, delivered)
        return delivered

    async def read(self, tunnel_id: str, subchannel: Optional[str]) -> str:
        content = await self.registry.read(tunnel_id, self.subchannel_name(subchannel))
        LOGGER.debug("Tunnel %s has been accessed.", tunnel_id)
        return content

    async def open_session(self, tunnel_id: str, subchannel: Optional[str]) -> StreamingSession:
        session = StreamingSession(
            tunnel_id=tunnel_id,
            subchannel=self.subchannel_name(subchannel),
            registry=self.registry,
            directory=self.directory,
            max_queue=self.settings.subscriber_queue_size,
        )
        await session.prepare()
        return session

    async def delete(self, tunnel_id: str, auth: Optional[str] = None) -> None:
        async with self._lifecycle_lock:
            if not await self.registry.exists(tunnel_id):
                await self._forget_owner(tunnel_id)
                raise TunnelNotFound(tunnel_id)
            if self.ownership is not None:
                if not auth:
                    raise OwnershipDenied(tunnel_id)
                await self.ownership.authorize(tunnel_id, auth)
            try:
                record = await self.registry.delete(tunnel_id)
            except TunnelNotFound:
                await self._forget_owner(tunnel_id)
                raise
            if self.ownership is not None:
                try:
                    await self.ownership.revoke(tunnel_id)
                except Exception as exc:
                    await self.registry.restore(record)
                    LOGGER.exception("Unable to delete ownership record of tunnel %s", tunnel_id)
                    raise StorageInconsistency(
                        tunnel_id,
                        "Unable to delete tunnel ownership record.",
                    ) from exc
        LOGGER.info("Tunnel %s has been deleted.", tunnel_id)
        await self._close_streams(tunnel_id)

    async def _forget_owner(self, tunnel_id: str) -> None:
        # Expired but not yet swept: drop the stale ownership record too.
        if self.ownership is not None:
            await self.ownership.revoke(tunnel_id)

    async def expire(self, now: Optional[datetime] = None) -> List[str]:
        """Remove tunnels past their expiry instant, with their ownership records."""
        async with self._lifecycle_lock:
            expired = await self.registry.purge_expired(now or self._clock())
            if self.ownership is not None:
                for tunnel_id in expired:
                    await self.ownership.revoke(tunnel_id)
        for tunnel_id in expired:
            await self._close_streams(tunnel_id)
        return expired

    async def _close_streams(self, tunnel_id: str) -> None:
        if not self.settings.close_streams_on_delete:
            return
        connections = await self.directory.drop_tunnel(tunnel_id)
        for connection in connections:
            await connection.close()
        if connections:
            LOGGER.debug("Closed %d stream(s) of tunnel %s", len(connections), tunnel_id)

    async def stats(self) -> Dict[str, int]:
        return {
            "tunnels": await self.registry.count(),
            "subscribers": await self.directory.total(),
        }


__all__ = ["CreatedTunnel", "TunnelService"]
