from __future__ import annotations

import logging

from .registry import SubscriberDirectory

LOGGER = logging.getLogger(__name__)


class EventPublisher:
    """Fan published content out to the subscribers of one tunnel/sub-channel."""

    def __init__(self, directory: SubscriberDirectory, *, delivery_timeout: float = 5.0) -> None:
        self._directory = directory
        self._delivery_timeout = delivery_timeout

    async def publish(self, tunnel_id: str, subchannel: str, content: str) -> int:
        """Deliver to every current subscriber; returns how many accepted it.

        A subscriber that is closed or does not accept within the delivery
        timeout is skipped. Nothing is retried or raised to the publisher.
        """
        connections = await self._directory.snapshot(tunnel_id, subchannel)
        delivered = 0
        for connection in connections:
            if await connection.enqueue(content, timeout=self._delivery_timeout):
                delivered += 1
            elif connection.closed:
                LOGGER.debug("Skipping closed subscriber %s", connection.id)
            else:
                LOGGER.warning(
                    "Dropped update for slow subscriber %s tunnel=%s subchannel=%s",
                    connection.id,
                    tunnel_id,
                    subchannel,
                )
        return delivered


__all__ = ["EventPublisher"]
