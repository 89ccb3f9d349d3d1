"""Periodic sweep that removes tunnels past their expiry instant."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from tunnel_api.service.tunnels import TunnelService

LOGGER = logging.getLogger(__name__)


class ExpiryManager:
    def __init__(self, service: "TunnelService", *, interval: float = 600.0) -> None:
        self._service = service
        self._interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep(self) -> List[str]:
        expired = await self._service.expire()
        if expired:
            LOGGER.info("Expired %d tunnel(s): %s", len(expired), ", ".join(expired))
        return expired

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.sweep()
            except Exception:  # noqa: BLE001
                LOGGER.exception("Tunnel expiry sweep failed")

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="tunnel_expiry")
        LOGGER.debug("Expiry sweep started interval=%ss", self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        LOGGER.debug("Expiry sweep stopped")


__all__ = ["ExpiryManager"]
