"""Runtime entrypoint for the relay FastAPI app."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from tunnel_api import __version__
from tunnel_api.apis.tunnels_api import router as tunnels_router
from tunnel_api.config.settings import TunnelSettings, get_settings
from tunnel_api.engine.expiry import ExpiryManager
from tunnel_api.errors import TunnelError
from tunnel_api.http.cors import CORSHeadersMiddleware
from tunnel_api.http.errors import tunnel_error_handler
from tunnel_api.service.tunnels import TunnelService

LOGGER = logging.getLogger(__name__)


def create_app(
    settings: Optional[TunnelSettings] = None,
    *,
    service: Optional[TunnelService] = None,
) -> FastAPI:
    settings = settings or get_settings()
    service = service or TunnelService(settings)
    expiry: Optional[ExpiryManager] = None
    if settings.ttl_enabled:
        expiry = ExpiryManager(service, interval=settings.sweep_interval_seconds)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        LOGGER.info(
            "Relay starting ttl=%s ownership=%s collision_policy=%s",
            f"{settings.ttl_seconds}s" if settings.ttl_enabled else "off",
            settings.ownership_enabled,
            settings.create_collision_policy,
        )
        if expiry is not None:
            expiry.start()
        try:
            yield
        finally:
            if expiry is not None:
                await expiry.stop()
            LOGGER.info("Relay shut down")

    app = FastAPI(
        title="TXTTunnel",
        description="Ephemeral text relay with Server-Sent Events fan-out",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.tunnel_service = service
    app.state.expiry_manager = expiry
    app.add_middleware(CORSHeadersMiddleware)
    app.add_exception_handler(TunnelError, tunnel_error_handler)
    app.include_router(tunnels_router)
    return app


app = create_app()
