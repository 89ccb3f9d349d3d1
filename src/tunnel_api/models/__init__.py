"""Public exports for relay API models."""

from __future__ import annotations

from tunnel_api.models.error import Error
from tunnel_api.models.tunnel import (
    CreateTunnelResponse,
    TunnelContentResponse,
    TunnelStatsResponse,
)

__all__ = [
    "CreateTunnelResponse",
    "Error",
    "TunnelContentResponse",
    "TunnelStatsResponse",
]
