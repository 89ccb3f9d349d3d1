from __future__ import annotations

from .tunnels import CreatedTunnel, TunnelService

__all__ = ["CreatedTunnel", "TunnelService"]
