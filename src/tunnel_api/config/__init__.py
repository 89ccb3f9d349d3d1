from __future__ import annotations

from .settings import TunnelApiSettings, TunnelSettings, get_api_settings, get_settings

__all__ = ["TunnelApiSettings", "TunnelSettings", "get_api_settings", "get_settings"]
