from __future__ import annotations

from .ownership import OwnershipGuard, hash_secret
from .tunnels import TunnelRecord, TunnelRegistry

__all__ = ["OwnershipGuard", "TunnelRecord", "TunnelRegistry", "hash_secret"]
