"""Ownership records: tunnel id -> SHA-512 of the creator's secret."""

from __future__ import annotations

import asyncio
import hashlib
import hmac
from typing import Dict

from tunnel_api.errors import OwnershipDenied, OwnershipMissing


def hash_secret(secret: str) -> str:
    return hashlib.sha512(secret.encode("utf-8")).hexdigest()


class OwnershipGuard:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._hashes: Dict[str, str] = {}

    async def register(self, tunnel_id: str, secret: str) -> None:
        async with self._lock:
            self._hashes[tunnel_id] = hash_secret(secret)

    async def authorize(self, tunnel_id: str, secret: str) -> None:
        async with self._lock:
            stored = self._hashes.get(tunnel_id)
        if stored is None:
            raise OwnershipMissing(tunnel_id)
        if not hmac.compare_digest(stored, hash_secret(secret)):
            raise OwnershipDenied(tunnel_id)

    async def revoke(self, tunnel_id: str) -> bool:
        async with self._lock:
            return self._hashes.pop(tunnel_id, None) is not None

    async def has_record(self, tunnel_id: str) -> bool:
        async with self._lock:
            return tunnel_id in self._hashes


__all__ = ["OwnershipGuard", "hash_secret"]
