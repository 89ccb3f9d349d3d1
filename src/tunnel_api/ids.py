"""Identifier sources for tunnel ids and auth secrets."""

from __future__ import annotations

import secrets
from typing import Protocol
from uuid import uuid4


class IdentifierSource(Protocol):
    def new_tunnel_id(self) -> str: ...

    def new_secret(self) -> str: ...


class RandomIdentifierSource:
    """High-entropy ids so generated tunnels never collide in practice."""

    def new_tunnel_id(self) -> str:
        return uuid4().hex

    def new_secret(self) -> str:
        return secrets.token_urlsafe(24)


__all__ = ["IdentifierSource", "RandomIdentifierSource"]
