from __future__ import annotations

from .expiry import ExpiryManager

__all__ = ["ExpiryManager"]
