"""Request parameters from the query string and/or a JSON body."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from fastapi import Request

from .errors import bad_request

_ALIASES: Dict[str, Tuple[str, ...]] = {
    "id": ("id", "ID"),
    "subchannel": ("subchannel", "subChannel"),
    "content": ("content",),
    "auth": ("auth",),
}

_HINTS: Dict[str, str] = {
    "id": "No tunnel id has been provided.\nPlease use ?id= to include the tunnel id.",
    "content": "No content has been provided.\nPlease use ?content= to include the content.",
    "auth": (
        "No authentication token has been provided.\n"
        "Please use ?auth= to include the authentication token."
    ),
}


@dataclass(frozen=True)
class TunnelParams:
    id: Optional[str] = None
    subchannel: Optional[str] = None
    content: Optional[str] = None
    auth: Optional[str] = None

    def require(self, name: str) -> str:
        value = getattr(self, name)
        if name == "content":
            missing = value is None
        else:
            missing = not value
        if missing:
            raise bad_request(_HINTS.get(name, f"Missing required field '{name}'."))
        return value


def _coerce(name: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise bad_request(f"Field '{name}' must be a string.")
    if isinstance(value, (str, int, float)):
        return str(value)
    raise bad_request(f"Field '{name}' must be a string.")


async def _json_body(request: Request) -> Dict[str, Any]:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise bad_request("Malformed JSON body.") from exc
    if not isinstance(payload, dict):
        raise bad_request("JSON body must be an object.")
    return payload


async def read_params(request: Request) -> TunnelParams:
    """Collect known fields; query-string values win over body values."""
    body: Dict[str, Any] = {}
    if request.method not in ("GET", "HEAD"):
        body = await _json_body(request)
    values: Dict[str, Optional[str]] = {}
    for name, aliases in _ALIASES.items():
        value: Optional[str] = None
        for alias in aliases:
            if alias in request.query_params:
                value = request.query_params[alias]
                break
        if value is None:
            for alias in aliases:
                if alias in body:
                    value = _coerce(name, body[alias])
                    break
        values[name] = value
    return TunnelParams(**values)


__all__ = ["TunnelParams", "read_params"]
