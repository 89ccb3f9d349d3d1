from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class CreateTunnelResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    auth: Optional[str] = None


class TunnelContentResponse(BaseModel):
    id: str
    subchannel: str
    content: str


class TunnelStatsResponse(BaseModel):
    tunnels: int
    subscribers: int
