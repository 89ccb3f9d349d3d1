from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from tunnel_api.http.params import TunnelParams, read_params
from tunnel_api.http.streaming import EventStreamResponse
from tunnel_api.models.tunnel import (
    CreateTunnelResponse,
    TunnelContentResponse,
    TunnelStatsResponse,
)
from tunnel_api.service.tunnels import TunnelService

router = APIRouter()


def get_tunnel_service(request: Request) -> TunnelService:
    return request.app.state.tunnel_service


@router.get("/", response_class=PlainTextResponse, tags=["Home"])
async def home() -> str:
    return "Welcome to the TXTTunnel homepage!"


@router.api_route(
    "/tunnel/create",
    methods=["GET", "POST"],
    response_model=CreateTunnelResponse,
    response_model_exclude_none=True,
    tags=["Tunnels"],
    summary="Create a tunnel, optionally with a caller-chosen id and auth secret",
)
async def create_tunnel(
    params: TunnelParams = Depends(read_params),
    service: TunnelService = Depends(get_tunnel_service),
) -> CreateTunnelResponse:
    created = await service.create(params.id, params.auth)
    return CreateTunnelResponse(id=created.tunnel_id, auth=created.auth)


@router.api_route(
    "/tunnel/send",
    methods=["GET", "POST"],
    response_class=PlainTextResponse,
    tags=["Tunnels"],
    summary="Publish content to a tunnel sub-channel",
)
async def send_to_tunnel(
    params: TunnelParams = Depends(read_params),
    service: TunnelService = Depends(get_tunnel_service),
) -> str:
    tunnel_id = params.require("id")
    content = params.require("content")
    await service.publish(tunnel_id, params.subchannel, content)
    return f"Tunnel {tunnel_id} has been updated."


@router.api_route(
    "/tunnel",
    methods=["GET", "POST"],
    response_model=TunnelContentResponse,
    tags=["Tunnels"],
    summary="Read the latest content of a tunnel sub-channel",
)
async def get_tunnel(
    params: TunnelParams = Depends(read_params),
    service: TunnelService = Depends(get_tunnel_service),
) -> TunnelContentResponse:
    tunnel_id = params.require("id")
    subchannel = service.subchannel_name(params.subchannel)
    content = await service.read(tunnel_id, subchannel)
    return TunnelContentResponse(id=tunnel_id, subchannel=subchannel, content=content)


@router.api_route(
    "/tunnel/stream",
    methods=["GET", "POST"],
    responses={200: {"content": {"text/event-stream": {}}}},
    tags=["Tunnels"],
    summary="Server-Sent Events stream of a tunnel sub-channel",
)
async def stream_tunnel(
    params: TunnelParams = Depends(read_params),
    service: TunnelService = Depends(get_tunnel_service),
) -> EventStreamResponse:
    tunnel_id = params.require("id")
    session = await service.open_session(tunnel_id, params.subchannel)
    return EventStreamResponse(session)


@router.api_route(
    "/tunnel/delete",
    methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    response_class=PlainTextResponse,
    tags=["Tunnels"],
    summary="Delete a tunnel using the auth secret returned on creation",
)
async def delete_tunnel(
    params: TunnelParams = Depends(read_params),
    service: TunnelService = Depends(get_tunnel_service),
) -> str:
    tunnel_id = params.require("id")
    auth = params.require("auth") if service.ownership is not None else params.auth
    await service.delete(tunnel_id, auth)
    return f"Tunnel {tunnel_id} has been deleted."


@router.get("/tunnel/stats", response_model=TunnelStatsResponse, tags=["Tunnels"])
async def tunnel_stats(
    service: TunnelService = Depends(get_tunnel_service),
) -> TunnelStatsResponse:
    return TunnelStatsResponse(**await service.stats())
