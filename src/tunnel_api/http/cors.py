"""Permissive CORS headers on every response; OPTIONS answered directly."""

from __future__ import annotations

from typing import Dict, Sequence

from starlette.datastructures import MutableHeaders
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from tunnel_api.http.errors import error_payload

DEFAULT_METHODS: Sequence[str] = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
DEFAULT_HEADERS: Sequence[str] = ("Content-Type", "Authorization")


class CORSHeadersMiddleware:
    def __init__(
        self,
        app: ASGIApp,
        *,
        allow_origin: str = "*",
        allow_methods: Sequence[str] = DEFAULT_METHODS,
        allow_headers: Sequence[str] = DEFAULT_HEADERS,
    ) -> None:
        self.app = app
        self.headers: Dict[str, str] = {
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Methods": ", ".join(allow_methods),
            "Access-Control-Allow-Headers": ", ".join(allow_headers),
        }

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope["method"] == "OPTIONS":
            response = Response(status_code=200, headers=self.headers)
            await response(scope, receive, send)
            return

        response_started = False

        async def send_with_cors(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
                headers = MutableHeaders(scope=message)
                for key, value in self.headers.items():
                    headers[key] = value
            await send(message)

        try:
            await self.app(scope, receive, send_with_cors)
        except Exception:
            # Unhandled errors get their 500 here so it carries the CORS headers.
            if not response_started:
                response = JSONResponse(
                    {"detail": error_payload("Internal Server Error", status_code=500)},
                    status_code=500,
                    headers=self.headers,
                )
                await response(scope, receive, send)
            raise


__all__ = ["CORSHeadersMiddleware"]
