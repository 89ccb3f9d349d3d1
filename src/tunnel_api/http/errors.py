"""Shared error helpers for the HTTP API."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from tunnel_api.errors import (
    OwnershipDenied,
    OwnershipMissing,
    StorageInconsistency,
    TunnelConflict,
    TunnelError,
    TunnelNotFound,
)
from tunnel_api.models.error import Error

LOGGER = logging.getLogger(__name__)

_STATUS_ERROR_CODES: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_409_CONFLICT: "conflict",
    status.HTTP_500_INTERNAL_SERVER_ERROR: "internal_error",
}

_DOMAIN_STATUS: tuple[tuple[type[TunnelError], int], ...] = (
    (TunnelNotFound, status.HTTP_404_NOT_FOUND),
    (OwnershipMissing, status.HTTP_404_NOT_FOUND),
    (OwnershipDenied, status.HTTP_401_UNAUTHORIZED),
    (TunnelConflict, status.HTTP_409_CONFLICT),
    (StorageInconsistency, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def error_payload(
    message: str,
    *,
    status_code: Optional[int] = None,
    details: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    return Error(
        error=_STATUS_ERROR_CODES.get(status_code or 0, "error"),
        message=message,
        details=details,
    ).model_dump(exclude_none=True)


def http_error(
    status_code: int,
    message: str,
    *,
    details: Optional[dict[str, Any]] = None,
) -> HTTPException:
    payload = error_payload(message, status_code=status_code, details=details)
    return HTTPException(status_code=status_code, detail=payload)


def bad_request(message: str, *, details: Optional[dict[str, Any]] = None) -> HTTPException:
    return http_error(status.HTTP_400_BAD_REQUEST, message, details=details)


def unauthorized(message: str, *, details: Optional[dict[str, Any]] = None) -> HTTPException:
    return http_error(status.HTTP_401_UNAUTHORIZED, message, details=details)


def not_found(message: str, *, details: Optional[dict[str, Any]] = None) -> HTTPException:
    return http_error(status.HTTP_404_NOT_FOUND, message, details=details)


def conflict(message: str, *, details: Optional[dict[str, Any]] = None) -> HTTPException:
    return http_error(status.HTTP_409_CONFLICT, message, details=details)


def internal_error(message: str, *, details: Optional[dict[str, Any]] = None) -> HTTPException:
    return http_error(status.HTTP_500_INTERNAL_SERVER_ERROR, message, details=details)


def status_for(exc: TunnelError) -> int:
    for error_type, status_code in _DOMAIN_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def tunnel_error_handler(request: Request, exc: TunnelError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        LOGGER.error("Request %s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        LOGGER.info("Request %s %s rejected for tunnel %s: %s", request.method, request.url.path, exc.tunnel_id, exc.message)
    payload = error_payload(
        exc.message,
        status_code=status_code,
        details={"id": exc.tunnel_id},
    )
    return JSONResponse(status_code=status_code, content={"detail": payload})


__all__ = [
    "bad_request",
    "conflict",
    "error_payload",
    "http_error",
    "internal_error",
    "not_found",
    "status_for",
    "tunnel_error_handler",
    "unauthorized",
]
