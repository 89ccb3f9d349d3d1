"""Domain errors raised by the relay core."""

from __future__ import annotations


class TunnelError(Exception):
    """Base class for relay errors."""

    def __init__(self, tunnel_id: str, message: str) -> None:
        super().__init__(message)
        self.tunnel_id = tunnel_id
        self.message = message


class TunnelNotFound(TunnelError):
    def __init__(self, tunnel_id: str) -> None:
        super().__init__(tunnel_id, "No tunnel with this id exists.")


class TunnelConflict(TunnelError):
    def __init__(self, tunnel_id: str) -> None:
        super().__init__(tunnel_id, "A tunnel with this id already exists.")


class OwnershipMissing(TunnelError):
    """No ownership record is stored for the tunnel."""

    def __init__(self, tunnel_id: str) -> None:
        super().__init__(tunnel_id, "No tunnel with this id exists.")


class OwnershipDenied(TunnelError):
    """The supplied secret does not hash to the stored value."""

    def __init__(self, tunnel_id: str) -> None:
        super().__init__(tunnel_id, "Incorrect authentication token.")


class StorageInconsistency(TunnelError):
    pass


__all__ = [
    "OwnershipDenied",
    "OwnershipMissing",
    "StorageInconsistency",
    "TunnelConflict",
    "TunnelError",
    "TunnelNotFound",
]
