"""Command-line entry point: ``txttunnel [--host H] [--port P] ...``."""

from __future__ import annotations

import argparse
import logging
import socket
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import uvicorn

from tunnel_api.config.settings import TunnelApiSettings, get_api_settings

APP_TARGET = "tunnel_api.app:app"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVELS = ("critical", "error", "warning", "info", "debug", "trace")
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


@dataclass(frozen=True)
class LaunchOptions:
    host: str
    port: int
    reload: bool
    log_level: str

    @classmethod
    def resolve(cls, args: argparse.Namespace, settings: TunnelApiSettings) -> "LaunchOptions":
        """Command-line flags win over TUNNEL_API_* settings."""
        return cls(
            host=args.host or settings.host,
            port=args.port or settings.port,
            reload=args.reload or settings.reload,
            log_level=(args.log_level or settings.log_level).lower(),
        )

    def uvicorn_kwargs(self) -> dict[str, Any]:
        # uvicorn knows "trace"; the stdlib loggers it configures do not.
        return {
            "host": self.host,
            "port": self.port,
            "reload": self.reload,
            "log_level": "debug" if self.log_level == "trace" else self.log_level,
            "log_config": None,
        }


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="txttunnel", description="Serve the TXTTunnel relay.")
    parser.add_argument("--host", help="bind address [TUNNEL_API_HOST]")
    parser.add_argument("--port", type=int, help="listen port [TUNNEL_API_PORT]")
    parser.add_argument("--reload", action="store_true", help="restart on code changes")
    parser.add_argument("--log-level", choices=LOG_LEVELS, help="[TUNNEL_API_LOG_LEVEL]")
    return parser.parse_args(argv)


def configure_logging(log_level: str) -> int:
    level = logging.DEBUG if log_level == "trace" else logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    for name in UVICORN_LOGGERS:
        logging.getLogger(name).setLevel(level)
    return level


def ensure_port_available(host: str, port: int) -> None:
    """Exit with a readable message when nothing can bind ``host:port``."""
    try:
        family = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)[0][0]
    except socket.gaierror as exc:
        raise SystemExit(f"Cannot resolve {host!r}: {exc}") from exc
    try:
        with socket.socket(family, socket.SOCK_STREAM) as sock:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
    except OSError as exc:
        raise SystemExit(
            f"Cannot listen on {host}:{port} ({exc.strerror or exc}). "
            "Pass --port or set TUNNEL_API_PORT."
        ) from exc


def main(argv: Optional[Sequence[str]] = None) -> None:
    options = LaunchOptions.resolve(parse_args(argv), get_api_settings())
    configure_logging(options.log_level)
    ensure_port_available(options.host, options.port)
    logging.getLogger(__name__).info(
        "Starting relay on %s:%d (reload=%s)", options.host, options.port, options.reload
    )
    uvicorn.run(APP_TARGET, **options.uvicorn_kwargs())


if __name__ == "__main__":
    main()
