"""Relay configuration using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import ClassVar, Literal

from pydantic import Field, PositiveFloat, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict


class TunnelApiSettings(BaseSettings):
    """Process/runtime settings for the relay API server."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="TUNNEL_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="127.0.0.1", description="Bind address for the relay API.")
    port: PositiveInt = Field(default=8080, description="Port for the relay API.")
    reload: bool = Field(default=False, description="Enable uvicorn auto-reload (dev only).")
    log_level: Literal["critical", "error", "warning", "info", "debug", "trace"] = Field(
        default="info",
        description="Log level for relay API / uvicorn.",
    )


class TunnelSettings(BaseSettings):
    """Validated settings for tunnels, expiry and delivery."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="TUNNEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ttl_enabled: bool = Field(
        default=True,
        description="Expire tunnels that have not been published to within ttl_seconds.",
    )
    ttl_seconds: PositiveInt = Field(
        default=300,
        description="Lifetime of a tunnel after creation or its latest publish (seconds).",
    )
    sweep_interval_seconds: PositiveFloat = Field(
        default=600,
        description="Period of the expiry sweep (seconds).",
    )
    ownership_enabled: bool = Field(
        default=True,
        description="Require the creation auth secret to delete a tunnel.",
    )
    create_collision_policy: Literal["reset", "reject"] = Field(
        default="reset",
        description="What create does when the id is already live: reset its content or reject with 409.",
    )
    subscriber_queue_size: PositiveInt = Field(
        default=64,
        description="Pending frames buffered per streaming subscriber.",
    )
    delivery_timeout_seconds: PositiveFloat = Field(
        default=5.0,
        description="Max time a publish waits for one subscriber to accept a frame.",
    )
    default_subchannel: str = Field(
        default="main",
        min_length=1,
        description="Sub-channel used when a request names none.",
    )
    close_streams_on_delete: bool = Field(
        default=True,
        description="End open streams of a tunnel when it is deleted or expires.",
    )


@lru_cache()
def get_settings() -> TunnelSettings:
    """Return memoized relay settings."""

    return TunnelSettings()


@lru_cache()
def get_api_settings() -> TunnelApiSettings:
    """Return memoized API process settings."""

    return TunnelApiSettings()
