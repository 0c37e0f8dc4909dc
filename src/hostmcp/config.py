# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Server configuration for hostmcp.

Defaults mirror the settings a host application ships with: loopback only,
a fixed high port, ten concurrent sessions and a one hour inactivity window.
Every field can be overridden through ``HOSTMCP_<FIELD>`` environment
variables via :meth:`ServerConfig.from_env`.
"""

from __future__ import annotations

from collections.abc import Mapping
import os
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_PORT: Final[int] = 37650
DEFAULT_SERVER_NAME: Final[str] = "browser-automation-mcp"
ENV_PREFIX: Final[str] = "HOSTMCP_"

_LOG_LEVELS = frozenset({"critical", "error", "warning", "info", "debug", "trace"})


class ServerConfig(BaseModel):
    """Runtime settings shared by the transport, session store and lifecycle."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    host: str = "127.0.0.1"
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    path: str = "/mcp"
    server_name: str = DEFAULT_SERVER_NAME
    instructions: str | None = None
    max_sessions: int = Field(default=10, ge=0)
    session_timeout: float = Field(default=3600.0, ge=0)
    heartbeat_interval: float = Field(default=30.0, gt=0)
    replay_buffer: int = Field(default=100, ge=0)
    startup_grace: float = Field(default=0.5, ge=0)
    cors_enabled: bool = True
    log_level: str = "info"

    @field_validator("path")
    @classmethod
    def _normalise_path(cls, value: str) -> str:
        value = value.strip() or "/mcp"
        return value if value.startswith("/") else f"/{value}"

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        return value

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> ServerConfig:
        """Build a config from ``HOSTMCP_*`` variables, then apply *overrides*.

        Pydantic handles the string coercion, so ``HOSTMCP_PORT=40000`` and
        ``HOSTMCP_CORS_ENABLED=false`` both land as the right types.
        """
        source = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = source.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls.model_validate(values)

    def public_view(self) -> dict[str, Any]:
        """Return the settings exposed through the ``config://server`` resource."""
        return self.model_dump(mode="json")


__all__ = ["DEFAULT_PORT", "DEFAULT_SERVER_NAME", "ServerConfig"]
