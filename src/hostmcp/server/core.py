# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Composable MCP server for host applications.

:class:`MCPServer` wires one registry to the per-run state: the session store,
the event publisher, the tool bridge and the dispatcher.  Everything is passed
in explicitly; there is no module-level server.  A server instance is meant to
live for a single run, so restarting a host server means building a new one
(the :class:`~hostmcp.server.lifecycle.LifecycleController` does this).
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from starlette.applications import Starlette
from uvicorn import Server

from .. import __version__, types
from ..config import ServerConfig
from ..utils import get_logger
from .bridge import ToolBridge
from .dispatcher import Dispatcher
from .events import EventPublisher
from .registry import CapabilityRegistry, ServerValidationError
from .sessions import SessionStore
from .transports import StreamableHTTPTransport


class MCPServer:
    """Server surface exposing a capability registry over MCP."""

    def __init__(
        self,
        registry: CapabilityRegistry,
        *,
        config: ServerConfig | None = None,
        enabled_tools: Iterable[str] = (),
        version: str = __version__,
    ) -> None:
        self.config = config or ServerConfig()
        self.registry = registry
        self.enabled_tools: frozenset[str] = frozenset(enabled_tools)
        self.server_info = types.Implementation(name=self.config.server_name, version=version)
        if not self.server_info.name:
            raise ServerValidationError("Server name must be non-empty")

        self._logger = get_logger(f"hostmcp.server.{self.config.server_name}")
        self.sessions = SessionStore(max_sessions=self.config.max_sessions)
        self.events = EventPublisher(
            self.sessions,
            heartbeat_interval=self.config.heartbeat_interval,
            replay_buffer=self.config.replay_buffer,
        )
        self.bridge = ToolBridge(registry)
        self.dispatcher = Dispatcher(
            store=self.sessions,
            registry=registry,
            bridge=self.bridge,
            server_info=self.server_info,
            enabled_tools=self.enabled_tools,
            instructions=self.config.instructions,
        )
        self._transport = StreamableHTTPTransport(self)

        unknown = sorted(self.enabled_tools - set(registry.tool_names))
        if unknown:
            self._logger.debug("Ignoring unknown names in tool allowlist: %s", ", ".join(unknown))

    @property
    def exposed_tools(self) -> list[str]:
        return [tool.name for tool in self.registry.available_tools(self.enabled_tools)]

    def streamable_http_app(self, *, path: str | None = None) -> Starlette:
        """Return the ASGI application for embedding or in-process testing."""
        return self._transport.build_app(path=path)

    def build_http_server(self, **uvicorn_options: Any) -> Server:
        return self._transport.build_server(**uvicorn_options)

    async def notify(self, session_id: str, method: str, params: dict[str, Any] | None = None) -> int:
        """Push a JSON-RPC notification to the session's event streams."""
        return await self.events.publish(session_id, method, params)


__all__ = ["MCPServer", "ServerValidationError"]
