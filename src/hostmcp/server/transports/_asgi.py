# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Shared ASGI transport primitives.

:class:`ASGITransportBase` assembles the Starlette application (routes,
permissive CORS for local browser-based clients, a lifespan that runs the idle
session reaper) and runs it under uvicorn.  Concrete transports only supply
their routes.

uvicorn normally installs SIGINT/SIGTERM handlers and exits the process when a
bind fails.  Inside a host application neither is acceptable, so
:class:`EmbeddedServer` leaves signals to the host and callers hand it an
already bound socket.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterable, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import TYPE_CHECKING, Any

import anyio
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from uvicorn import Config, Server

from ...utils import get_logger
from .base import BaseTransport


if TYPE_CHECKING:
    from starlette.routing import BaseRoute

    from ..core import MCPServer


SESSION_HEADER = "Mcp-Session-Id"


class EmbeddedServer(Server):
    """uvicorn server that never touches process-wide signal handlers."""

    @contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


class ASGITransportBase(BaseTransport, ABC):
    """Template for transports that present an :class:`MCPServer` via ASGI."""

    def __init__(self, server: MCPServer) -> None:
        super().__init__(server)
        self._logger = get_logger("hostmcp.transport")

    def build_app(self, *, path: str | None = None) -> Starlette:
        config = self.server.config
        routes = list(self._build_routes(path=path or config.path))
        middleware: list[Middleware] = []
        if config.cors_enabled:
            middleware.append(
                Middleware(
                    CORSMiddleware,
                    allow_origins=["*"],
                    allow_methods=["*"],
                    allow_headers=["*"],
                    expose_headers=[SESSION_HEADER],
                )
            )
        return Starlette(routes=routes, middleware=middleware, lifespan=self._lifespan)

    def build_server(self, *, path: str | None = None, log_level: str | None = None, **uvicorn_options: Any) -> Server:
        config = self.server.config
        uv_config = Config(
            app=self.build_app(path=path),
            host=config.host,
            port=config.port,
            log_level=log_level or config.log_level,
            log_config=None,
            **uvicorn_options,
        )
        return EmbeddedServer(uv_config)

    @asynccontextmanager
    async def _lifespan(self, _app: Starlette) -> AsyncIterator[None]:
        timeout = self.server.config.session_timeout
        async with anyio.create_task_group() as tg:
            if timeout > 0:
                tg.start_soon(self._reap_idle_sessions, timeout)
            yield
            tg.cancel_scope.cancel()

    async def _reap_idle_sessions(self, timeout: float) -> None:
        interval = min(60.0, max(timeout / 4, 0.05))
        while True:
            await anyio.sleep(interval)
            for session_id in await self.server.sessions.expire_idle(timeout):
                self.server.events.close(session_id)
            self.server.events.prune()

    @abstractmethod
    def _build_routes(self, *, path: str) -> Iterable[BaseRoute]: ...


__all__ = ["ASGITransportBase", "EmbeddedServer", "SESSION_HEADER"]
