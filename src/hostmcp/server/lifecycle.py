# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Start/stop/status control for an MCP server embedded in a host process.

The host (a desktop shell, a CLI, a test) owns the event loop and calls
:meth:`LifecycleController.start` and :meth:`~LifecycleController.stop` in
response to user actions.  Each start builds a fresh :class:`MCPServer`, so
sessions never outlive the listener that created them.

State machine::

    Stopped -> Starting -> Running -> Stopping -> Stopped
                  \\-> StartFailed -> Stopped

Failures are reported as :class:`LifecycleError` subclasses whose messages
are written to be shown to the user as-is.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass
import socket
import sys
from typing import Final

import anyio
from uvicorn import Server

from ..config import ServerConfig
from ..utils import get_logger
from .core import MCPServer
from .registry import CapabilityRegistry


MIN_UNPRIVILEGED_PORT: Final[int] = 1024
MAX_PORT: Final[int] = 65535
PROBE_TIMEOUT: Final[float] = 1.0
SHUTDOWN_TIMEOUT: Final[float] = 1.0


class LifecycleError(RuntimeError):
    """Base class for control-surface failures."""


class InvalidPortError(LifecycleError, ValueError):
    pass


class AlreadyRunningError(LifecycleError):
    pass


class PortInUseError(LifecycleError):
    pass


class ServerStartError(LifecycleError):
    pass


class NotRunningError(LifecycleError):
    pass


@dataclass(slots=True)
class ServerRuntimeState:
    """Mutable record of one server run."""

    port: int | None = None
    running: bool = False
    task: asyncio.Task[None] | None = None
    server: Server | None = None
    app: MCPServer | None = None
    error: BaseException | None = None


@dataclass(frozen=True, slots=True)
class ServerStatus:
    running: bool
    port: int | None


def validate_port(port: int) -> None:
    if port <= 0:
        raise InvalidPortError("Port number must be greater than 0")
    if port < MIN_UNPRIVILEGED_PORT:
        raise InvalidPortError("Port number must be 1024 or higher (lower ports require root privileges)")
    if port > MAX_PORT:
        raise InvalidPortError(f"Port number must be {MAX_PORT} or lower")


def _probe_host(host: str) -> str:
    return "127.0.0.1" if host in ("", "0.0.0.0") else ("::1" if host == "::" else host)


async def probe_port(port: int, host: str = "127.0.0.1", *, timeout: float = PROBE_TIMEOUT) -> bool:
    """Return ``True`` when nothing accepts connections on *port*.

    Port ``0`` (and anything outside the TCP range) is never reported free.
    """
    if port <= 0 or port > MAX_PORT:
        return False
    try:
        with anyio.fail_after(timeout):
            stream = await anyio.connect_tcp(_probe_host(host), port)
    except (OSError, TimeoutError):
        return True
    await stream.aclose()
    return False


def _bind(host: str, port: int) -> socket.socket:
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        if sys.platform != "win32":
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(2048)
        sock.setblocking(False)
    except OSError:
        sock.close()
        raise
    return sock


class LifecycleController:
    """Supervises at most one listening server at a time."""

    def __init__(self, registry: CapabilityRegistry, *, config: ServerConfig | None = None) -> None:
        self._registry = registry
        self._config = config or ServerConfig()
        self._state = ServerRuntimeState()
        self._lock = anyio.Lock()
        self._logger = get_logger("hostmcp.lifecycle")

    @property
    def app(self) -> MCPServer | None:
        """The server of the current run, if one is running."""
        return self._state.app

    async def start(self, port: int | None = None, enabled_tools: Iterable[str] = ()) -> str:
        port = self._config.port if port is None else port
        validate_port(port)

        async with self._lock:
            if self._state.running:
                raise AlreadyRunningError("Server is already running")
            if not await probe_port(port, self._config.host):
                raise PortInUseError(f"Port {port} is already in use")

            config = self._config.model_copy(update={"port": port})
            app = MCPServer(self._registry, config=config, enabled_tools=enabled_tools)
            state = ServerRuntimeState(port=port, app=app)
            state.task = asyncio.create_task(self._serve(state, app, port), name=f"hostmcp-server-{port}")

            try:
                done, _ = await asyncio.wait({state.task}, timeout=self._config.startup_grace)
            except BaseException:
                with anyio.CancelScope(shield=True):
                    await self._abort(state)
                raise
            if done or not state.running:
                await self._abort(state)
                self._logger.error("MCP server failed to start on port %d: %s", port, state.error)
                raise ServerStartError(
                    f"Failed to start MCP Server on port {port}. An unexpected error occurred."
                ) from state.error

            self._state = state
            self._logger.info("MCP Server started on http://%s:%d%s", config.host, port, config.path)
            return f"MCP Server started on port {port}"

    async def stop(self) -> str:
        async with self._lock:
            state = self._state
            if not state.running:
                raise NotRunningError("Server is not running")

            state.running = False
            state.port = None
            await self._abort(state)
            self._state = ServerRuntimeState()
            self._logger.info("MCP Server stopped")
            return "MCP Server stopped"

    def status(self) -> ServerStatus:
        state = self._state
        return ServerStatus(running=state.running, port=state.port if state.running else None)

    async def probe_port(self, port: int) -> bool:
        return await probe_port(port, self._config.host)

    async def _serve(self, state: ServerRuntimeState, app: MCPServer, port: int) -> None:
        try:
            sock = _bind(app.config.host, port)
        except OSError as exc:
            state.error = exc
            return

        state.server = app.build_http_server()
        state.running = True
        try:
            await state.server.serve(sockets=[sock])
        except Exception as exc:
            state.error = exc
            self._logger.exception("MCP server on port %d stopped unexpectedly", port)
        finally:
            state.running = False
            sock.close()

    async def _abort(self, state: ServerRuntimeState) -> None:
        """Ask uvicorn to exit without draining; cancel if it does not."""
        if state.server is not None:
            state.server.should_exit = True
            state.server.force_exit = True
        task = state.task
        if task is None or task.done():
            return
        if state.server is None:
            task.cancel()
        done, _ = await asyncio.wait({task}, timeout=SHUTDOWN_TIMEOUT)
        if not done:
            task.cancel()
            await asyncio.wait({task})


__all__ = [
    "AlreadyRunningError",
    "InvalidPortError",
    "LifecycleController",
    "LifecycleError",
    "NotRunningError",
    "PortInUseError",
    "ServerRuntimeState",
    "ServerStartError",
    "ServerStatus",
    "probe_port",
    "validate_port",
]
