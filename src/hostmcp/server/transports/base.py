# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Shared transport primitives for :mod:`hostmcp.server`."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING


if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from starlette.applications import Starlette

    from ..core import MCPServer


class BaseTransport(ABC):
    """Common base for server transports.

    Subclasses receive the owning :class:`MCPServer` so they can reach its
    dispatcher, session store and event publisher.
    """

    def __init__(self, server: MCPServer) -> None:
        self._server = server

    @property
    def server(self) -> MCPServer:
        return self._server

    @abstractmethod
    def build_app(self, *, path: str | None = None) -> Starlette:
        """Return the ASGI application serving this transport."""


__all__ = ["BaseTransport"]
