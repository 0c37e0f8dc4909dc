# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""hostmcp: expose a host application's tools over the Model Context Protocol."""

from __future__ import annotations


__version__ = "0.1.0"

from . import types
from .collaborators import Collaborator, ToolExecutionError, Toolset
from .config import ServerConfig
from .resource import resource
from .server import LifecycleController, MCPServer
from .tool import tool


__all__ = [
    "Collaborator",
    "LifecycleController",
    "MCPServer",
    "ServerConfig",
    "ToolExecutionError",
    "Toolset",
    "__version__",
    "resource",
    "tool",
    "types",
]
