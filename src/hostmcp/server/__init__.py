# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Public server-side surface for hostmcp.

The heavy lifting lives in :mod:`hostmcp.server.core`; this module re-exports
the primitives host applications are expected to import.
"""

from __future__ import annotations

from .core import MCPServer
from .lifecycle import (
    AlreadyRunningError,
    InvalidPortError,
    LifecycleController,
    LifecycleError,
    NotRunningError,
    PortInUseError,
    ServerStartError,
    ServerStatus,
    probe_port,
)
from .registry import CapabilityRegistry, ServerValidationError


__all__ = [
    "AlreadyRunningError",
    "CapabilityRegistry",
    "InvalidPortError",
    "LifecycleController",
    "LifecycleError",
    "MCPServer",
    "NotRunningError",
    "PortInUseError",
    "ServerStartError",
    "ServerStatus",
    "ServerValidationError",
    "probe_port",
]
