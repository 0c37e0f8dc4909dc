# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Protocol version helpers for hostmcp.

hostmcp targets the MCP 2025-03-26 revision (streamable HTTP transport).  The
lifecycle rules say the server answers ``initialize`` with the client's
requested version when it supports it, and with its own preferred version
otherwise.  With a single supported revision that always resolves to
:data:`PROTOCOL_VERSION`, but call sites go through :func:`negotiate_version`
so adding a revision later does not touch the dispatcher.
"""

from __future__ import annotations

from typing import Any, Final

from .utils import get_logger


PROTOCOL_VERSION: Final[str] = "2025-03-26"

# TODO: add "2025-06-18" once structured tool output is emitted by the bridge.
SUPPORTED_PROTOCOL_VERSIONS: Final[tuple[str, ...]] = (PROTOCOL_VERSION,)

_logger = get_logger("hostmcp.versioning")


def negotiate_version(requested: Any) -> str:
    """Return the protocol version to answer an ``initialize`` request with."""
    if isinstance(requested, str) and requested in SUPPORTED_PROTOCOL_VERSIONS:
        return requested
    if requested is not None:
        _logger.debug("Client requested unsupported protocol version %r; offering %s", requested, PROTOCOL_VERSION)
    return PROTOCOL_VERSION


__all__ = ["PROTOCOL_VERSION", "SUPPORTED_PROTOCOL_VERSIONS", "negotiate_version"]
