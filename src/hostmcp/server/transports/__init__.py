# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Transport adapters for hostmcp servers."""

from __future__ import annotations

from ._asgi import SESSION_HEADER, ASGITransportBase, EmbeddedServer
from .base import BaseTransport
from .streamable_http import StreamableHTTPTransport


__all__ = [
    "ASGITransportBase",
    "BaseTransport",
    "EmbeddedServer",
    "SESSION_HEADER",
    "StreamableHTTPTransport",
]
