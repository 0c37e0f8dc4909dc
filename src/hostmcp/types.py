# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""MCP schema bindings used by hostmcp.

The reference SDK ships generated Pydantic models under ``mcp.types``.  hostmcp
only speaks a small slice of the schema (lifecycle, tools, resources, ping), so
this module re-exports exactly that slice plus the JSON-RPC error codes.  Keep
imports pointed here rather than at ``mcp.types`` directly so the SDK surface we
depend on stays visible in one place.
"""

from __future__ import annotations

from typing import Any

from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    BlobResourceContents,
    CallToolResult,
    ErrorData,
    ImageContent,
    Implementation,
    InitializeResult,
    ReadResourceResult,
    Resource,
    ResourcesCapability,
    ServerCapabilities,
    TextContent,
    TextResourceContents,
    Tool,
    ToolsCapability,
)
from pydantic import BaseModel


def dump(model: BaseModel) -> dict[str, Any]:
    """Serialise an SDK model into its wire shape (aliases, no nulls)."""
    return model.model_dump(by_alias=True, mode="json", exclude_none=True)


__all__ = [
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "BlobResourceContents",
    "CallToolResult",
    "ErrorData",
    "ImageContent",
    "Implementation",
    "InitializeResult",
    "ReadResourceResult",
    "Resource",
    "ResourcesCapability",
    "ServerCapabilities",
    "TextContent",
    "TextResourceContents",
    "Tool",
    "ToolsCapability",
    "dump",
]
