# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Normalization helpers for server-facing handler results.

Collaborators return whatever is natural for them: strings, status dicts,
screenshots as data URLs or raw bytes.  These helpers turn that into the MCP
result structures (``CallToolResult`` for tools, ``ReadResourceResult`` for
resources).  Values that cannot be represented raise ``McpError`` with
``INTERNAL_ERROR``; that is a server fault, not a tool failure.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Any

from mcp.shared.exceptions import McpError
import orjson

from .. import types
from ..tool import ResultKind


_DATA_URL = re.compile(r"^data:(?P<mime>image/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)
DEFAULT_IMAGE_MIME = "image/jpeg"


def normalize_tool_result(value: Any, kind: ResultKind = "text") -> types.CallToolResult:
    """Coerce collaborator output into ``CallToolResult``."""
    if isinstance(value, types.CallToolResult):
        return value

    status = _status_payload(value)
    if status is not None:
        ok, message = status
        return types.CallToolResult(content=[_text(message)], isError=not ok)

    if kind == "image":
        return types.CallToolResult(content=[_image_content(value)])
    return types.CallToolResult(content=[_text(render_text(value))])


def error_result(message: str) -> types.CallToolResult:
    """Tool-level failure: a successful JSON-RPC result flagged ``isError``."""
    return types.CallToolResult(content=[_text(message)], isError=True)


def render_text(value: Any) -> str:
    """Strings verbatim, everything else as two-space indented JSON."""
    if isinstance(value, str):
        return value
    try:
        return orjson.dumps(value, option=orjson.OPT_INDENT_2).decode("utf-8")
    except orjson.JSONEncodeError as exc:
        raise McpError(
            types.ErrorData(code=types.INTERNAL_ERROR, message=f"Tool result is not JSON serialisable: {exc}")
        ) from exc


def _status_payload(value: Any) -> tuple[bool, str] | None:
    """Unwrap ``{"success": bool, "message"|"error": str}`` driver replies."""
    if not isinstance(value, dict) or not isinstance(value.get("success"), bool):
        return None
    if set(value) - {"success", "message", "error"}:
        return None
    ok = value["success"]
    message = value.get("message") if ok else value.get("error")
    if not isinstance(message, str):
        message = "Operation completed" if ok else "Operation failed"
    return ok, message


def _text(text: str) -> types.TextContent:
    return types.TextContent(type="text", text=text)


def _image_content(value: Any) -> types.ImageContent:
    if isinstance(value, types.ImageContent):
        return value
    if isinstance(value, (bytes, bytearray)):
        if not value:
            raise _malformed_image("empty image payload")
        return types.ImageContent(
            type="image", data=base64.b64encode(bytes(value)).decode("ascii"), mimeType=DEFAULT_IMAGE_MIME
        )
    if not isinstance(value, str) or not value:
        raise _malformed_image(f"expected a data URL, base64 string or bytes, got {type(value).__name__}")

    mime = DEFAULT_IMAGE_MIME
    data = value
    if value.startswith("data:"):
        match = _DATA_URL.match(value)
        if match is None:
            raise _malformed_image("unsupported data URL")
        mime, data = match.group("mime"), match.group("data")

    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise _malformed_image("payload is not valid base64") from exc
    return types.ImageContent(type="image", data=data, mimeType=mime)


def _malformed_image(reason: str) -> McpError:
    return McpError(types.ErrorData(code=types.INTERNAL_ERROR, message=f"Malformed image result: {reason}"))


def normalize_resource_payload(uri: str, declared_mime: str | None, payload: Any) -> types.ReadResourceResult:
    """Coerce resource reader output into ``ReadResourceResult``."""
    if isinstance(payload, types.ReadResourceResult):
        return payload

    if isinstance(payload, (types.TextResourceContents, types.BlobResourceContents)):
        return types.ReadResourceResult(contents=[payload])

    if isinstance(payload, (bytes, bytearray)):
        mime = declared_mime or "application/octet-stream"
        encoded = base64.b64encode(bytes(payload)).decode("ascii")
        return types.ReadResourceResult(contents=[types.BlobResourceContents(uri=uri, mimeType=mime, blob=encoded)])

    if isinstance(payload, str):
        mime = declared_mime or "text/plain"
        return types.ReadResourceResult(contents=[types.TextResourceContents(uri=uri, mimeType=mime, text=payload)])

    text = render_text(payload)
    mime = declared_mime or "application/json"
    return types.ReadResourceResult(contents=[types.TextResourceContents(uri=uri, mimeType=mime, text=text)])


__all__ = ["DEFAULT_IMAGE_MIME", "error_result", "normalize_resource_payload", "normalize_tool_result", "render_text"]
