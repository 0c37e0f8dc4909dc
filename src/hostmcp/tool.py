# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Tool declarations for hostmcp.

A :class:`ToolSpec` describes one capability a collaborator offers: the name
clients call, the JSON Schema of its arguments, and whether the result is
rendered as text or as an image.  Collaborators either build specs directly or
decorate methods with :func:`tool`; the registry turns specs into
``tools/list`` descriptors and into dispatch table entries from the same data.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Literal

from . import types


ToolFn = Callable[..., Any]
ResultKind = Literal["text", "image"]


def _empty_object_schema() -> dict[str, Any]:
    return {"type": "object", "properties": {}}


@dataclass(slots=True)
class ToolSpec:
    """In-memory representation of a tool definition."""

    name: str
    description: str = ""
    input_schema: dict[str, Any] = field(default_factory=_empty_object_schema)
    result: ResultKind = "text"
    fn: ToolFn | None = None

    @property
    def required_arguments(self) -> tuple[str, ...]:
        required = self.input_schema.get("required") or ()
        return tuple(str(item) for item in required)

    def to_tool(self) -> types.Tool:
        return types.Tool(name=self.name, description=self.description or None, inputSchema=self.input_schema)


_TOOL_ATTR = "__hostmcp_tool__"


def _coerce_schema(schema: dict[str, Any] | None) -> dict[str, Any]:
    if schema is None:
        return _empty_object_schema()
    if schema.get("type") != "object":
        raise ValueError("tool input schema must describe a JSON object")
    resolved = dict(schema)
    resolved.setdefault("properties", {})
    return resolved


def tool(
    name: str | None = None,
    *,
    description: str | None = None,
    input_schema: dict[str, Any] | None = None,
    result: ResultKind = "text",
) -> Callable[[ToolFn], ToolFn]:
    """Decorator that marks a callable as a tool.

    The spec is attached to the function and picked up later by
    :class:`hostmcp.collaborators.Toolset`; nothing is registered globally.
    """

    def decorator(fn: ToolFn) -> ToolFn:
        desc = (description if description is not None else (fn.__doc__ or "")).strip()
        spec = ToolSpec(
            name=name or fn.__name__,
            description=desc,
            input_schema=_coerce_schema(input_schema),
            result=result,
            fn=fn,
        )
        setattr(fn, _TOOL_ATTR, spec)
        return fn

    return decorator


def extract_tool_spec(fn: Any) -> ToolSpec | None:
    """Return the attached :class:`ToolSpec` for *fn*, if present."""
    spec = getattr(fn, _TOOL_ATTR, None)
    if isinstance(spec, ToolSpec):
        return spec
    return None


__all__ = ["ResultKind", "ToolFn", "ToolSpec", "extract_tool_spec", "tool"]
