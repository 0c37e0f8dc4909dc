# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Resource declarations for hostmcp.

Resources are read-only views the host exposes next to its tools (server
settings, cache statistics).  Readers take no arguments and may be sync or
async; the returned ``str``, ``bytes`` or JSON-compatible value is normalised
by :func:`hostmcp.server.adapters.normalize_resource_payload`.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from . import types


ResourceFn = Callable[[], Any]


@dataclass(slots=True)
class ResourceSpec:
    uri: str
    fn: ResourceFn
    name: str | None = None
    description: str | None = None
    mime_type: str | None = None

    def to_resource(self) -> types.Resource:
        return types.Resource(
            uri=self.uri,
            name=self.name or self.uri,
            description=self.description,
            mimeType=self.mime_type,
        )


_RESOURCE_ATTR = "__hostmcp_resource__"


def resource(
    uri: str,
    *,
    name: str | None = None,
    description: str | None = None,
    mime_type: str | None = None,
) -> Callable[[ResourceFn], ResourceFn]:
    """Mark a zero-argument callable as the reader for *uri*."""

    def decorator(fn: ResourceFn) -> ResourceFn:
        spec = ResourceSpec(
            uri=uri,
            fn=fn,
            name=name or fn.__name__,
            description=description if description is not None else ((fn.__doc__ or "").strip() or None),
            mime_type=mime_type,
        )
        setattr(fn, _RESOURCE_ATTR, spec)
        return fn

    return decorator


def extract_resource_spec(fn: Any) -> ResourceSpec | None:
    spec = getattr(fn, _RESOURCE_ATTR, None)
    if isinstance(spec, ResourceSpec):
        return spec
    return None


__all__ = ["ResourceFn", "ResourceSpec", "extract_resource_spec", "resource"]
