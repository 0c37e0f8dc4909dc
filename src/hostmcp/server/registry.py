# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Capability registry.

The registry is the single source of truth for what a server can offer.  It
is assembled once from collaborators and static resources; both the
``tools/list`` descriptors and the ``tools/call`` dispatch table are derived
from it, so a listed tool is always callable and vice versa.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from functools import partial

from .. import types
from ..collaborators import Collaborator
from ..resource import ResourceSpec
from ..tool import ToolSpec
from ..utils import get_logger, maybe_await_with_args


class ServerValidationError(RuntimeError):
    """Raised when a catalogue violates MCP requirements (duplicate names, bad URIs)."""


class CapabilityRegistry:
    """Ordered catalogue of tools and resources."""

    def __init__(self, tools: Iterable[ToolSpec] = (), resources: Iterable[ResourceSpec] = ()) -> None:
        self._logger = get_logger("hostmcp.registry")
        self._tools: dict[str, ToolSpec] = {}
        self._resources: dict[str, ResourceSpec] = {}
        for spec in tools:
            self.add_tool(spec)
        for res in resources:
            self.add_resource(res)

    @classmethod
    def from_collaborators(
        cls, collaborators: Iterable[Collaborator], resources: Iterable[ResourceSpec] = ()
    ) -> CapabilityRegistry:
        """Build a registry whose handlers route back to each collaborator's ``invoke``.

        Collaborators that also offer ``list_resources()`` (every
        :class:`~hostmcp.collaborators.Toolset` does) contribute their
        resources after the static *resources*.
        """
        registry = cls(resources=resources)
        for collaborator in collaborators:
            for spec in collaborator.list_capabilities():
                handler = partial(_invoke_with_mapping, collaborator, spec.name)
                registry.add_tool(ToolSpec(spec.name, spec.description, spec.input_schema, spec.result, handler))
            list_resources = getattr(collaborator, "list_resources", None)
            if callable(list_resources):
                for res in list_resources():
                    registry.add_resource(res)
        return registry

    def add_tool(self, spec: ToolSpec) -> None:
        if not spec.name:
            raise ServerValidationError("Tool names must be non-empty")
        if spec.name in self._tools:
            raise ServerValidationError(f"Duplicate tool name '{spec.name}'")
        if spec.fn is None:
            raise ServerValidationError(f"Tool '{spec.name}' has no handler")
        self._tools[spec.name] = spec
        self._logger.debug("Registered tool %s", spec.name)

    def add_resource(self, spec: ResourceSpec) -> None:
        if "://" not in spec.uri:
            raise ServerValidationError(f"Resource URI '{spec.uri}' must include a scheme")
        if spec.uri in self._resources:
            raise ServerValidationError(f"Duplicate resource URI '{spec.uri}'")
        self._resources[spec.uri] = spec

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    def available_tools(self, enabled: Collection[str] = ()) -> list[types.Tool]:
        """Return descriptors for the tools *enabled* allows, in catalogue order.

        An empty allowlist exposes everything.  Names in *enabled* that are not
        in the catalogue are ignored.
        """
        if not enabled:
            return [spec.to_tool() for spec in self._tools.values()]
        allowed = set(enabled)
        return [spec.to_tool() for name, spec in self._tools.items() if name in allowed]

    def available_resources(self) -> list[types.Resource]:
        return [spec.to_resource() for spec in self._resources.values()]

    def spec_for(self, name: str) -> ToolSpec | None:
        return self._tools.get(name)

    def resource_for(self, uri: str) -> ResourceSpec | None:
        return self._resources.get(uri)


async def _invoke_with_mapping(collaborator: Collaborator, tool_name: str, /, **arguments: object) -> object:
    return await maybe_await_with_args(collaborator.invoke, tool_name, arguments)


__all__ = ["CapabilityRegistry", "ServerValidationError"]
