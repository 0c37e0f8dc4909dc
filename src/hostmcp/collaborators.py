# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Contract between hostmcp and the subsystems that actually do the work.

A collaborator (browser driver, media transcoder, issue tracker client, cache)
advertises what it can do through :meth:`Collaborator.list_capabilities` and
executes calls through :meth:`Collaborator.invoke`.  hostmcp never looks
inside a collaborator beyond that.

:class:`Toolset` is the convenience base most collaborators use: decorate
methods with :func:`hostmcp.tool.tool` and the capability list plus the
``invoke`` dispatch come for free.  Methods decorated with
:func:`hostmcp.resource.resource` are reported by :meth:`Toolset.list_resources`
and registered next to the tools.
"""

from __future__ import annotations

from collections.abc import Mapping
import dataclasses
import inspect
from typing import Any, Protocol, runtime_checkable

from .resource import ResourceSpec, extract_resource_spec
from .tool import ToolSpec, extract_tool_spec
from .utils import get_logger, maybe_await_with_args


class ToolExecutionError(RuntimeError):
    """Raised by collaborators when an operation fails.

    The message is shown to the client verbatim, so it should read as a
    sentence a person can act on.
    """


@runtime_checkable
class Collaborator(Protocol):
    def list_capabilities(self) -> list[ToolSpec]: ...

    def invoke(self, name: str, arguments: Mapping[str, Any]) -> Any: ...


class Toolset:
    """Collaborator built from methods decorated with :func:`hostmcp.tool.tool`."""

    def __init__(self) -> None:
        self._logger = get_logger(f"hostmcp.collaborators.{type(self).__name__}")
        self._specs: dict[str, ToolSpec] = {}
        self._resources: list[ResourceSpec] = []
        for attr in dir(type(self)):
            member = getattr(type(self), attr, None)
            spec = extract_tool_spec(member)
            if spec is not None:
                self._specs[spec.name] = dataclasses.replace(spec, fn=getattr(self, attr))
            res = extract_resource_spec(member)
            if res is not None:
                self._resources.append(dataclasses.replace(res, fn=getattr(self, attr)))

    def list_capabilities(self) -> list[ToolSpec]:
        return sorted(self._specs.values(), key=_declaration_order)

    def list_resources(self) -> list[ResourceSpec]:
        return sorted(self._resources, key=_declaration_order)

    async def invoke(self, name: str, arguments: Mapping[str, Any]) -> Any:
        spec = self._specs.get(name)
        if spec is None or spec.fn is None:
            raise ToolExecutionError(f"Tool '{name}' is not yet implemented")
        kwargs = _accepted_arguments(spec.fn, arguments)
        self._logger.debug("Invoking %s with %s", name, sorted(kwargs))
        return await maybe_await_with_args(spec.fn, **kwargs)


def _declaration_order(spec: ToolSpec | ResourceSpec) -> int:
    fn = getattr(spec.fn, "__func__", spec.fn)
    code = getattr(fn, "__code__", None)
    return code.co_firstlineno if code is not None else 0


def _accepted_arguments(fn: Any, arguments: Mapping[str, Any]) -> dict[str, Any]:
    """Drop arguments the handler does not declare, unless it takes ``**kwargs``."""
    params = inspect.signature(fn).parameters.values()
    if any(param.kind is inspect.Parameter.VAR_KEYWORD for param in params):
        return dict(arguments)
    names = {
        param.name
        for param in params
        if param.kind in (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)
    }
    return {key: value for key, value in arguments.items() if key in names}


__all__ = ["Collaborator", "ToolExecutionError", "Toolset"]
