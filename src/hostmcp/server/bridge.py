# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Tool invocation bridge.

Maps a ``tools/call`` onto the registered handler and turns the outcome into a
``CallToolResult``.  Two kinds of failure are kept apart:

* protocol faults (missing required arguments, an unrenderable result) raise
  ``McpError`` and become JSON-RPC errors;
* operational failures inside a collaborator become a *successful* result with
  ``isError`` set, so the calling model can read what went wrong.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from typing import Any

from mcp.shared.exceptions import McpError

from .. import types
from ..collaborators import ToolExecutionError
from ..utils import get_logger, maybe_await_with_args
from .adapters import error_result, normalize_tool_result
from .registry import CapabilityRegistry


def not_implemented_text(name: str) -> str:
    return f"Tool '{name}' is not yet implemented"


class ToolBridge:
    def __init__(self, registry: CapabilityRegistry) -> None:
        self._registry = registry
        self._logger = get_logger("hostmcp.bridge")

    async def call(
        self, name: str, arguments: Mapping[str, Any] | None, exposed: Collection[str]
    ) -> types.CallToolResult:
        spec = self._registry.spec_for(name) if name in exposed else None
        if spec is None or spec.fn is None:
            self._logger.info("Call to unavailable tool %s", name)
            return error_result(not_implemented_text(name))

        args = dict(arguments or {})
        missing = [key for key in spec.required_arguments if args.get(key) is None]
        if missing:
            raise McpError(
                types.ErrorData(
                    code=types.INVALID_PARAMS,
                    message=f"Missing required argument(s) for '{name}': {', '.join(missing)}",
                )
            )

        try:
            value = await maybe_await_with_args(spec.fn, **args)
        except ToolExecutionError as exc:
            self._logger.info("Tool %s failed: %s", name, exc)
            return error_result(str(exc))
        except McpError:
            raise
        except Exception as exc:
            self._logger.exception("Tool %s raised", name)
            return error_result(f"Error executing tool '{name}': {exc}")

        return normalize_tool_result(value, spec.result)


__all__ = ["ToolBridge", "not_implemented_text"]
