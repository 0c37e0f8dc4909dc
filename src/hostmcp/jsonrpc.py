# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""JSON-RPC 2.0 envelopes.

Requests are validated strictly: ``jsonrpc`` must be exactly ``"2.0"``, the
method a string, and the id a string or an integer.  :func:`failure` always
writes the ``id`` key, so an error for an unidentifiable request carries an
explicit ``"id": null``.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr, ValidationError

from . import types


RequestId = StrictInt | StrictStr

JSONRPC_VERSION: Literal["2.0"] = "2.0"


class JSONRPCRequest(BaseModel):
    """Incoming request or notification (a notification has no ``id``)."""

    model_config = ConfigDict(extra="allow")

    jsonrpc: Literal["2.0"]
    id: RequestId | None = None
    method: StrictStr
    params: dict[str, Any] | list[Any] | None = None

    @property
    def is_notification(self) -> bool:
        return "id" not in self.model_fields_set or self.id is None

    @property
    def param_map(self) -> dict[str, Any]:
        return self.params if isinstance(self.params, dict) else {}


class JSONRPCResponse(BaseModel):
    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: RequestId
    result: dict[str, Any]


class JSONRPCErrorResponse(BaseModel):
    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: RequestId | None = None
    error: types.ErrorData


def parse_request(payload: Any) -> JSONRPCRequest:
    """Validate one decoded JSON value as a request; raises ``ValidationError``."""
    return JSONRPCRequest.model_validate(payload)


def request_id_of(payload: Any) -> int | str | None:
    """Best-effort id recovery from a payload that failed validation."""
    if isinstance(payload, dict):
        candidate = payload.get("id")
        if isinstance(candidate, (int, str)) and not isinstance(candidate, bool):
            return candidate
    return None


def success(request_id: int | str, result: dict[str, Any]) -> dict[str, Any]:
    return JSONRPCResponse(id=request_id, result=result).model_dump(mode="json")


def failure(request_id: int | str | None, error: types.ErrorData) -> dict[str, Any]:
    envelope = JSONRPCErrorResponse(id=request_id, error=error).model_dump(mode="json")
    envelope["error"] = types.dump(error)
    return envelope


__all__ = [
    "JSONRPCErrorResponse",
    "JSONRPCRequest",
    "JSONRPCResponse",
    "RequestId",
    "ValidationError",
    "failure",
    "parse_request",
    "request_id_of",
    "success",
]
