# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""JSON-RPC dispatcher for the MCP method set hostmcp serves.

The dispatcher is transport-agnostic: it takes the raw request body plus the
session id the transport extracted and returns a :class:`DispatchResult`
carrying the HTTP status and payload.  Handlers raise ``McpError`` for
protocol errors; anything else escaping a handler is logged and reported as
``INTERNAL_ERROR`` so one bad request never takes the connection down.

Methods:

* ``initialize``: create or refresh the session snapshot, negotiate version
* ``initialized`` / ``notifications/initialized``: mark the session ready
* ``tools/list``, ``resources/list``: return the session snapshot
* ``tools/call``: delegate to :class:`~hostmcp.server.bridge.ToolBridge`
* ``resources/read``: run a registered resource reader
* ``ping``: empty result
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Collection
from dataclasses import dataclass
from typing import Any

from mcp.shared.exceptions import McpError
import orjson

from .. import types
from ..jsonrpc import JSONRPCRequest, ValidationError, failure, parse_request, request_id_of, success
from ..utils import get_logger, maybe_await
from ..versioning import negotiate_version
from .adapters import normalize_resource_payload
from .bridge import ToolBridge
from .registry import CapabilityRegistry
from .sessions import DEFAULT_SESSION_ID, Session, SessionStore


Handler = Callable[[JSONRPCRequest, Session], Awaitable[dict[str, Any]]]


@dataclass(slots=True)
class DispatchResult:
    status_code: int
    payload: dict[str, Any] | list[dict[str, Any]] | None = None
    session_id: str | None = None


class Dispatcher:
    def __init__(
        self,
        *,
        store: SessionStore,
        registry: CapabilityRegistry,
        bridge: ToolBridge,
        server_info: types.Implementation,
        enabled_tools: Collection[str] = (),
        instructions: str | None = None,
    ) -> None:
        self._store = store
        self._registry = registry
        self._bridge = bridge
        self._server_info = server_info
        self._enabled = frozenset(enabled_tools)
        self._instructions = instructions
        self._logger = get_logger("hostmcp.dispatcher")
        self._handlers: dict[str, Handler] = {
            "initialize": self._initialize,
            "initialized": self._initialized,
            "notifications/initialized": self._initialized,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "resources/list": self._resources_list,
            "resources/read": self._resources_read,
            "ping": self._ping,
        }

    @property
    def capabilities(self) -> types.ServerCapabilities:
        return types.ServerCapabilities(tools=types.ToolsCapability(), resources=types.ResourcesCapability())

    async def handle(self, raw_body: bytes, session_id: str | None = None) -> DispatchResult:
        sid = session_id or DEFAULT_SESSION_ID
        try:
            message = orjson.loads(raw_body)
        except orjson.JSONDecodeError as exc:
            self._logger.debug("Rejecting unparseable body: %s", exc)
            return DispatchResult(400, failure(None, _error(types.PARSE_ERROR, "Parse error")), sid)

        if isinstance(message, list):
            return await self._handle_batch(message, sid)

        if not isinstance(message, dict):
            return DispatchResult(400, failure(None, _error(types.INVALID_REQUEST, "Invalid Request")), sid)

        try:
            request = parse_request(message)
        except ValidationError:
            error = _error(types.INVALID_REQUEST, "Invalid Request")
            return DispatchResult(400, failure(request_id_of(message), error), sid)

        response = await self._route(request, sid)
        if response is None:
            return DispatchResult(202, None, sid)
        return DispatchResult(200, response, sid)

    async def _handle_batch(self, batch: list[Any], sid: str) -> DispatchResult:
        if not batch:
            return DispatchResult(400, failure(None, _error(types.INVALID_REQUEST, "Invalid Request")), sid)

        responses: list[dict[str, Any]] = []
        for item in batch:
            try:
                request = parse_request(item)
            except ValidationError:
                responses.append(failure(request_id_of(item), _error(types.INVALID_REQUEST, "Invalid Request")))
                continue
            response = await self._route(request, sid)
            if response is not None:
                responses.append(response)

        if not responses:
            return DispatchResult(202, None, sid)
        return DispatchResult(200, responses, sid)

    async def _route(self, request: JSONRPCRequest, sid: str) -> dict[str, Any] | None:
        handler = self._handlers.get(request.method)
        try:
            if handler is None:
                raise McpError(_error(types.METHOD_NOT_FOUND, f"Method not found: {request.method}"))
            session = await self._session(sid)
            result = await handler(request, session)
        except McpError as exc:
            if request.is_notification:
                self._logger.debug("Notification %s failed: %s", request.method, exc.error.message)
                return None
            return failure(request.id, exc.error)
        except Exception:
            self._logger.exception("Unhandled error while processing %s", request.method)
            if request.is_notification:
                return None
            return failure(request.id, _error(types.INTERNAL_ERROR, "Internal error"))

        if request.is_notification or request.id is None:
            return None
        return success(request.id, result)

    async def _session(self, sid: str) -> Session:
        # The activity bump is a mutation, so every routed request takes the
        # write side once, list methods included.
        await self._store.get_or_create(sid, seed=self._snapshot)
        session = await self._store.touch(sid)
        if session is None:
            # Evicted or reaped between the two calls; start it over.
            session = await self._store.get_or_create(sid, seed=self._snapshot)
        return session

    def _snapshot(self, session: Session) -> None:
        session.tools = self._registry.available_tools(self._enabled)
        session.resources = self._registry.available_resources()

    async def _initialize(self, request: JSONRPCRequest, session: Session) -> dict[str, Any]:
        params = request.param_map
        client_info = params.get("clientInfo")
        version = negotiate_version(params.get("protocolVersion"))

        def mutate(target: Session) -> None:
            self._snapshot(target)
            target.protocol_version = version
            if isinstance(client_info, dict):
                target.client_info = dict(client_info)

        await self._store.update(session.id, mutate)
        if isinstance(client_info, dict):
            self._logger.info(
                "Session %s initialized by %s %s",
                session.id,
                client_info.get("name", "unknown client"),
                client_info.get("version", ""),
            )

        result = types.InitializeResult(
            protocolVersion=version,
            capabilities=self.capabilities,
            serverInfo=self._server_info,
            instructions=self._instructions,
        )
        payload = types.dump(result)
        payload["_meta"] = {"sessionId": session.id}
        return payload

    async def _initialized(self, request: JSONRPCRequest, session: Session) -> dict[str, Any]:
        def mutate(target: Session) -> None:
            target.initialized = True

        await self._store.update(session.id, mutate)
        return {}

    async def _tools_list(self, request: JSONRPCRequest, session: Session) -> dict[str, Any]:
        return {"tools": [types.dump(tool) for tool in session.tools]}

    async def _resources_list(self, request: JSONRPCRequest, session: Session) -> dict[str, Any]:
        return {"resources": [types.dump(res) for res in session.resources]}

    async def _tools_call(self, request: JSONRPCRequest, session: Session) -> dict[str, Any]:
        params = request.param_map
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise McpError(_error(types.INVALID_PARAMS, "Missing required parameter 'name'"))
        arguments = params.get("arguments")
        if arguments is not None and not isinstance(arguments, dict):
            raise McpError(_error(types.INVALID_PARAMS, "Parameter 'arguments' must be an object"))

        exposed = {tool.name for tool in session.tools}
        result = await self._bridge.call(name, arguments, exposed)
        return types.dump(result)

    async def _resources_read(self, request: JSONRPCRequest, session: Session) -> dict[str, Any]:
        uri = request.param_map.get("uri")
        if not isinstance(uri, str) or not uri:
            raise McpError(_error(types.INVALID_PARAMS, "Missing required parameter 'uri'"))
        spec = self._registry.resource_for(uri)
        if spec is None:
            raise McpError(_error(types.INVALID_PARAMS, f"Unknown resource: {uri}"))

        payload = await maybe_await(spec.fn)
        return types.dump(normalize_resource_payload(uri, spec.mime_type, payload))

    async def _ping(self, request: JSONRPCRequest, session: Session) -> dict[str, Any]:
        return {}


def _error(code: int, message: str) -> types.ErrorData:
    return types.ErrorData(code=code, message=message)


__all__ = ["DispatchResult", "Dispatcher"]
