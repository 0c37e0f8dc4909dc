# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Streamable HTTP transport.

One endpoint (``/mcp`` by default) carries the whole protocol:

* ``POST``: a JSON-RPC message or batch; answered with JSON, or ``202`` when
  the body only held notifications
* ``GET``: the server-initiated ``text/event-stream``
* ``DELETE``: drop the session named by ``Mcp-Session-Id``

``GET /health`` reports liveness for the host application.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import orjson
from sse_starlette.sse import EventSourceResponse
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from ... import types
from ...jsonrpc import failure
from ..sessions import DEFAULT_SESSION_ID
from ._asgi import SESSION_HEADER, ASGITransportBase


if TYPE_CHECKING:
    from collections.abc import Iterable


class ORJSONResponse(JSONResponse):
    def render(self, content: Any) -> bytes:
        return orjson.dumps(content)


def _session_id(request: Request) -> str:
    return request.headers.get(SESSION_HEADER) or DEFAULT_SESSION_ID


def _is_json_content_type(value: str | None) -> bool:
    if not value:
        return True
    media_type = value.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


class StreamableHTTPTransport(ASGITransportBase):
    """Serve an :class:`hostmcp.server.MCPServer` over Streamable HTTP."""

    def _build_routes(self, *, path: str) -> Iterable[Route]:
        return [
            Route(path, self.handle_mcp, methods=["GET", "POST", "DELETE"]),
            Route("/health", self.handle_health, methods=["GET"]),
        ]

    async def handle_mcp(self, request: Request) -> Response:
        if request.method == "POST":
            return await self._handle_post(request)
        if request.method == "GET":
            return self._handle_get(request)
        return await self._handle_delete(request)

    async def handle_health(self, request: Request) -> Response:
        return ORJSONResponse({"status": "ok", "sessions": len(self.server.sessions)})

    async def _handle_post(self, request: Request) -> Response:
        session_id = _session_id(request)
        headers = {SESSION_HEADER: session_id}
        if not _is_json_content_type(request.headers.get("content-type")):
            error = types.ErrorData(code=types.PARSE_ERROR, message="Parse error: expected application/json")
            return ORJSONResponse(failure(None, error), status_code=400, headers=headers)

        body = await request.body()
        result = await self.server.dispatcher.handle(body, session_id)
        if result.payload is None:
            return Response(status_code=result.status_code, headers=headers)
        return ORJSONResponse(result.payload, status_code=result.status_code, headers=headers)

    def _handle_get(self, request: Request) -> Response:
        session_id = _session_id(request)
        last_event_id = request.headers.get("last-event-id")
        self._logger.debug("Opening event stream for session %s (resume from %s)", session_id, last_event_id)
        return EventSourceResponse(
            self.server.events.open(session_id, last_event_id),
            headers={SESSION_HEADER: session_id, "X-Accel-Buffering": "no"},
        )

    async def _handle_delete(self, request: Request) -> Response:
        session_id = _session_id(request)
        removed = await self.server.sessions.remove(session_id)
        self.server.events.close(session_id)
        self._logger.debug("DELETE session %s (existed=%s)", session_id, removed)
        return Response(status_code=200, headers={SESSION_HEADER: session_id})


__all__ = ["ORJSONResponse", "StreamableHTTPTransport"]
