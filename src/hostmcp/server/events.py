# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Server-initiated event stream.

Each ``GET /mcp`` subscribes to its session's channel.  Idle streams emit a
``ping`` event every heartbeat interval; notifications published for the
session go out as ``message`` events.  All events draw ids from one per-session
counter, mirrored into ``Session.last_event_id``.  Notification events are
kept in a bounded backlog so a client reconnecting with ``Last-Event-ID``
receives what it missed.
"""

from __future__ import annotations

from collections import deque
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

import anyio
from anyio.streams.memory import MemoryObjectSendStream
import orjson
from sse_starlette.sse import ServerSentEvent

from ..jsonrpc import JSONRPC_VERSION
from ..utils import get_logger
from .sessions import Session, SessionStore


_SUBSCRIBER_BUFFER = 64


@dataclass(slots=True)
class _Channel:
    counter: int
    backlog: deque[ServerSentEvent]
    subscribers: set[MemoryObjectSendStream[ServerSentEvent]] = field(default_factory=set)


class EventPublisher:
    def __init__(self, store: SessionStore, *, heartbeat_interval: float = 30.0, replay_buffer: int = 100) -> None:
        self._store = store
        self._interval = heartbeat_interval
        self._replay_buffer = replay_buffer
        self._channels: dict[str, _Channel] = {}
        self._logger = get_logger("hostmcp.events")

    async def open(self, session_id: str, last_event_id: str | None = None) -> AsyncIterator[ServerSentEvent]:
        """Yield events for *session_id* until the consumer stops iterating.

        Ends on its own only when the session's channel is closed (session
        deleted); otherwise the HTTP layer cancels it on disconnect.
        """
        channel = await self._channel(session_id)
        send, receive = anyio.create_memory_object_stream(max_buffer_size=_SUBSCRIBER_BUFFER)
        channel.subscribers.add(send)
        self._logger.debug("Event stream opened for session %s (%d subscribers)", session_id, len(channel.subscribers))

        replayed = 0
        resume_from = _parse_event_id(last_event_id)
        try:
            with receive:
                if resume_from is not None:
                    for event in list(channel.backlog):
                        if int(event.id) > resume_from:
                            replayed = int(event.id)
                            yield event

                while True:
                    event: ServerSentEvent | None = None
                    with anyio.move_on_after(self._interval):
                        try:
                            event = await receive.receive()
                        except anyio.EndOfStream:
                            return
                    if event is None:
                        event = await self._ping(session_id, channel)
                    elif event.event == "message" and int(event.id) <= replayed:
                        continue
                    yield event
        finally:
            channel.subscribers.discard(send)
            send.close()
            if session_id not in self._store:
                self._drop_if_idle(session_id, channel)
            self._logger.debug("Event stream closed for session %s", session_id)

    async def publish(self, session_id: str, method: str, params: dict[str, Any] | None = None) -> int:
        """Queue a JSON-RPC notification for every stream of *session_id*; returns its event id."""
        channel = await self._channel(session_id)
        notification: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": method}
        if params is not None:
            notification["params"] = params

        event_id = self._next_id(channel)
        event = ServerSentEvent(data=orjson.dumps(notification).decode("utf-8"), event="message", id=str(event_id))
        channel.backlog.append(event)

        for subscriber in list(channel.subscribers):
            try:
                subscriber.send_nowait(event)
            except anyio.WouldBlock:
                self._logger.warning(
                    "Event stream for session %s is not keeping up; dropped event %d", session_id, event_id
                )
            except (anyio.BrokenResourceError, anyio.ClosedResourceError):
                channel.subscribers.discard(subscriber)

        await self._record(session_id, event_id)
        return event_id

    def close(self, session_id: str) -> None:
        """End every open stream of *session_id* and forget its backlog."""
        channel = self._channels.pop(session_id, None)
        if channel is None:
            return
        for subscriber in list(channel.subscribers):
            subscriber.close()
        channel.subscribers.clear()

    def prune(self) -> list[str]:
        """Forget channels nobody listens to whose session no longer exists."""
        dropped = [
            sid
            for sid, channel in list(self._channels.items())
            if sid not in self._store and self._drop_if_idle(sid, channel)
        ]
        if dropped:
            self._logger.debug("Pruned event channels for %s", ", ".join(dropped))
        return dropped

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._channels

    def subscriber_count(self, session_id: str) -> int:
        channel = self._channels.get(session_id)
        return len(channel.subscribers) if channel is not None else 0

    async def _ping(self, session_id: str, channel: _Channel) -> ServerSentEvent:
        event_id = self._next_id(channel)
        await self._record(session_id, event_id)
        return ServerSentEvent(data="{}", event="ping", id=str(event_id))

    async def _channel(self, session_id: str) -> _Channel:
        channel = self._channels.get(session_id)
        if channel is not None:
            return channel
        session = await self._store.get(session_id)
        start = session.last_event_id if session is not None else 0
        return self._channels.setdefault(
            session_id, _Channel(counter=start, backlog=deque(maxlen=self._replay_buffer))
        )

    def _drop_if_idle(self, session_id: str, channel: _Channel) -> bool:
        if channel.subscribers or self._channels.get(session_id) is not channel:
            return False
        del self._channels[session_id]
        return True

    @staticmethod
    def _next_id(channel: _Channel) -> int:
        channel.counter += 1
        return channel.counter

    async def _record(self, session_id: str, event_id: int) -> None:
        def mutate(session: Session) -> None:
            session.last_event_id = max(session.last_event_id, event_id)

        await self._store.update(session_id, mutate)


def _parse_event_id(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


__all__ = ["EventPublisher"]
