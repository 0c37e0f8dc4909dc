# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Session store.

Sessions are keyed by the ``Mcp-Session-Id`` header; clients that never send
one share the well-known ``"default"`` session.  The store hands out copies so
handlers cannot mutate shared state behind the lock; every change goes through
:meth:`SessionStore.update`.
"""

from __future__ import annotations

from collections.abc import Callable
import copy
from dataclasses import dataclass, field
import time
from typing import Any, Final

import anyio

from .. import types
from ..utils import get_logger


DEFAULT_SESSION_ID: Final[str] = "default"


@dataclass(slots=True)
class Session:
    id: str
    initialized: bool = False
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)
    last_event_id: int = 0
    tools: list[types.Tool] = field(default_factory=list)
    resources: list[types.Resource] = field(default_factory=list)
    client_info: dict[str, Any] | None = None
    protocol_version: str | None = None


class ReadWriteLock:
    """Many concurrent readers or one writer, built on :class:`anyio.Condition`."""

    def __init__(self) -> None:
        self._cond = anyio.Condition()
        self._readers = 0
        self._writer = False

    async def acquire_read(self) -> None:
        async with self._cond:
            while self._writer:
                await self._cond.wait()
            self._readers += 1

    async def release_read(self) -> None:
        async with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    async def acquire_write(self) -> None:
        async with self._cond:
            while self._writer or self._readers:
                await self._cond.wait()
            self._writer = True

    async def release_write(self) -> None:
        async with self._cond:
            self._writer = False
            self._cond.notify_all()

    def read(self) -> _Guard:
        return _Guard(self.acquire_read, self.release_read)

    def write(self) -> _Guard:
        return _Guard(self.acquire_write, self.release_write)


class _Guard:
    __slots__ = ("_acquire", "_release")

    def __init__(self, acquire: Callable[[], Any], release: Callable[[], Any]) -> None:
        self._acquire = acquire
        self._release = release

    async def __aenter__(self) -> None:
        await self._acquire()

    async def __aexit__(self, *exc_info: object) -> None:
        with anyio.CancelScope(shield=True):
            await self._release()


class SessionStore:
    """Concurrent map of session id to :class:`Session`."""

    def __init__(self, *, max_sessions: int = 0) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = ReadWriteLock()
        self._max_sessions = max_sessions
        self._logger = get_logger("hostmcp.sessions")

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    async def get(self, session_id: str) -> Session | None:
        async with self._lock.read():
            session = self._sessions.get(session_id)
            return copy.deepcopy(session) if session is not None else None

    async def get_or_create(self, session_id: str, seed: Callable[[Session], None] | None = None) -> Session:
        """Return the session for *session_id*, creating it on first sight.

        Existing sessions are returned untouched, so ``created_at`` and the
        capability snapshots survive repeated ``initialize`` calls.  *seed*
        runs only on a newly created session.
        """
        async with self._lock.read():
            existing = self._sessions.get(session_id)
            if existing is not None:
                return copy.deepcopy(existing)

        async with self._lock.write():
            session = self._sessions.get(session_id)
            if session is None:
                self._evict_if_full()
                session = Session(id=session_id)
                if seed is not None:
                    seed(session)
                self._sessions[session_id] = session
                self._logger.info("Created session %s", session_id)
            return copy.deepcopy(session)

    async def update(self, session_id: str, mutator: Callable[[Session], None]) -> Session | None:
        """Apply *mutator* to the stored session under the write lock."""
        async with self._lock.write():
            session = self._sessions.get(session_id)
            if session is None:
                return None
            mutator(session)
            return copy.deepcopy(session)

    async def touch(self, session_id: str) -> Session | None:
        return await self.update(session_id, _bump_activity)

    async def remove(self, session_id: str) -> bool:
        async with self._lock.write():
            removed = self._sessions.pop(session_id, None) is not None
        if removed:
            self._logger.info("Removed session %s", session_id)
        return removed

    async def expire_idle(self, max_idle: float) -> list[str]:
        """Drop sessions inactive for longer than *max_idle* seconds."""
        cutoff = time.time() - max_idle
        async with self._lock.write():
            expired = [sid for sid, session in self._sessions.items() if session.last_activity < cutoff]
            for sid in expired:
                del self._sessions[sid]
        for sid in expired:
            self._logger.info("Expired idle session %s", sid)
        return expired

    async def ids(self) -> list[str]:
        async with self._lock.read():
            return list(self._sessions)

    def _evict_if_full(self) -> None:
        if not self._max_sessions or len(self._sessions) < self._max_sessions:
            return
        victim = min(self._sessions.values(), key=lambda session: session.last_activity)
        del self._sessions[victim.id]
        self._logger.warning(
            "Session limit (%d) reached; evicted least recently active session %s", self._max_sessions, victim.id
        )


def _bump_activity(session: Session) -> None:
    session.last_activity = time.time()


__all__ = ["DEFAULT_SESSION_ID", "ReadWriteLock", "Session", "SessionStore"]
