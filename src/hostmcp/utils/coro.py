# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Helpers for calling handlers that may be sync or async.

Synchronous callables are pushed onto anyio's worker threads so a slow
collaborator (a subprocess wait, a blocking HTTP client) never stalls the
event loop serving other sessions.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from functools import partial
import inspect
from typing import Any, TypeVar

import anyio.to_thread


T = TypeVar("T")


async def maybe_await(value: Callable[[], T | Awaitable[T]] | Awaitable[T] | T) -> T:
    """Resolve *value*: call it if callable, await it if awaitable."""
    return await maybe_await_with_args(value)


async def maybe_await_with_args(target: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *target* with the given arguments and await the outcome if needed.

    Non-callables are returned as-is (or awaited when they are awaitables), and
    the arguments are ignored in that case.
    """
    if inspect.isawaitable(target):
        return await target
    if not callable(target):
        return target

    if inspect.iscoroutinefunction(target) or inspect.iscoroutinefunction(getattr(target, "__call__", None)):
        return await target(*args, **kwargs)

    result = await anyio.to_thread.run_sync(partial(target, *args, **kwargs))
    if inspect.isawaitable(result):
        return await result
    return result


__all__ = ["maybe_await", "maybe_await_with_args"]
