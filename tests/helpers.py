# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Shared test helpers for hostmcp tests."""

from __future__ import annotations

from itertools import count
from typing import Any

import anyio.lowlevel
import orjson

from hostmcp.server.dispatcher import DispatchResult


_REQUEST_COUNTER = count(1)

# 1x1 transparent PNG
PNG_BASE64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="


class FakeBrowserDriver:
    """In-memory browser driver that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.fail: dict[str, str] = {}
        self.tabs = [
            {"index": 0, "title": "Example", "url": "https://example.com", "current": True},
            {"index": 1, "title": "Docs", "url": "https://docs.example.com", "current": False},
        ]
        self.screenshot_data = f"data:image/png;base64,{PNG_BASE64}"

    def _status(self, operation: str, *args: Any, **extra: Any) -> dict[str, Any]:
        self.calls.append((operation, args))
        if operation in self.fail:
            return {"success": False, "error": self.fail[operation]}
        return {"success": True, **extra}

    async def open(self, headless: bool) -> dict[str, Any]:
        await anyio.lowlevel.checkpoint()
        return self._status("open", headless, message=f"Browser opened (headless={headless})")

    async def navigate(self, url: str) -> dict[str, Any]:
        return self._status("navigate", url, message=f"Navigated to {url}")

    def click(self, selector: str) -> dict[str, Any]:
        return self._status("click", selector, message=f"Clicked {selector}")

    def type(self, selector: str, text: str) -> dict[str, Any]:
        return self._status("type", selector, text)

    async def screenshot(self, full_page: bool) -> dict[str, Any]:
        return self._status("screenshot", full_page, screenshot=self.screenshot_data)

    async def evaluate(self, script: str) -> dict[str, Any]:
        return self._status("evaluate", script, result={"answer": 42})

    async def wait_for(self, selector: str, timeout: int) -> dict[str, Any]:
        return self._status("wait_for", selector, timeout)

    async def get_content(self) -> dict[str, Any]:
        return self._status("get_content", content="<html><body>hi</body></html>")

    async def go_back(self) -> dict[str, Any]:
        return self._status("go_back")

    async def go_forward(self) -> dict[str, Any]:
        return self._status("go_forward")

    async def reload(self) -> dict[str, Any]:
        return self._status("reload")

    async def close(self) -> dict[str, Any]:
        return self._status("close", message="Browser closed")

    async def snapshot(self) -> dict[str, Any]:
        return self._status(
            "snapshot",
            snapshot={
                "url": "https://example.com",
                "title": "Example",
                "tabs": self.tabs,
                "console_messages": [{"level": "warn", "text": "deprecated API"}],
            },
        )

    async def tab_list(self) -> dict[str, Any]:
        return self._status("tab_list", tabs=self.tabs)

    async def tab_new(self, url: str | None) -> dict[str, Any]:
        return self._status("tab_new", url)

    async def tab_switch(self, index: int) -> dict[str, Any]:
        return self._status("tab_switch", index, message=f"Switched to tab {index}")

    async def tab_close(self, index: int) -> dict[str, Any]:
        return self._status("tab_close", index)


def rpc(method: str, params: dict[str, Any] | None = None, *, request_id: int | None = None) -> dict[str, Any]:
    """Build a JSON-RPC request; ``request_id=None`` draws the next id."""
    message: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id or next(_REQUEST_COUNTER), "method": method}
    if params is not None:
        message["params"] = params
    return message


def notification(method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    message: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
    if params is not None:
        message["params"] = params
    return message


def body(payload: Any) -> bytes:
    return orjson.dumps(payload)


def result_of(outcome: DispatchResult) -> dict[str, Any]:
    assert outcome.status_code == 200, outcome
    assert isinstance(outcome.payload, dict)
    assert "error" not in outcome.payload, outcome.payload
    return outcome.payload["result"]


def error_of(outcome: DispatchResult) -> dict[str, Any]:
    assert isinstance(outcome.payload, dict)
    return outcome.payload["error"]
