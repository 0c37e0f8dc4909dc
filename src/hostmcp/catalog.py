# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Default host catalogue: browser automation tools.

:class:`BrowserToolset` adapts a :class:`BrowserDriver` (the host's CDP
client, or a fake in tests) to seventeen ``browser_*`` tools.  Drivers answer
with status dicts such as ``{"success": True, "message": "..."}`` or
``{"success": False, "error": "..."}``; failures are raised as
:class:`~hostmcp.collaborators.ToolExecutionError` so clients see the driver's
own explanation.

:func:`build_registry` assembles the registry a host server normally runs
with: the browser tools plus the ``config://server`` resource and, when the
host provides cache statistics, ``cache://stats``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

import orjson

from .collaborators import Collaborator, ToolExecutionError, Toolset
from .config import ServerConfig
from .resource import ResourceSpec
from .server.registry import CapabilityRegistry
from .tool import tool
from .utils import maybe_await, maybe_await_with_args


StatusPayload = Mapping[str, Any]


@runtime_checkable
class BrowserDriver(Protocol):
    """Operations the browser subsystem offers; methods may be sync or async."""

    def open(self, headless: bool) -> StatusPayload: ...
    def navigate(self, url: str) -> StatusPayload: ...
    def click(self, selector: str) -> StatusPayload: ...
    def type(self, selector: str, text: str) -> StatusPayload: ...
    def screenshot(self, full_page: bool) -> StatusPayload: ...
    def evaluate(self, script: str) -> StatusPayload: ...
    def wait_for(self, selector: str, timeout: int) -> StatusPayload: ...
    def get_content(self) -> StatusPayload: ...
    def go_back(self) -> StatusPayload: ...
    def go_forward(self) -> StatusPayload: ...
    def reload(self) -> StatusPayload: ...
    def close(self) -> StatusPayload: ...
    def snapshot(self) -> StatusPayload: ...
    def tab_list(self) -> StatusPayload: ...
    def tab_new(self, url: str | None) -> StatusPayload: ...
    def tab_switch(self, index: int) -> StatusPayload: ...
    def tab_close(self, index: int) -> StatusPayload: ...


class OfflineBrowserDriver:
    """Driver used when the host has no browser attached; every call fails."""

    message = "No browser driver is configured for this server"

    def __getattr__(self, name: str) -> Callable[..., StatusPayload]:
        if name.startswith("_"):
            raise AttributeError(name)

        def unavailable(*args: Any, **kwargs: Any) -> StatusPayload:
            return {"success": False, "error": self.message}

        return unavailable


def _schema(properties: dict[str, Any] | None = None, required: Iterable[str] = ()) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "object", "properties": properties or {}}
    if required:
        schema["required"] = list(required)
    return schema


def _checked(result: StatusPayload, fallback_error: str) -> StatusPayload:
    if not isinstance(result, Mapping):
        raise ToolExecutionError(fallback_error)
    if not result.get("success", False):
        error = result.get("error")
        raise ToolExecutionError(error if isinstance(error, str) and error else fallback_error)
    return result


def _message(result: StatusPayload, success_text: str, fallback_error: str) -> str:
    message = _checked(result, fallback_error).get("message")
    return message if isinstance(message, str) and message else success_text


def _tab_line(tab: Mapping[str, Any]) -> str:
    current = "(current)" if tab.get("current") else ""
    return f"[{tab.get('index', 0)}] {tab.get('title', '')} - {tab.get('url', '')} {current}"


def format_tab_list(tabs: Iterable[Mapping[str, Any]]) -> str:
    lines = [_tab_line(tab) for tab in tabs]
    if not lines:
        return "No open tabs"
    return "Open tabs:\n" + "\n".join(lines)


def format_snapshot(snapshot: Mapping[str, Any]) -> str:
    tabs = snapshot.get("tabs")
    tab_text = "\n".join(f"- {_tab_line(tab)}" for tab in tabs) if isinstance(tabs, list) else "None"

    messages = snapshot.get("console_messages")
    if isinstance(messages, list) and messages:
        console_text = "\n".join(f"- [{msg.get('level', '')}] {msg.get('text', '')}" for msg in messages)
    else:
        console_text = "None"

    return (
        "### Page Snapshot\n\n"
        f"**URL**: {snapshot.get('url') or 'N/A'}\n"
        f"**Title**: {snapshot.get('title') or 'N/A'}\n\n"
        f"**Tabs**:\n{tab_text}\n\n"
        f"**Recent Console Messages**:\n{console_text}"
    )


class BrowserToolset(Toolset):
    def __init__(self, driver: BrowserDriver) -> None:
        self._driver = driver
        super().__init__()

    async def _call(self, operation: str, *args: Any) -> StatusPayload:
        return await maybe_await_with_args(getattr(self._driver, operation), *args)

    @tool(
        "browser_open",
        description="Open a new browser instance",
        input_schema=_schema(
            {
                "headless": {
                    "type": "boolean",
                    "description": "Run in headless mode (no visible window). Default: false",
                    "default": False,
                }
            }
        ),
    )
    async def browser_open(self, headless: bool = False) -> str:
        result = await self._call("open", bool(headless))
        return _message(result, "Browser opened successfully", "Failed to open browser")

    @tool(
        "browser_navigate",
        description="Navigate to a URL in the browser (requires browser_open first)",
        input_schema=_schema({"url": {"type": "string", "description": "The URL to navigate to"}}, ["url"]),
    )
    async def browser_navigate(self, url: str) -> str:
        if not url:
            raise ToolExecutionError("Error: URL is required")
        result = await self._call("navigate", url)
        return _message(result, "Navigated successfully", "Navigation failed")

    @tool(
        "browser_click",
        description="Click an element on the page",
        input_schema=_schema(
            {"selector": {"type": "string", "description": "CSS selector for the element to click"}}, ["selector"]
        ),
    )
    async def browser_click(self, selector: str) -> str:
        result = await self._call("click", selector)
        return _message(result, "Clicked successfully", "Click failed")

    @tool(
        "browser_type",
        description="Type text into an input field",
        input_schema=_schema(
            {
                "selector": {"type": "string", "description": "CSS selector for the input field"},
                "text": {"type": "string", "description": "Text to type"},
            },
            ["selector", "text"],
        ),
    )
    async def browser_type(self, selector: str, text: str) -> str:
        result = await self._call("type", selector, text)
        return _message(result, "Typed successfully", "Type failed")

    @tool(
        "browser_screenshot",
        description="Take a screenshot of the current page",
        input_schema=_schema(
            {
                "full_page": {
                    "type": "boolean",
                    "description": "Whether to capture the full page",
                    "default": False,
                }
            }
        ),
        result="image",
    )
    async def browser_screenshot(self, full_page: bool = False) -> str | bytes:
        result = _checked(await self._call("screenshot", bool(full_page)), "Screenshot failed")
        screenshot = result.get("screenshot")
        if not screenshot:
            raise ToolExecutionError("Screenshot captured but data not available")
        return screenshot

    @tool(
        "browser_evaluate",
        description="Execute JavaScript in the browser",
        input_schema=_schema({"script": {"type": "string", "description": "JavaScript code to execute"}}, ["script"]),
    )
    async def browser_evaluate(self, script: str) -> str:
        if not script:
            raise ToolExecutionError("Error: Script is required")
        result = _checked(await self._call("evaluate", script), "Evaluation failed")
        if "result" not in result:
            return "Result: undefined"
        return f"Result: {orjson.dumps(result['result'], default=str).decode('utf-8')}"

    @tool(
        "browser_wait_for",
        description="Wait for an element to appear",
        input_schema=_schema(
            {
                "selector": {"type": "string", "description": "CSS selector to wait for"},
                "timeout": {"type": "number", "description": "Timeout in milliseconds", "default": 30000},
            },
            ["selector"],
        ),
    )
    async def browser_wait_for(self, selector: str, timeout: float = 30000) -> str:
        result = await self._call("wait_for", selector, int(timeout))
        return _message(result, "Element found", "Element not found")

    @tool("browser_get_content", description="Get the HTML content of the current page")
    async def browser_get_content(self) -> str:
        result = _checked(await self._call("get_content"), "Failed to get content")
        content = result.get("content")
        return content if isinstance(content, str) else "No content available"

    @tool("browser_go_back", description="Navigate back in browser history")
    async def browser_go_back(self) -> str:
        return _message(await self._call("go_back"), "Navigated back", "Failed to go back")

    @tool("browser_go_forward", description="Navigate forward in browser history")
    async def browser_go_forward(self) -> str:
        return _message(await self._call("go_forward"), "Navigated forward", "Failed to go forward")

    @tool("browser_reload", description="Reload the current page")
    async def browser_reload(self) -> str:
        return _message(await self._call("reload"), "Page reloaded", "Failed to reload")

    @tool("browser_close", description="Close the browser")
    async def browser_close(self) -> str:
        return _message(await self._call("close"), "Browser closed", "Failed to close browser")

    @tool("browser_snapshot", description="Get a snapshot of the current page state")
    async def browser_snapshot(self) -> str:
        result = _checked(await self._call("snapshot"), "Snapshot failed")
        snapshot = result.get("snapshot")
        if not isinstance(snapshot, Mapping):
            return "Snapshot captured but no data available"
        return format_snapshot(snapshot)

    @tool("browser_tab_list", description="List all open browser tabs")
    async def browser_tab_list(self) -> str:
        result = _checked(await self._call("tab_list"), "Failed to list tabs")
        tabs = result.get("tabs")
        if not isinstance(tabs, list):
            return "No tabs information available"
        return format_tab_list(tabs)

    @tool(
        "browser_tab_new",
        description="Open a new browser tab",
        input_schema=_schema(
            {
                "url": {
                    "type": "string",
                    "description": "The URL to navigate to in the new tab. If not provided, the new tab will be blank.",
                }
            }
        ),
    )
    async def browser_tab_new(self, url: str | None = None) -> str:
        return _message(await self._call("tab_new", url or None), "New tab created", "Failed to create new tab")

    @tool(
        "browser_tab_switch",
        description="Switch to a different browser tab",
        input_schema=_schema({"index": {"type": "number", "description": "Tab index to switch to"}}, ["index"]),
    )
    async def browser_tab_switch(self, index: float) -> str:
        return _message(await self._call("tab_switch", _tab_index(index)), "Tab switched", "Failed to switch tab")

    @tool(
        "browser_tab_close",
        description="Close a specific browser tab",
        input_schema=_schema({"index": {"type": "number", "description": "Tab index to close"}}, ["index"]),
    )
    async def browser_tab_close(self, index: float) -> str:
        return _message(await self._call("tab_close", _tab_index(index)), "Tab closed", "Failed to close tab")


def _tab_index(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0 or value != int(value):
        raise ToolExecutionError(f"Invalid tab index: {value!r}")
    return int(value)


BROWSER_TOOL_NAMES: tuple[str, ...] = (
    "browser_open",
    "browser_navigate",
    "browser_click",
    "browser_type",
    "browser_screenshot",
    "browser_evaluate",
    "browser_wait_for",
    "browser_get_content",
    "browser_go_back",
    "browser_go_forward",
    "browser_reload",
    "browser_close",
    "browser_snapshot",
    "browser_tab_list",
    "browser_tab_new",
    "browser_tab_switch",
    "browser_tab_close",
)


def build_registry(
    *,
    driver: BrowserDriver | None = None,
    config: ServerConfig | None = None,
    cache_stats: Callable[[], Any] | None = None,
    collaborators: Iterable[Collaborator] = (),
) -> CapabilityRegistry:
    """Registry for a browser-automation host, plus any extra collaborators."""
    settings = config or ServerConfig()

    def read_config() -> dict[str, Any]:
        return settings.public_view()

    resources = [
        ResourceSpec(
            uri="config://server",
            fn=read_config,
            name="server-config",
            description="Effective MCP server settings",
            mime_type="application/json",
        )
    ]
    if cache_stats is not None:

        async def read_cache_stats() -> Any:
            return await maybe_await(cache_stats)

        resources.append(
            ResourceSpec(
                uri="cache://stats",
                fn=read_cache_stats,
                name="cache-stats",
                description="Entry counts of the local cache (issues, projects, users, time entries, total)",
                mime_type="application/json",
            )
        )

    toolset = BrowserToolset(driver or OfflineBrowserDriver())
    return CapabilityRegistry.from_collaborators([toolset, *collaborators], resources=resources)


__all__ = [
    "BROWSER_TOOL_NAMES",
    "BrowserDriver",
    "BrowserToolset",
    "OfflineBrowserDriver",
    "build_registry",
    "format_snapshot",
    "format_tab_list",
]
