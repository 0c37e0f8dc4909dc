# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

import pytest

from hostmcp import types
from hostmcp.collaborators import Toolset
from hostmcp.resource import ResourceSpec, extract_resource_spec, resource
from hostmcp.server.registry import CapabilityRegistry, ServerValidationError
from hostmcp.tool import ToolSpec, extract_tool_spec, tool


def _spec(name: str, **kwargs) -> ToolSpec:
    return ToolSpec(name=name, fn=lambda: name, **kwargs)


def _registry(*names: str) -> CapabilityRegistry:
    return CapabilityRegistry(tools=[_spec(name) for name in names])


def test_empty_allowlist_exposes_whole_catalogue_in_order() -> None:
    registry = _registry("c", "a", "b")

    assert [t.name for t in registry.available_tools(set())] == ["c", "a", "b"]


def test_allowlist_filters_in_catalogue_order_and_ignores_unknown_names() -> None:
    registry = _registry("alpha", "beta", "gamma")

    exposed = registry.available_tools({"gamma", "alpha", "does-not-exist"})

    assert [t.name for t in exposed] == ["alpha", "gamma"]


def test_allowlist_of_only_unknown_names_exposes_nothing() -> None:
    registry = _registry("alpha")

    assert registry.available_tools({"zeta"}) == []


def test_descriptors_carry_object_schemas() -> None:
    registry = CapabilityRegistry(
        tools=[
            _spec(
                "search",
                description="Find things",
                input_schema={"type": "object", "properties": {"q": {"type": "string"}}, "required": ["q"]},
            )
        ]
    )

    [descriptor] = registry.available_tools()

    assert isinstance(descriptor, types.Tool)
    assert descriptor.description == "Find things"
    assert descriptor.inputSchema["type"] == "object"
    assert registry.spec_for("search").required_arguments == ("q",)
    assert registry.spec_for("missing") is None


def test_duplicate_tool_names_rejected() -> None:
    with pytest.raises(ServerValidationError, match="Duplicate tool name 'dup'"):
        _registry("dup", "dup")


def test_tool_without_handler_rejected() -> None:
    with pytest.raises(ServerValidationError):
        CapabilityRegistry(tools=[ToolSpec(name="orphan")])


def test_duplicate_resource_uris_rejected() -> None:
    spec = ResourceSpec(uri="config://server", fn=lambda: "{}")

    with pytest.raises(ServerValidationError, match="Duplicate resource URI"):
        CapabilityRegistry(resources=[spec, spec])


def test_resource_uri_requires_scheme() -> None:
    with pytest.raises(ServerValidationError):
        CapabilityRegistry(resources=[ResourceSpec(uri="no-scheme", fn=lambda: "")])


def test_available_resources_use_uri_as_fallback_name() -> None:
    registry = CapabilityRegistry(resources=[ResourceSpec(uri="cache://stats", fn=lambda: {})])

    [descriptor] = registry.available_resources()

    assert str(descriptor.uri) == "cache://stats"
    assert descriptor.name == "cache://stats"
    assert registry.resource_for("cache://stats") is not None


def test_tool_decorator_attaches_spec() -> None:
    @tool(description="Adds numbers", input_schema={"type": "object", "properties": {"a": {"type": "number"}}})
    def add(a: int) -> int:
        return a

    spec = extract_tool_spec(add)

    assert spec is not None
    assert spec.name == "add"
    assert spec.description == "Adds numbers"
    assert spec.result == "text"
    assert add(2) == 2


def test_tool_decorator_uses_docstring_and_rejects_non_object_schema() -> None:
    @tool()
    def documented() -> None:
        """Does a thing."""

    assert extract_tool_spec(documented).description == "Does a thing."
    assert extract_tool_spec(lambda: None) is None

    with pytest.raises(ValueError):
        tool(input_schema={"type": "array"})(lambda: None)


def test_resource_decorator_attaches_spec() -> None:
    @resource("memo://note", mime_type="text/plain")
    def note() -> str:
        """A note."""
        return "hello"

    spec = extract_resource_spec(note)

    assert spec is not None
    assert spec.name == "note"
    assert spec.description == "A note."
    assert spec.to_resource().mimeType == "text/plain"


class _Greeter(Toolset):
    @tool("greet", input_schema={"type": "object", "properties": {"who": {"type": "string"}}, "required": ["who"]})
    def greet(self, who: str) -> str:
        return f"hello {who}"

    @tool("shout")
    async def shout(self) -> str:
        return "HEY"


@pytest.mark.anyio
async def test_registry_from_collaborators_routes_through_invoke() -> None:
    registry = CapabilityRegistry.from_collaborators([_Greeter()])

    assert registry.tool_names == ["greet", "shout"]

    spec = registry.spec_for("greet")
    result = spec.fn(who="ada")
    assert await result == "hello ada"


def test_collaborators_with_clashing_names_rejected() -> None:
    with pytest.raises(ServerValidationError):
        CapabilityRegistry.from_collaborators([_Greeter(), _Greeter()])


class _Labeller(Toolset):
    @tool(
        "label",
        input_schema={
            "type": "object",
            "properties": {"name": {"type": "string"}, "collaborator": {"type": "string"}},
            "required": ["name"],
        },
    )
    def label(self, name: str, collaborator: str = "nobody", tool_name: str = "") -> str:
        return f"{name}/{collaborator}/{tool_name}"

    @resource("memo://labels", mime_type="application/json")
    def labels(self) -> list[str]:
        """Known labels."""
        return ["a", "b"]


@pytest.mark.anyio
async def test_arguments_named_like_handler_internals_reach_the_tool() -> None:
    registry = CapabilityRegistry.from_collaborators([_Labeller()])

    spec = registry.spec_for("label")
    result = await spec.fn(name="x", collaborator="y", tool_name="z")

    assert result == "x/y/z"


def test_toolset_resources_are_registered() -> None:
    registry = CapabilityRegistry.from_collaborators(
        [_Labeller()], resources=[ResourceSpec(uri="config://server", fn=dict)]
    )

    assert [str(r.uri) for r in registry.available_resources()] == ["config://server", "memo://labels"]
    spec = registry.resource_for("memo://labels")
    assert spec is not None
    assert spec.description == "Known labels."
    assert spec.fn() == ["a", "b"]


def test_toolset_resources_with_clashing_uris_rejected() -> None:
    with pytest.raises(ServerValidationError):
        CapabilityRegistry.from_collaborators([_Labeller()], resources=[ResourceSpec(uri="memo://labels", fn=list)])
