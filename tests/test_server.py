"""Tests for the MCP server binding."""
import asyncio

import pytest
from mcp import types

from raindrop_mcp.errors import NotFoundError
from raindrop_mcp.server import (
    build_registry,
    create_server,
    initialization_options,
    to_content_blocks,
)


@pytest.fixture
def app(service):
    return create_server(build_registry(service))


def handle(app, request_type, request):
    return asyncio.run(app.request_handlers[request_type](request))


class TestServerBinding:
    """Test the low-level server handlers."""

    def test_handlers_registered(self, app):
        for request_type in (
            types.ListToolsRequest,
            types.CallToolRequest,
            types.ListResourcesRequest,
            types.ListResourceTemplatesRequest,
            types.ReadResourceRequest,
            types.ListPromptsRequest,
            types.GetPromptRequest,
        ):
            assert request_type in app.request_handlers

    def test_list_tools_have_object_output_schema(self, app):
        result = handle(app, types.ListToolsRequest, types.ListToolsRequest(method="tools/list"))
        tools = result.root.tools
        assert len(tools) == 17
        assert all(tool.outputSchema["type"] == "object" for tool in tools)

    def test_call_tool_returns_structured_content(self, app):
        request = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(name="tag_list", arguments={}),
        )
        result = handle(app, types.CallToolRequest, request).root
        assert result.isError is False
        assert result.structuredContent["metadata"]["total"] == 2
        assert result.content[0].text.startswith("- #python")

    def test_call_tool_error_is_reported(self, app):
        request = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(
                name="collection_manage", arguments={"operation": "create"}
            ),
        )
        result = handle(app, types.CallToolRequest, request).root
        assert result.isError is True
        assert "title is required for create" in result.content[0].text

    def test_read_templated_resource(self, app):
        request = types.ReadResourceRequest(
            method="resources/read",
            params=types.ReadResourceRequestParams(uri="mcp://collection/42"),
        )
        result = handle(app, types.ReadResourceRequest, request).root
        assert '"collection"' in result.contents[0].text

    def test_subscribe_and_unsubscribe(self, service):
        registry = build_registry(service)
        app = create_server(registry)
        subscribe = types.SubscribeRequest(
            method="resources/subscribe",
            params=types.SubscribeRequestParams(uri="mcp://raindrop/17"),
        )
        handle(app, types.SubscribeRequest, subscribe)
        assert registry.subscriptions() == ["mcp://raindrop/17"]

        unsubscribe = types.UnsubscribeRequest(
            method="resources/unsubscribe",
            params=types.UnsubscribeRequestParams(uri="mcp://raindrop/17"),
        )
        handle(app, types.UnsubscribeRequest, unsubscribe)
        assert registry.subscriptions() == []

    def test_subscribe_capability_advertised(self, app):
        capabilities = initialization_options(app).capabilities
        assert capabilities.resources.subscribe is True
        assert capabilities.tools is not None

    def test_prompts(self, app):
        result = handle(app, types.ListPromptsRequest, types.ListPromptsRequest(method="prompts/list"))
        assert [p.name for p in result.root.prompts] == [
            "organize_by_topic", "find_duplicates", "export_markdown"
        ]


class TestContentBlocks:
    """Test envelope to MCP content conversion."""

    def test_all_item_kinds_converted(self):
        envelope = {"content": [
            {"type": "text", "text": "hi", "metadata": {"a": 1}},
            {"type": "resource_link", "uri": "mcp://raindrop/1", "name": "B",
             "description": "d", "mimeType": "application/json"},
            {"type": "resource", "resource": {"uri": "mcp://raindrop/1", "text": "{}"}},
        ]}
        blocks = to_content_blocks(envelope)
        assert isinstance(blocks[0], types.TextContent)
        assert blocks[0].meta == {"a": 1}
        assert isinstance(blocks[1], types.ResourceLink)
        assert isinstance(blocks[2], types.EmbeddedResource)

    def test_unknown_prompt(self):
        from raindrop_mcp.prompts import get_prompt

        with pytest.raises(NotFoundError):
            get_prompt("missing")
