"""Raindrop MCP Server - Expose Raindrop.io bookmarks to AI assistants over STDIO."""
import asyncio
import logging
import sys
from typing import Any, Optional

from mcp.server import Server
from mcp.server.models import InitializationOptions
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp import types
from pydantic import AnyUrl

from . import prompts
from . import resources
from . import tools
from .client import RaindropClient, RaindropService
from .config import VERSION, Settings, configure_logging, get_settings
from .errors import ConfigurationError, ErrorKind, RaindropMCPError
from .registry import ToolContext, ToolRegistry
from .shutdown import GracefulShutdown, log_uncaught_exception
from .streaming import StreamingChunker, StreamingWriteStream

logger = logging.getLogger("raindrop-mcp")

INSTRUCTIONS = (
    "Tools for a Raindrop.io bookmark account. List and search tools return "
    "resource links; read mcp://collection/{id} or mcp://raindrop/{id} for "
    "the full record."
)


def build_registry(service: RaindropService) -> ToolRegistry:
    """Create the registry with every tool, resource and resource template."""
    registry = ToolRegistry(ToolContext(service=service, server_version=VERSION))
    registry.register(
        tools.get_tools(),
        resources.get_resources(),
        resources.get_resource_templates(),
    )
    return registry


def to_content_blocks(envelope: dict) -> list[types.ContentBlock]:
    """Convert envelope content items into MCP content blocks."""
    blocks: list[types.ContentBlock] = []
    for item in envelope.get("content", []):
        kind = item.get("type")
        if kind == "text":
            block = types.TextContent.model_validate({
                "type": "text",
                "text": item["text"],
                "_meta": item.get("metadata"),
            })
        elif kind == "resource_link":
            block = types.ResourceLink.model_validate({
                "type": "resource_link",
                "uri": item["uri"],
                "name": item["name"],
                "description": item.get("description"),
                "mimeType": item.get("mimeType"),
                "_meta": item.get("metadata"),
            })
        elif kind == "resource":
            resource = item["resource"]
            block = types.EmbeddedResource.model_validate({
                "type": "resource",
                "resource": {
                    "uri": resource["uri"],
                    "text": resource["text"],
                    "mimeType": resource.get("mimeType"),
                    "_meta": resource.get("metadata"),
                },
            })
        else:
            logger.warning(f"Dropping content item of unknown type {kind!r}")
            continue
        blocks.append(block)
    return blocks


def _to_mcp_tool(entry: dict) -> types.Tool:
    output_schema = entry.get("outputSchema") or None
    if output_schema is not None:
        output_schema.setdefault("type", "object")
    return types.Tool(
        name=entry["name"],
        description=entry["description"],
        inputSchema=entry["inputSchema"],
        outputSchema=output_schema,
    )


def initialization_options(app: Server) -> InitializationOptions:
    """Server options with resource subscriptions advertised."""
    options = app.create_initialization_options()
    if options.capabilities.resources is not None:
        options.capabilities.resources.subscribe = True
    return options


def create_server(registry: ToolRegistry) -> Server:
    """Bind the registry to a low-level MCP server."""
    app = Server("raindrop-mcp", version=VERSION, instructions=INSTRUCTIONS)

    @app.list_tools()
    async def list_tools() -> list[types.Tool]:
        """List available MCP tools for Raindrop.io."""
        return [_to_mcp_tool(entry) for entry in registry.list_tools()]

    @app.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]):
        """Handle MCP tool calls by delegating to the registry."""
        logger.info(f"Tool call: {name} with arguments: {arguments}")
        try:
            envelope = await registry.call_tool(name, arguments)
        except RaindropMCPError as e:
            if e.kind is ErrorKind.CONTRACT:
                logger.error(f"Output contract violated by {name}: {e.message}", exc_info=True)
            else:
                logger.warning(f"Tool {name} failed ({e.kind.value}): {e.message}")
            raise
        except Exception as e:
            logger.exception(f"Unexpected error during {name} call: {type(e).__name__}: {e}")
            raise
        return to_content_blocks(envelope), envelope

    @app.list_resources()
    async def list_resources() -> list[types.Resource]:
        return [
            types.Resource.model_validate({
                "uri": info["uri"],
                "name": info.get("title") or info["id"],
                "title": info.get("title"),
                "description": info.get("description"),
                "mimeType": info.get("mimeType"),
            })
            for info in registry.list_resources()
        ]

    @app.list_resource_templates()
    async def list_resource_templates() -> list[types.ResourceTemplate]:
        return [
            types.ResourceTemplate(
                uriTemplate=info["uriTemplate"],
                name=info["name"],
                description=info.get("description"),
                mimeType=info.get("mimeType"),
            )
            for info in registry.list_resource_templates()
        ]

    @app.read_resource()
    async def read_resource(uri: AnyUrl) -> list[ReadResourceContents]:
        logger.info(f"Resource read: {uri}")
        result = await registry.read_resource(str(uri))
        return [
            ReadResourceContents(content=item["text"], mime_type=item.get("mimeType"))
            for item in result["contents"]
        ]

    @app.subscribe_resource()
    async def subscribe_resource(uri: AnyUrl) -> None:
        registry.subscribe(str(uri))

    @app.unsubscribe_resource()
    async def unsubscribe_resource(uri: AnyUrl) -> None:
        registry.unsubscribe(str(uri))

    @app.list_prompts()
    async def list_prompts() -> list[types.Prompt]:
        return [
            types.Prompt(name=prompt.name, description=prompt.description)
            for prompt in prompts.PROMPTS
        ]

    @app.get_prompt()
    async def get_prompt(name: str, arguments: Optional[dict[str, str]]) -> types.GetPromptResult:
        prompt = prompts.get_prompt(name)
        return types.GetPromptResult(
            description=prompt.description,
            messages=[
                types.PromptMessage(
                    role="user",
                    content=types.TextContent(type="text", text=prompt.instructions),
                )
            ],
        )

    return app


async def serve(settings: Settings) -> int:
    """Run the MCP server on STDIO until the session ends or a signal arrives."""
    service = RaindropClient.from_settings(settings)
    registry = build_registry(service)
    app = create_server(registry)

    shutdown = GracefulShutdown(cleanup=service.aclose, timeout=settings.shutdown_timeout)
    shutdown.install(asyncio.get_running_loop())

    logger.info(f"MCP Server {VERSION} starting with API base URL: {settings.api_base_url}")
    async with stdio_server() as (read_stream, write_stream):
        if settings.streaming_enabled:
            write_stream = StreamingWriteStream(write_stream, StreamingChunker())
        server_task = asyncio.create_task(
            app.run(read_stream, write_stream, initialization_options(app))
        )
        return await shutdown.run_until_stopped(server_task)


def run() -> None:
    """Console-script entry point."""
    settings = get_settings()
    configure_logging(settings.log_level)
    sys.excepthook = log_uncaught_exception

    try:
        exit_code = asyncio.run(serve(settings))
    except ConfigurationError as e:
        logger.error(f"Failed to initialize server: {e}")
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    run()
