"""MCP resources: static resources and the collection/bookmark templates.

Tool results link to ``mcp://collection/{id}`` and ``mcp://raindrop/{id}``;
reading those uris loads the full Raindrop.io record on demand.
"""
import json

from . import formatters
from .handlers import DIAGNOSTICS_URI, diagnostics_payload
from .registry import ResourceDefinition, ResourceTemplateDefinition, ToolContext

USER_PROFILE_URI = "mcp://user/profile"


async def read_diagnostics(context: ToolContext) -> dict:
    return {"uri": DIAGNOSTICS_URI, "text": json.dumps(diagnostics_payload(context), indent=2)}


async def read_user_profile(context: ToolContext) -> dict:
    raw = await context.service.get_user_info()
    return {"uri": USER_PROFILE_URI, "text": json.dumps({"profile": raw}, indent=2)}


async def read_collection(collection_id: int, context: ToolContext) -> dict:
    raw = await context.service.get_collection(collection_id)
    return {
        "uri": formatters.collection_uri(collection_id),
        "text": json.dumps({"collection": raw}, indent=2),
    }


async def read_bookmark(bookmark_id: int, context: ToolContext) -> dict:
    raw = await context.service.get_bookmark(bookmark_id)
    return {
        "uri": formatters.bookmark_uri(bookmark_id),
        "text": json.dumps({"raindrop": raw}, indent=2),
    }


def get_resources() -> list[ResourceDefinition]:
    return [
        ResourceDefinition(
            id="diagnostics",
            uri=DIAGNOSTICS_URI,
            handler=read_diagnostics,
            title="Server diagnostics",
            description="Server version, uptime, and enabled tools",
        ),
        ResourceDefinition(
            id="user-profile",
            uri=USER_PROFILE_URI,
            handler=read_user_profile,
            title="User profile",
            description="Profile of the authenticated Raindrop.io user",
        ),
    ]


def get_resource_templates() -> list[ResourceTemplateDefinition]:
    return [
        ResourceTemplateDefinition(
            uri_template=formatters.COLLECTION_URI,
            name="collection",
            loader=read_collection,
            description="A Raindrop.io collection by id",
        ),
        ResourceTemplateDefinition(
            uri_template=formatters.BOOKMARK_URI,
            name="raindrop",
            loader=read_bookmark,
            description="A Raindrop.io bookmark (raindrop) by id",
        ),
    ]
