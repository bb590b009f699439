"""MCP tool handlers.

All handlers follow a consistent pattern:
- Accept: the validated input model and the shared ToolContext
- Return: a response envelope dict ``{"content": [...], "metadata": {...}}``
- Use mappers and builders from the formatters module for consistent output
- Raise errors.ValidationError for business-rule failures before any API call
- Log all operations for debugging

Output validation against each tool's declared schema is applied by the
registry, not here.
"""
import importlib.metadata
import json
import logging
import os
import platform
import sys
import time
from datetime import datetime, timezone
from typing import Any, Optional

from . import formatters
from .errors import ValidationError
from .registry import ToolContext
from .schemas import (
    BookmarkManageInput,
    BookmarkSearchInput,
    BulkEditRaindropsInput,
    CollectionListInput,
    CollectionManageInput,
    DiagnosticsInput,
    EmptyInput,
    ExportBookmarksInput,
    GetRaindropInput,
    HighlightListInput,
    HighlightManageInput,
    ListRaindropsInput,
    TagListInput,
    TagManageInput,
)

logger = logging.getLogger("raindrop-mcp.handlers")

DIAGNOSTICS_URI = "diagnostics://server"


def _parse_id(value: str, what: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {what} id: {value!r}") from None


def _tag_term(tag: str) -> str:
    return f'#"{tag}"' if " " in tag else f"#{tag}"


# ============================================================================
# Diagnostics
# ============================================================================

def diagnostics_payload(context: ToolContext, include_environment: bool = False) -> dict:
    """Server diagnostics shared by the tool and the diagnostics resource."""
    try:
        sdk_version = importlib.metadata.version("mcp")
    except importlib.metadata.PackageNotFoundError:
        sdk_version = "unknown"

    payload = {
        "version": context.server_version,
        "sdkVersion": sdk_version,
        "python": platform.python_version(),
        "platform": sys.platform,
        "uptimeSeconds": round(time.time() - context.started_at, 3),
        "startTime": datetime.fromtimestamp(context.started_at, timezone.utc).isoformat(),
        "enabledTools": list(context.tool_categories),
        "toolCategories": dict(context.tool_categories),
    }
    if include_environment:
        payload["environment"] = {
            "RAINDROP_ACCESS_TOKEN": "set" if os.getenv("RAINDROP_ACCESS_TOKEN") else "missing",
            "RAINDROP_API_BASE_URL": os.getenv("RAINDROP_API_BASE_URL", "default"),
            "RAINDROP_MCP_LOG_LEVEL": os.getenv("RAINDROP_MCP_LOG_LEVEL", "INFO"),
        }
    return payload


async def handle_diagnostics(arguments: DiagnosticsInput, context: ToolContext) -> dict:
    """Return server version, uptime, and enabled tools as an embedded resource."""
    payload = diagnostics_payload(context, bool(arguments.includeEnvironment))
    logger.info(f"Diagnostics requested (uptime {payload['uptimeSeconds']}s)")
    return formatters.envelope([
        formatters.resource_item(DIAGNOSTICS_URI, json.dumps(payload, indent=2))
    ])


# ============================================================================
# Collection Handlers
# ============================================================================

async def handle_collection_list(arguments: CollectionListInput, context: ToolContext) -> dict:
    """List root collections, or the children of ``parentId``, as resource links."""
    service = context.service
    if arguments.parentId is not None:
        raw = await service.get_child_collections(arguments.parentId)
    else:
        raw = await service.get_collections()
    collections = formatters.map_collections(raw)
    logger.info(f"Successfully listed {len(collections)} collections")

    metadata = {"total": len(collections)}
    return formatters.envelope(
        [formatters.collection_link(col) for col in collections], metadata
    )


async def handle_collection_manage(arguments: CollectionManageInput, context: ToolContext) -> dict:
    """Create, update, or delete a collection."""
    service = context.service
    operation = arguments.operation

    if operation == "create":
        if not arguments.title:
            raise ValidationError("title is required for create")
        raw = await service.create_collection(
            arguments.title, public=bool(arguments.public), parent_id=arguments.parentId
        )
        collection = formatters.map_collection(raw)
        logger.info(f"Created collection {collection.get('id')}: {collection.get('title')}")
        text = f"Created collection\n\n{formatters.format_collection(collection)}"
        return formatters.envelope([formatters.text_item(text, collection)])

    if arguments.id is None:
        raise ValidationError(f"id is required for {operation}")

    if operation == "update":
        updates: dict[str, Any] = {}
        for key in ("title", "color", "description", "public"):
            value = getattr(arguments, key)
            if value is not None:
                updates[key] = value
        if arguments.parentId is not None:
            updates["parent"] = {"$id": arguments.parentId}
        raw = await service.update_collection(arguments.id, updates)
        collection = formatters.map_collection(raw)
        logger.info(f"Updated collection {arguments.id}")
        text = f"Updated collection\n\n{formatters.format_collection(collection)}"
        return formatters.envelope([formatters.text_item(text, collection)])

    await service.delete_collection(arguments.id)
    logger.info(f"Deleted collection {arguments.id}")
    return formatters.envelope([
        formatters.operation_item("delete", f"Deleted collection {arguments.id}", affected_count=1)
    ])


# ============================================================================
# Bookmark Handlers
# ============================================================================

async def handle_bookmark_search(arguments: BookmarkSearchInput, context: ToolContext) -> dict:
    """Search bookmarks and return resource links to each match."""
    terms = [arguments.search] if arguments.search else []
    tags = list(arguments.tags or [])
    if arguments.tag:
        tags.append(arguments.tag)
    terms.extend(_tag_term(tag) for tag in tags)

    query: dict[str, Any] = {}
    if terms:
        query["search"] = " ".join(terms)
    for key, param in (
        ("sort", "sort"),
        ("page", "page"),
        ("perPage", "perpage"),
        ("important", "important"),
        ("duplicates", "duplicates"),
        ("broken", "broken"),
        ("highlight", "highlight"),
        ("domain", "domain"),
    ):
        value = getattr(arguments, key)
        if value is not None:
            query[param] = value

    collection_id = arguments.collection or 0
    result = await context.service.get_bookmarks(collection_id, query)
    bookmarks = formatters.map_bookmarks(result.get("items", []))
    logger.info(f"Bookmark search in collection {collection_id} returned {len(bookmarks)} items")

    metadata = {"total": result.get("count", len(bookmarks))}
    if arguments.page is not None:
        metadata["page"] = arguments.page
    return formatters.envelope(
        [formatters.bookmark_link(bm) for bm in bookmarks], metadata
    )


async def handle_bookmark_manage(arguments: BookmarkManageInput, context: ToolContext) -> dict:
    """Create, update, or delete a bookmark."""
    service = context.service
    operation = arguments.operation

    if operation == "create":
        if arguments.collectionId is None:
            raise ValidationError("collectionId is required for create")
        if not arguments.url:
            raise ValidationError("url is required for create")
        payload: dict[str, Any] = {"link": arguments.url}
        if arguments.title is not None:
            payload["title"] = arguments.title
        if arguments.description is not None:
            payload["excerpt"] = arguments.description
        if arguments.tags is not None:
            payload["tags"] = arguments.tags
        if arguments.important is not None:
            payload["important"] = arguments.important
        raw = await service.create_bookmark(arguments.collectionId, payload)
        bookmark = formatters.map_bookmark(raw)
        logger.info(f"Created bookmark {bookmark.get('id')} in collection {arguments.collectionId}")
        text = f"Created bookmark\n\n{formatters.format_bookmark(bookmark)}"
        return formatters.envelope([formatters.text_item(text, bookmark)])

    if arguments.id is None:
        raise ValidationError(f"id is required for {operation}")

    if operation == "update":
        payload = {}
        for key, field_name in (
            ("url", "link"),
            ("title", "title"),
            ("description", "excerpt"),
            ("tags", "tags"),
            ("important", "important"),
        ):
            value = getattr(arguments, key)
            if value is not None:
                payload[field_name] = value
        if arguments.collectionId is not None:
            payload["collection"] = {"$id": arguments.collectionId}
        raw = await service.update_bookmark(arguments.id, payload)
        bookmark = formatters.map_bookmark(raw)
        logger.info(f"Updated bookmark {arguments.id}")
        text = f"Updated bookmark\n\n{formatters.format_bookmark(bookmark)}"
        return formatters.envelope([formatters.text_item(text, bookmark)])

    await service.delete_bookmark(arguments.id)
    logger.info(f"Deleted bookmark {arguments.id}")
    return formatters.envelope([
        formatters.operation_item("delete", f"Deleted bookmark {arguments.id}", affected_count=1)
    ])


async def handle_get_raindrop(arguments: GetRaindropInput, context: ToolContext) -> dict:
    """Fetch one bookmark as an embedded resource."""
    bookmark_id = _parse_id(arguments.id, "bookmark")
    raw = await context.service.get_bookmark(bookmark_id)
    bookmark = formatters.map_bookmark(raw)
    logger.info(f"Successfully retrieved bookmark {bookmark_id}")
    return formatters.envelope([formatters.bookmark_resource(bookmark)])


async def handle_list_raindrops(arguments: ListRaindropsInput, context: ToolContext) -> dict:
    """List bookmarks of a collection as resource links."""
    collection_id = _parse_id(arguments.collectionId, "collection")
    result = await context.service.get_bookmarks(
        collection_id, {"perpage": arguments.limit or 50}
    )
    bookmarks = formatters.map_bookmarks(result.get("items", []))
    logger.info(f"Successfully listed {len(bookmarks)} bookmarks in collection {collection_id}")

    metadata = {"total": result.get("count", len(bookmarks)), "collectionId": collection_id}
    return formatters.envelope(
        [formatters.bookmark_link(bm) for bm in bookmarks], metadata
    )


async def handle_bulk_edit_raindrops(arguments: BulkEditRaindropsInput, context: ToolContext) -> dict:
    """Apply the same change to many bookmarks of one collection."""
    changes: dict[str, Any] = {}
    for key in ("ids", "important", "tags", "media", "cover", "nested"):
        value = getattr(arguments, key)
        if value is not None:
            changes[key] = value
    if arguments.collection is not None:
        changes["collection"] = {"$id": arguments.collection.id}

    modified = await context.service.bulk_update_bookmarks(arguments.collectionId, changes)
    count = "matching" if modified is None else str(modified)
    message = f"Updated {count} raindrops in collection {arguments.collectionId}"
    logger.info(message)
    return formatters.envelope([
        formatters.operation_item("bulk_edit", message, affected_count=modified)
    ])


# ============================================================================
# Tag Handlers
# ============================================================================

async def handle_tag_list(arguments: TagListInput, context: ToolContext) -> dict:
    raw = await context.service.get_tags(arguments.collectionId)
    tags = formatters.map_tags(raw)
    logger.info(f"Successfully listed {len(tags)} tags")
    return formatters.envelope(
        [formatters.text_item(formatters.format_tag(tag), tag) for tag in tags],
        {"total": len(tags)},
    )


async def handle_tag_manage(arguments: TagManageInput, context: ToolContext) -> dict:
    """Rename, merge, or delete tags."""
    service = context.service
    operation = arguments.operation
    tag_names = list(arguments.tagNames or [])

    if operation == "rename":
        if not tag_names or not arguments.newName:
            raise ValidationError("tagNames and newName are required for rename")
        if len(tag_names) != 1:
            raise ValidationError("rename takes exactly one tag name; use merge to combine several tags")
        old_name = tag_names[0]
        success = await service.rename_tag(arguments.collectionId, old_name, arguments.newName)
        message = f"Renamed tag '{old_name}' to '{arguments.newName}'"
        affected = 1
    elif operation == "merge":
        if not tag_names or not arguments.newName:
            raise ValidationError("tagNames and newName are required for merge")
        success = await service.merge_tags(arguments.collectionId, tag_names, arguments.newName)
        message = f"Merged tags {', '.join(tag_names)} into '{arguments.newName}'"
        affected = len(tag_names)
    else:
        if not tag_names:
            raise ValidationError("tagNames is required for delete")
        success = await service.delete_tags(arguments.collectionId, tag_names)
        message = f"Deleted tags {', '.join(tag_names)}"
        affected = len(tag_names)

    logger.info(message)
    return formatters.envelope([
        formatters.operation_item(operation, message, success=success, affected_count=affected)
    ])


# ============================================================================
# Highlight Handlers
# ============================================================================

async def handle_highlight_list(arguments: HighlightListInput, context: ToolContext) -> dict:
    """List highlights of a bookmark, of a collection, or of the whole account."""
    service = context.service
    bookmark_id: Optional[int] = arguments.bookmarkId
    if bookmark_id is not None:
        raw = await service.get_highlights(bookmark_id)
    elif arguments.collectionId is not None:
        raw = await service.get_collection_highlights(
            arguments.collectionId, arguments.page, arguments.perPage
        )
    else:
        raw = await service.get_all_highlights(arguments.page, arguments.perPage)
    highlights = formatters.map_highlights(raw, bookmark_id)
    logger.info(f"Successfully listed {len(highlights)} highlights")

    return formatters.envelope(
        [formatters.text_item(formatters.format_highlight(hl), hl) for hl in highlights],
        {"total": len(highlights), "page": arguments.page},
    )


async def handle_highlight_manage(arguments: HighlightManageInput, context: ToolContext) -> dict:
    """Create, update, or delete a highlight."""
    service = context.service
    operation = arguments.operation

    if operation == "create":
        if arguments.bookmarkId is None or not arguments.text:
            raise ValidationError("bookmarkId and text are required for create")
        payload = {"text": arguments.text}
        if arguments.note is not None:
            payload["note"] = arguments.note
        if arguments.color is not None:
            payload["color"] = arguments.color
        raw = await service.create_highlight(arguments.bookmarkId, payload)
        highlight = formatters.map_highlight(raw, arguments.bookmarkId)
        logger.info(f"Created highlight {highlight.get('id')} on bookmark {arguments.bookmarkId}")
        return formatters.envelope([
            formatters.text_item(formatters.format_highlight(highlight), highlight)
        ])

    if arguments.id is None:
        raise ValidationError(f"id is required for {operation}")

    if operation == "update":
        payload = {}
        for key in ("text", "note", "color"):
            value = getattr(arguments, key)
            if value is not None:
                payload[key] = value
        raw = await service.update_highlight(arguments.id, payload)
        highlight = formatters.map_highlight(raw, arguments.bookmarkId)
        logger.info(f"Updated highlight {arguments.id}")
        return formatters.envelope([
            formatters.text_item(formatters.format_highlight(highlight), highlight)
        ])

    await service.delete_highlight(arguments.id)
    logger.info(f"Deleted highlight {arguments.id}")
    return formatters.envelope([
        formatters.operation_item("delete", f"Deleted highlight {arguments.id}", affected_count=1)
    ])


# ============================================================================
# User, Stats, Import/Export Handlers
# ============================================================================

async def handle_user_profile(arguments: EmptyInput, context: ToolContext) -> dict:
    raw = await context.service.get_user_info()
    user = formatters.map_user(raw)
    logger.info(f"Successfully retrieved profile for user {user.get('id')}")
    return formatters.envelope([formatters.text_item(formatters.format_user(user), user)])


async def handle_user_stats(arguments: EmptyInput, context: ToolContext) -> dict:
    raw = await context.service.get_user_stats()
    stats = formatters.map_stats(raw)
    logger.info("Successfully retrieved account statistics")
    return formatters.envelope([formatters.text_item(formatters.format_stats(stats), stats)])


async def handle_import_status(arguments: EmptyInput, context: ToolContext) -> dict:
    raw = await context.service.get_import_status()
    status = formatters.map_import_status(raw)
    logger.info(f"Import status: {status['status']}")
    return formatters.envelope([
        formatters.text_item(formatters.format_transfer_status(status), status)
    ])


async def handle_export_bookmarks(arguments: ExportBookmarksInput, context: ToolContext) -> dict:
    """Start an export; the status item carries the download url once ready."""
    raw = await context.service.export_bookmarks(
        arguments.collectionId, arguments.format, arguments.broken, arguments.duplicates
    )
    status = formatters.map_export_status(raw)
    logger.info(f"Export ({arguments.format}) status: {status['status']}")
    return formatters.envelope([
        formatters.text_item(formatters.format_transfer_status(status), status)
    ])


async def handle_export_status(arguments: EmptyInput, context: ToolContext) -> dict:
    raw = await context.service.get_export_status()
    status = formatters.map_export_status(raw)
    logger.info(f"Export status: {status['status']}")
    return formatters.envelope([
        formatters.text_item(formatters.format_transfer_status(status), status)
    ])
