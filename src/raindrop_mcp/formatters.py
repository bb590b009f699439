"""Response shaping for MCP tool results.

Mappers turn raw Raindrop.io API objects into flat domain dicts. Optional
fields that the API omits are left out rather than set to ``None``.
Builders assemble content items and the response envelope, and the
``format_*`` functions render human-readable text for text items.
"""
import json
from typing import Any, Optional

COLLECTION_URI = "mcp://collection/{id}"
BOOKMARK_URI = "mcp://raindrop/{id}"
JSON_MIME = "application/json"


def _put(target: dict, key: str, value: Any) -> dict:
    if value is not None:
        target[key] = value
    return target


def _ref_id(value: Any) -> Optional[int]:
    """Pull the id out of a Raindrop ``{"$id": ...}`` reference."""
    if isinstance(value, dict):
        return value.get("$id")
    return None


def _require_dict(raw: Any, what: str) -> dict:
    if not isinstance(raw, dict):
        raise TypeError(f"Expected a {what} object, got {type(raw).__name__}")
    return raw


def _require_list(items: Any, what: str) -> list:
    if not isinstance(items, list):
        raise TypeError(f"Expected a list of {what}, got {type(items).__name__}")
    return items


# ============================================================================
# Mappers
# ============================================================================

def map_collection(raw: dict) -> dict:
    raw = _require_dict(raw, "collection")
    mapped = {"id": raw.get("_id"), "count": raw.get("count", 0)}
    _put(mapped, "title", raw.get("title"))
    _put(mapped, "public", raw.get("public"))
    _put(mapped, "created", raw.get("created"))
    _put(mapped, "lastUpdate", raw.get("lastUpdate"))
    _put(mapped, "description", raw.get("description"))
    _put(mapped, "color", raw.get("color"))
    _put(mapped, "view", raw.get("view"))
    _put(mapped, "parentId", _ref_id(raw.get("parent")))
    mapped["category"] = "collection"
    return mapped


def map_bookmark(raw: dict) -> dict:
    raw = _require_dict(raw, "bookmark")
    mapped = {
        "id": raw.get("_id"),
        "link": raw.get("link", ""),
        "tags": list(raw.get("tags") or []),
        "type": raw.get("type") or "link",
        "important": bool(raw.get("important", False)),
    }
    _put(mapped, "title", raw.get("title"))
    _put(mapped, "excerpt", raw.get("excerpt"))
    _put(mapped, "note", raw.get("note") or None)
    _put(mapped, "collectionId", _ref_id(raw.get("collection")) or raw.get("collectionId"))
    _put(mapped, "created", raw.get("created"))
    _put(mapped, "lastUpdate", raw.get("lastUpdate"))
    _put(mapped, "domain", raw.get("domain"))
    mapped["category"] = "bookmark"
    return mapped


def map_highlight(raw: dict, bookmark_id: Optional[int] = None) -> dict:
    raw = _require_dict(raw, "highlight")
    mapped = {"id": raw.get("_id"), "text": raw.get("text", "")}
    for key in ("note", "color", "created", "lastUpdate", "title", "tags", "link", "domain"):
        _put(mapped, key, raw.get(key))
    raindrop = raw.get("raindrop") if isinstance(raw.get("raindrop"), dict) else {}
    _put(mapped, "bookmarkId", raw.get("raindropRef") or raindrop.get("_id") or bookmark_id)
    _put(mapped, "collectionId", raw.get("collectionId") or _ref_id(raindrop.get("collection")))
    mapped["category"] = "highlight"
    return mapped


def map_tag(raw: dict) -> dict:
    raw = _require_dict(raw, "tag")
    return {"name": raw.get("_id", ""), "count": raw.get("count", 0), "category": "tag"}


def map_user(raw: dict) -> dict:
    raw = _require_dict(raw, "user")
    mapped = {
        "id": raw.get("_id"),
        "email": raw.get("email", ""),
        "pro": bool(raw.get("pro", False)),
    }
    _put(mapped, "fullName", raw.get("fullName"))
    _put(mapped, "registered", raw.get("registered"))
    _put(mapped, "config", raw.get("config"))
    mapped["category"] = "user"
    return mapped


def map_stats(raw: dict) -> dict:
    """Map ``/user/stats``: per-system-collection counts plus a meta block."""
    raw = _require_dict(raw, "stats")
    counts = {item.get("_id"): item.get("count", 0) for item in raw.get("items") or []}
    meta = raw.get("meta") or {}
    # system collections: 0 = all, -1 = unsorted, -99 = trash
    mapped = {"count": counts.get(0, 0)}
    _put(mapped, "unsorted", counts.get(-1))
    _put(mapped, "trash", counts.get(-99))
    _put(mapped, "lastBookmarkUpdated", meta.get("changedBookmarksDate"))
    _put(mapped, "duplicates", (meta.get("duplicates") or {}).get("count"))
    _put(mapped, "broken", (meta.get("broken") or {}).get("count"))
    mapped["category"] = "stats"
    return mapped


def _map_transfer(raw: dict, category: str) -> dict:
    raw = _require_dict(raw, f"{category} status")
    status = raw.get("status") or ("ready" if raw.get("url") else "in-progress")
    mapped = {"status": status}
    for key in ("progress", "url", "error", "imported", "duplicates"):
        _put(mapped, key, raw.get(key))
    mapped["category"] = category
    return mapped


def map_import_status(raw: dict) -> dict:
    return _map_transfer(raw, "import")


def map_export_status(raw: dict) -> dict:
    return _map_transfer(raw, "export")


def map_collections(items: list) -> list[dict]:
    return [map_collection(item) for item in _require_list(items, "collections")]


def map_bookmarks(items: list) -> list[dict]:
    return [map_bookmark(item) for item in _require_list(items, "bookmarks")]


def map_highlights(items: list, bookmark_id: Optional[int] = None) -> list[dict]:
    return [map_highlight(item, bookmark_id) for item in _require_list(items, "highlights")]


def map_tags(items: list) -> list[dict]:
    return [map_tag(item) for item in _require_list(items, "tags")]


# ============================================================================
# Content builders
# ============================================================================

def collection_uri(collection_id: Any) -> str:
    return COLLECTION_URI.format(id=collection_id)


def bookmark_uri(bookmark_id: Any) -> str:
    return BOOKMARK_URI.format(id=bookmark_id)


def text_item(text: str, metadata: Optional[dict] = None) -> dict:
    item = {"type": "text", "text": text}
    return _put(item, "metadata", metadata)


def resource_link_item(
    uri: str,
    name: str,
    description: str,
    mime_type: str = JSON_MIME,
    metadata: Optional[dict] = None,
) -> dict:
    item = {
        "type": "resource_link",
        "uri": uri,
        "name": name,
        "description": description,
        "mimeType": mime_type,
    }
    return _put(item, "metadata", metadata)


def resource_item(
    uri: str, text: str, mime_type: str = JSON_MIME, metadata: Optional[dict] = None
) -> dict:
    resource = {"uri": uri, "text": text, "mimeType": mime_type}
    _put(resource, "metadata", metadata)
    return {"type": "resource", "resource": resource}


def envelope(content: list[dict], metadata: Optional[dict] = None) -> dict:
    result = {"content": content}
    return _put(result, "metadata", metadata)


def collection_link(collection: dict) -> dict:
    """Resource link to a mapped collection; the full record is read on demand."""
    description = collection.get("description") or f"{collection.get('count', 0)} bookmarks"
    return resource_link_item(
        collection_uri(collection["id"]),
        collection.get("title") or "Untitled Collection",
        description,
        metadata=collection,
    )


def bookmark_link(bookmark: dict) -> dict:
    """Resource link to a mapped bookmark; the full record is read on demand."""
    description = bookmark.get("excerpt") or bookmark.get("link") or "Bookmark"
    metadata = {"id": bookmark["id"], "link": bookmark.get("link"), "category": "bookmark"}
    return resource_link_item(
        bookmark_uri(bookmark["id"]),
        bookmark.get("title") or "Untitled",
        description,
        metadata=metadata,
    )


def bookmark_resource(bookmark: dict) -> dict:
    return resource_item(
        bookmark_uri(bookmark["id"]),
        json.dumps(bookmark, indent=2),
        metadata=bookmark,
    )


def operation_item(
    operation: str,
    message: str,
    success: bool = True,
    affected_count: Optional[int] = None,
) -> dict:
    metadata = {"success": success, "message": message, "operation": operation}
    _put(metadata, "affectedCount", affected_count)
    metadata["category"] = "operation"
    return text_item(format_operation(metadata), metadata)


# ============================================================================
# Text formatters
# ============================================================================

def format_collection(col: dict) -> str:
    """Format a collection for display."""
    desc_info = f"\nDescription: {col['description']}" if col.get('description') else ""
    parent_info = f"\nParent: {col['parentId']}" if col.get('parentId') else ""
    visibility = "public" if col.get('public') else "private"

    return f"""**{col.get('title') or 'Untitled Collection'}**
ID: {col['id']}
Bookmarks: {col.get('count', 0)}
Visibility: {visibility}{parent_info}{desc_info}"""


def format_bookmark(bm: dict) -> str:
    """Format a bookmark for display."""
    star = "⭐ " if bm.get('important') else ""
    tags_info = f"\nTags: {', '.join(bm['tags'])}" if bm.get('tags') else ""
    excerpt_info = f"\nExcerpt: {bm['excerpt']}" if bm.get('excerpt') else ""
    collection_info = f"\nCollection: {bm['collectionId']}" if bm.get('collectionId') is not None else ""

    return f"""{star}**{bm.get('title') or 'Untitled'}**
ID: {bm['id']}
Link: {bm.get('link', '')}
Type: {bm.get('type', 'link')}{collection_info}{tags_info}{excerpt_info}"""


def format_tag(tag: dict) -> str:
    return f"- #{tag['name']} ({tag['count']} bookmarks)"


def format_highlight(hl: dict) -> str:
    """Format a highlight for display."""
    note_info = f"\nNote: {hl['note']}" if hl.get('note') else ""
    source_info = f"\nFrom: {hl['title']}" if hl.get('title') else ""
    color_info = f" [{hl['color']}]" if hl.get('color') else ""

    return f"""> {hl['text']}{color_info}
ID: {hl['id']}{source_info}{note_info}"""


def format_user(user: dict) -> str:
    """Format a user profile for display."""
    name_info = f" ({user['fullName']})" if user.get('fullName') else ""
    registered_info = f"\nRegistered: {user['registered']}" if user.get('registered') else ""
    return f"""**{user['email']}**{name_info}
ID: {user['id']}
Pro: {user['pro']}{registered_info}"""


def format_stats(stats: dict) -> str:
    lines = [f"Bookmarks: {stats['count']}"]
    for key, label in (
        ("unsorted", "Unsorted"),
        ("trash", "Trash"),
        ("duplicates", "Duplicates"),
        ("broken", "Broken links"),
        ("lastBookmarkUpdated", "Last change"),
    ):
        if stats.get(key) is not None:
            lines.append(f"{label}: {stats[key]}")
    return "\n".join(lines)


def format_transfer_status(status: dict) -> str:
    """Format an import or export job status."""
    title = "Export" if status.get('category') == "export" else "Import"
    progress_info = f" ({status['progress']}%)" if status.get('progress') is not None else ""
    url_info = f"\nDownload: {status['url']}" if status.get('url') else ""
    error_info = f"\nError: {status['error']}" if status.get('error') else ""
    imported_info = f"\nImported: {status['imported']}" if status.get('imported') is not None else ""
    return f"""{title} status: {status['status']}{progress_info}{url_info}{imported_info}{error_info}"""


def format_operation(result: dict) -> str:
    status = "OK" if result.get('success') else "FAILED"
    affected_info = f" ({result['affectedCount']} affected)" if result.get('affectedCount') is not None else ""
    return f"[{status}] {result.get('message') or result.get('operation', '')}{affected_info}"
