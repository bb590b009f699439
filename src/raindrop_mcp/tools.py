"""Raindrop MCP tool definitions.

This module provides the definitive list of MCP tools the server exposes.
Each definition pairs an input model, a handler and the output schema the
handler's result is validated against.
"""
from typing import Union

from . import handlers
from .registry import ToolDefinition
from .schemas import (
    BookmarkListResponse,
    BookmarkManageInput,
    BookmarkResponse,
    BookmarkSearchInput,
    BulkEditRaindropsInput,
    CollectionListInput,
    CollectionListResponse,
    CollectionManageInput,
    CollectionResponse,
    DiagnosticsInput,
    DiagnosticsResponse,
    EmptyInput,
    ExportBookmarksInput,
    GetRaindropInput,
    HighlightListInput,
    HighlightListResponse,
    HighlightManageInput,
    HighlightResponse,
    ImportExportResponse,
    ListRaindropsInput,
    OperationResultResponse,
    StatsResponse,
    TagListInput,
    TagListResponse,
    TagManageInput,
    UserResponse,
)


def get_tools() -> list[ToolDefinition]:
    """Get the list of all MCP tools for Raindrop.io."""
    return [
        # ============================================================================
        # Diagnostics
        # ============================================================================
        ToolDefinition(
            name="diagnostics",
            description="Get server diagnostic information: version, uptime, and enabled tools. "
                        "Use when troubleshooting the connection to Raindrop.io.",
            input_schema=DiagnosticsInput,
            handler=handlers.handle_diagnostics,
            output_schema=DiagnosticsResponse,
            category="diagnostics",
        ),
        # ============================================================================
        # Collection Tools
        # ============================================================================
        ToolDefinition(
            name="collection_list",
            description="List all collections, or the child collections of parentId. "
                        "Returns resource links; read mcp://collection/{id} for full details.",
            input_schema=CollectionListInput,
            handler=handlers.handle_collection_list,
            output_schema=CollectionListResponse,
            category="collections",
        ),
        ToolDefinition(
            name="collection_manage",
            description="Create, update, or delete a collection. "
                        "Use the operation parameter to pick the action; "
                        "create requires title, update and delete require id.",
            input_schema=CollectionManageInput,
            handler=handlers.handle_collection_manage,
            output_schema=Union[CollectionResponse, OperationResultResponse],
            category="collections",
        ),
        # ============================================================================
        # Bookmark Tools
        # ============================================================================
        ToolDefinition(
            name="bookmark_search",
            description="Search bookmarks with full-text search, tag, domain and status filters. "
                        "Returns resource links; read mcp://raindrop/{id} for full details. "
                        "Common pattern: bookmark_search(search=...) → getRaindrop(id=...).",
            input_schema=BookmarkSearchInput,
            handler=handlers.handle_bookmark_search,
            output_schema=BookmarkListResponse,
            category="bookmarks",
            streaming=True,
        ),
        ToolDefinition(
            name="bookmark_manage",
            description="Create, update, or delete a bookmark. "
                        "create requires collectionId and url, update and delete require id.",
            input_schema=BookmarkManageInput,
            handler=handlers.handle_bookmark_manage,
            output_schema=Union[BookmarkResponse, OperationResultResponse],
            category="bookmarks",
        ),
        ToolDefinition(
            name="getRaindrop",
            description="Fetch a single bookmark (raindrop) by ID.",
            input_schema=GetRaindropInput,
            handler=handlers.handle_get_raindrop,
            output_schema=BookmarkResponse,
            category="bookmarks",
        ),
        ToolDefinition(
            name="listRaindrops",
            description="List bookmarks (raindrops) for a collection.",
            input_schema=ListRaindropsInput,
            handler=handlers.handle_list_raindrops,
            output_schema=BookmarkListResponse,
            category="bookmarks",
            streaming=True,
        ),
        ToolDefinition(
            name="bulk_edit_raindrops",
            description="Bulk update tags, favorite status, media, cover, or collection "
                        "for multiple raindrops in a collection.",
            input_schema=BulkEditRaindropsInput,
            handler=handlers.handle_bulk_edit_raindrops,
            output_schema=OperationResultResponse,
            category="operation",
        ),
        # ============================================================================
        # Tag Tools
        # ============================================================================
        ToolDefinition(
            name="tag_list",
            description="List all tags with bookmark counts, optionally limited to one collection.",
            input_schema=TagListInput,
            handler=handlers.handle_tag_list,
            output_schema=TagListResponse,
            category="tags",
        ),
        ToolDefinition(
            name="tag_manage",
            description="Rename, merge, or delete tags. "
                        "rename and merge require tagNames and newName, delete requires tagNames.",
            input_schema=TagManageInput,
            handler=handlers.handle_tag_manage,
            output_schema=OperationResultResponse,
            category="tags",
        ),
        # ============================================================================
        # Highlight Tools
        # ============================================================================
        ToolDefinition(
            name="highlight_list",
            description="List highlights for a bookmark, a collection, or the whole account.",
            input_schema=HighlightListInput,
            handler=handlers.handle_highlight_list,
            output_schema=HighlightListResponse,
            category="highlights",
            streaming=True,
        ),
        ToolDefinition(
            name="highlight_manage",
            description="Create, update, or delete a highlight. "
                        "create requires bookmarkId and text, update and delete require id.",
            input_schema=HighlightManageInput,
            handler=handlers.handle_highlight_manage,
            output_schema=Union[HighlightResponse, OperationResultResponse],
            category="highlights",
        ),
        # ============================================================================
        # Account Tools
        # ============================================================================
        ToolDefinition(
            name="user_profile",
            description="Get the authenticated user's profile.",
            input_schema=EmptyInput,
            handler=handlers.handle_user_profile,
            output_schema=UserResponse,
            category="user",
        ),
        ToolDefinition(
            name="user_stats",
            description="Get account statistics: bookmark counts, unsorted, trash, duplicates and broken links.",
            input_schema=EmptyInput,
            handler=handlers.handle_user_stats,
            output_schema=StatsResponse,
            category="stats",
        ),
        ToolDefinition(
            name="import_status",
            description="Check the status of the current bookmark import.",
            input_schema=EmptyInput,
            handler=handlers.handle_import_status,
            output_schema=ImportExportResponse,
            category="import_export",
        ),
        ToolDefinition(
            name="export_bookmarks",
            description="Export bookmarks as csv, html, or pdf. "
                        "Returns the export status with a download url once ready.",
            input_schema=ExportBookmarksInput,
            handler=handlers.handle_export_bookmarks,
            output_schema=ImportExportResponse,
            category="import_export",
        ),
        ToolDefinition(
            name="export_status",
            description="Check the status of the latest bookmark export and get its download url.",
            input_schema=EmptyInput,
            handler=handlers.handle_export_status,
            output_schema=ImportExportResponse,
            category="import_export",
        ),
    ]
