"""Pydantic schemas for tool input and output validation.

Output models describe the envelope every tool returns::

    {"content": [<content item>, ...], "metadata": {...}}

with one canonical single-item and list response per domain category
(collection, bookmark, tag, highlight, user, stats, import/export, operation).
``AnyToolResponse`` is the union of all of them and is the default target of
``validation.validate``.

All models allow extra fields so unknown keys pass through validation
untouched; timestamps are kept as opaque strings.
"""
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import AfterValidator, AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError


class _Schema(BaseModel):
    model_config = ConfigDict(extra="allow")


# ============================================================================
# Content items
# ============================================================================

class TextContent(_Schema):
    """Plain text content item."""

    type: Literal["text"]
    text: str
    metadata: Optional[dict[str, Any]] = None


class ResourceLinkContent(_Schema):
    """Pointer to a resource the host can read in a follow-up request."""

    type: Literal["resource_link"]
    uri: str
    name: str
    description: str
    mimeType: str
    metadata: Optional[dict[str, Any]] = None


class ResourceBody(_Schema):
    uri: str
    text: str
    mimeType: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class ResourceContent(_Schema):
    """Embedded resource content item."""

    type: Literal["resource"]
    resource: ResourceBody


MCPContent = Annotated[
    Union[TextContent, ResourceLinkContent, ResourceContent],
    Field(discriminator="type"),
]


class ListMetadata(_Schema):
    """Envelope-level metadata for list responses."""

    total: Optional[int] = None
    page: Optional[int] = None
    collectionId: Optional[int] = None


class MCPResponse(_Schema):
    """Generic envelope accepted for any tool."""

    content: list[MCPContent]
    metadata: Optional[dict[str, Any]] = None


# ============================================================================
# Collections
# ============================================================================

class CollectionContentMetadata(_Schema):
    id: int
    title: Optional[str] = None
    count: int
    public: Optional[bool] = None
    created: Optional[str] = None
    lastUpdate: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    view: Optional[Literal["list", "simple", "grid", "masonry"]] = None
    parentId: Optional[int] = None
    category: Optional[Literal["collection"]] = None


class CollectionTextContent(TextContent):
    metadata: CollectionContentMetadata


class CollectionResponse(_Schema):
    content: list[CollectionTextContent]
    metadata: Optional[ListMetadata] = None


class CollectionListResponse(_Schema):
    content: list[
        Annotated[
            Union[CollectionTextContent, ResourceLinkContent],
            Field(discriminator="type"),
        ]
    ]
    metadata: Optional[ListMetadata] = None


# ============================================================================
# Bookmarks (raindrops)
# ============================================================================

BookmarkType = Literal["link", "article", "image", "video", "document", "audio"]


class BookmarkContentMetadata(_Schema):
    id: int
    title: Optional[str] = None
    link: str
    excerpt: Optional[str] = None
    note: Optional[str] = None
    tags: list[str]
    collectionId: Optional[int] = None
    created: Optional[str] = None
    lastUpdate: Optional[str] = None
    type: BookmarkType
    important: bool
    domain: Optional[str] = None
    category: Optional[Literal["bookmark"]] = None


class BookmarkTextContent(TextContent):
    metadata: BookmarkContentMetadata


class BookmarkResourceBody(ResourceBody):
    metadata: BookmarkContentMetadata


class BookmarkResourceContent(ResourceContent):
    resource: BookmarkResourceBody


class BookmarkResponse(_Schema):
    """Single bookmark, as plain text or as an embedded resource."""

    content: list[
        Annotated[
            Union[BookmarkTextContent, BookmarkResourceContent],
            Field(discriminator="type"),
        ]
    ]
    metadata: Optional[ListMetadata] = None


class BookmarkListResponse(_Schema):
    """Bookmark listing; search results are resource links."""

    content: list[
        Annotated[
            Union[BookmarkTextContent, BookmarkResourceContent, ResourceLinkContent],
            Field(discriminator="type"),
        ]
    ]
    metadata: Optional[ListMetadata] = None


# ============================================================================
# Tags
# ============================================================================

class TagContentMetadata(_Schema):
    name: str
    count: int
    category: Optional[Literal["tag"]] = None


class TagTextContent(TextContent):
    metadata: TagContentMetadata


class TagResponse(_Schema):
    content: list[TagTextContent]


class TagListResponse(TagResponse):
    metadata: Optional[ListMetadata] = None


# ============================================================================
# Highlights
# ============================================================================

class HighlightContentMetadata(_Schema):
    id: Union[str, int]
    text: str
    note: Optional[str] = None
    color: Optional[str] = None
    created: Optional[str] = None
    lastUpdate: Optional[str] = None
    title: Optional[str] = None
    tags: Optional[list[str]] = None
    link: Optional[str] = None
    domain: Optional[str] = None
    bookmarkId: Optional[int] = None
    collectionId: Optional[int] = None
    category: Optional[Literal["highlight"]] = None


class HighlightTextContent(TextContent):
    metadata: HighlightContentMetadata


class HighlightResponse(_Schema):
    content: list[HighlightTextContent]


class HighlightListResponse(HighlightResponse):
    metadata: Optional[ListMetadata] = None


# ============================================================================
# User and stats
# ============================================================================

class UserContentMetadata(_Schema):
    id: int
    email: str
    fullName: Optional[str] = None
    pro: bool
    registered: Optional[str] = None
    config: Optional[dict[str, Any]] = None
    category: Optional[Literal["user"]] = None


class UserTextContent(TextContent):
    metadata: UserContentMetadata


class UserResponse(_Schema):
    content: list[UserTextContent]


class UserListResponse(UserResponse):
    metadata: Optional[ListMetadata] = None


class StatsContentMetadata(_Schema):
    count: int
    unsorted: Optional[int] = None
    trash: Optional[int] = None
    lastBookmarkCreated: Optional[str] = None
    lastBookmarkUpdated: Optional[str] = None
    duplicates: Optional[int] = None
    broken: Optional[int] = None
    category: Optional[Literal["stats"]] = None


class StatsTextContent(TextContent):
    metadata: StatsContentMetadata


class StatsResponse(_Schema):
    content: list[StatsTextContent]


class StatsListResponse(StatsResponse):
    metadata: Optional[ListMetadata] = None


# ============================================================================
# Import / export
# ============================================================================

class ImportExportStatusMetadata(_Schema):
    status: Literal["in-progress", "ready", "error"]
    progress: Optional[float] = None
    url: Optional[str] = None
    error: Optional[str] = None
    imported: Optional[int] = None
    duplicates: Optional[int] = None
    category: Optional[Literal["import", "export"]] = None


class ImportExportTextContent(TextContent):
    metadata: ImportExportStatusMetadata


class ImportExportResponse(_Schema):
    content: list[ImportExportTextContent]


class ImportExportListResponse(ImportExportResponse):
    metadata: Optional[ListMetadata] = None


# ============================================================================
# Operation results
# ============================================================================

class OperationResultMetadata(_Schema):
    success: bool
    message: Optional[str] = None
    affectedCount: Optional[int] = None
    operation: Optional[str] = None
    category: Optional[Literal["operation"]] = None


class OperationResultTextContent(TextContent):
    metadata: OperationResultMetadata


class OperationResultResponse(_Schema):
    content: list[OperationResultTextContent]


class OperationResultListResponse(OperationResultResponse):
    metadata: Optional[ListMetadata] = None


# ============================================================================
# Diagnostics
# ============================================================================

class DiagnosticsResponse(_Schema):
    content: list[ResourceContent]


# ============================================================================
# Streaming
# ============================================================================

class StreamingChunkMetadata(_Schema):
    chunkIndex: int
    isComplete: bool
    totalChunks: Optional[int] = None


class StreamingChunk(_Schema):
    type: Literal["text"]
    text: str
    metadata: StreamingChunkMetadata


class StreamingResponseMetadata(_Schema):
    streaming: Literal[True]
    totalChunks: Optional[int] = None


class StreamingResponse(_Schema):
    content: list[StreamingChunk]
    metadata: StreamingResponseMetadata


AnyToolResponse = Union[
    MCPResponse,
    CollectionResponse,
    CollectionListResponse,
    BookmarkResponse,
    BookmarkListResponse,
    TagResponse,
    TagListResponse,
    HighlightResponse,
    HighlightListResponse,
    UserResponse,
    UserListResponse,
    StatsResponse,
    StatsListResponse,
    ImportExportResponse,
    ImportExportListResponse,
    OperationResultResponse,
    OperationResultListResponse,
    DiagnosticsResponse,
    StreamingResponse,
]


# ============================================================================
# Tool input schemas
# ============================================================================

_URL_ADAPTER = TypeAdapter(AnyUrl)


def _check_url(value: str) -> str:
    """Require a parseable URL but keep the caller's original string."""
    try:
        _URL_ADAPTER.validate_python(value)
    except PydanticValidationError as e:
        raise ValueError(f"invalid URL: {value!r}") from e
    return value


UrlStr = Annotated[str, AfterValidator(_check_url), Field(json_schema_extra={"format": "uri"})]


class _ToolInput(BaseModel):
    model_config = ConfigDict(extra="allow")


class DiagnosticsInput(_ToolInput):
    includeEnvironment: Optional[bool] = Field(None, description="Include environment info")


class CollectionListInput(_ToolInput):
    parentId: Optional[int] = Field(
        None, description="Parent collection ID to list children. Omit to list root collections."
    )


class CollectionManageInput(_ToolInput):
    operation: Literal["create", "update", "delete"] = Field(..., description="Action to perform")
    id: Optional[int] = Field(None, description="Collection ID (required for update and delete)")
    title: Optional[str] = Field(None, description="Collection title (required for create)")
    parentId: Optional[int] = Field(None, description="Parent collection ID for nesting")
    color: Optional[str] = Field(None, description="Collection color, e.g. '#ff0000'")
    description: Optional[str] = Field(None, description="Collection description")
    public: Optional[bool] = Field(None, description="Make the collection publicly viewable")


class BookmarkSearchInput(_ToolInput):
    search: Optional[str] = Field(None, description="Full-text search query")
    collection: Optional[int] = Field(None, description="Collection ID to search within (0 = all)")
    tags: Optional[list[str]] = Field(None, description="Tags to filter by")
    important: Optional[bool] = Field(None, description="Filter by important bookmarks")
    page: Optional[int] = Field(None, ge=0, description="Page number for pagination")
    perPage: Optional[int] = Field(None, ge=1, le=50, description="Items per page (max 50)")
    sort: Optional[str] = Field(None, description="Sort order (score, title, -created, created)")
    tag: Optional[str] = Field(None, description="Single tag to filter by")
    duplicates: Optional[bool] = Field(None, description="Include duplicate bookmarks")
    broken: Optional[bool] = Field(None, description="Include broken links")
    highlight: Optional[bool] = Field(None, description="Only bookmarks with highlights")
    domain: Optional[str] = Field(None, description="Filter by domain")


class BookmarkManageInput(_ToolInput):
    operation: Literal["create", "update", "delete"] = Field(..., description="Action to perform")
    id: Optional[int] = Field(None, description="Bookmark ID (required for update and delete)")
    collectionId: Optional[int] = Field(None, description="Collection ID (required for create)")
    url: Optional[UrlStr] = Field(None, description="Bookmark URL (required for create)")
    title: Optional[str] = Field(None, description="Bookmark title")
    description: Optional[str] = Field(None, description="Bookmark excerpt")
    tags: Optional[list[str]] = Field(None, description="Tags to set")
    important: Optional[bool] = Field(None, description="Mark as favorite")


class GetRaindropInput(_ToolInput):
    id: str = Field(..., min_length=1, description="Bookmark ID")


class ListRaindropsInput(_ToolInput):
    collectionId: str = Field(..., min_length=1, description="Collection ID")
    limit: Optional[int] = Field(None, ge=1, le=100, description="Maximum number of bookmarks (default 50)")


class CollectionRef(_ToolInput):
    id: int = Field(..., alias="$id")


class BulkEditRaindropsInput(_ToolInput):
    collectionId: int = Field(..., description="Collection to update raindrops in")
    ids: Optional[list[int]] = Field(
        None, description="Raindrop IDs to update. If omitted, all in collection are updated."
    )
    important: Optional[bool] = Field(None, description="Mark as favorite (true/false)")
    tags: Optional[list[str]] = Field(None, description="Tags to set. Empty array removes all tags.")
    media: Optional[list[str]] = Field(None, description="Media URLs to set. Empty array removes all media.")
    cover: Optional[str] = Field(None, description="Cover URL. Use <screenshot> for auto screenshot.")
    collection: Optional[CollectionRef] = Field(None, description="Move to another collection.")
    nested: Optional[bool] = Field(None, description="Include nested collections.")


class TagListInput(_ToolInput):
    collectionId: Optional[int] = Field(None, description="Collection ID. Omit to list all tags.")


class TagManageInput(_ToolInput):
    operation: Literal["rename", "merge", "delete"] = Field(..., description="Action to perform")
    tagNames: Optional[list[str]] = Field(None, description="Tags to rename, merge, or delete")
    newName: Optional[str] = Field(None, description="New tag name (rename and merge)")
    collectionId: Optional[int] = Field(None, description="Limit the operation to one collection")


class HighlightListInput(_ToolInput):
    bookmarkId: Optional[int] = Field(None, description="Only highlights of this bookmark")
    collectionId: Optional[int] = Field(None, description="Only highlights in this collection")
    page: int = Field(0, ge=0, description="Page number")
    perPage: int = Field(25, ge=1, le=50, description="Items per page (max 50)")


class HighlightManageInput(_ToolInput):
    operation: Literal["create", "update", "delete"] = Field(..., description="Action to perform")
    id: Optional[Union[int, str]] = Field(None, description="Highlight ID (required for update and delete)")
    bookmarkId: Optional[int] = Field(None, description="Bookmark ID (required for create)")
    text: Optional[str] = Field(None, description="Highlighted text (required for create)")
    note: Optional[str] = Field(None, description="Note attached to the highlight")
    color: Optional[str] = Field(None, description="Highlight color, e.g. 'yellow'")


class EmptyInput(_ToolInput):
    pass


class ExportBookmarksInput(_ToolInput):
    collectionId: Optional[int] = Field(None, description="Collection to export. Omit for all bookmarks.")
    format: Literal["csv", "html", "pdf"] = Field("csv", description="Export format")
    broken: bool = Field(False, description="Include broken links")
    duplicates: bool = Field(False, description="Include duplicates")
