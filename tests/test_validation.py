"""Tests for schema validation, output wrapping and tool metadata."""
import asyncio

import pytest

from raindrop_mcp.errors import ErrorKind, OutputContractError, ValidationError
from raindrop_mcp.schemas import (
    BookmarkListResponse,
    BookmarkResponse,
    CollectionResponse,
    OperationResultListResponse,
    OperationResultResponse,
    StreamingResponse,
)
from raindrop_mcp.validation import (
    build_tool_metadata,
    describe_schema,
    validate,
    wrap_with_validation,
)


BOOKMARK_META = {
    "id": 1,
    "title": "Example",
    "link": "https://example.com",
    "tags": ["a", "b"],
    "type": "link",
    "important": False,
    "category": "bookmark",
}


class TestValidate:
    """Test validate() against registered schemas."""

    def test_conforming_value_round_trips(self):
        """A valid value comes back deep-equal, extra fields included."""
        value = {
            "content": [
                {"type": "text", "text": "hello", "metadata": dict(BOOKMARK_META, custom="x")},
                {
                    "type": "resource_link",
                    "uri": "mcp://raindrop/1",
                    "name": "Example",
                    "description": "https://example.com",
                    "mimeType": "application/json",
                },
            ],
            "metadata": {"total": 2, "page": 0, "extra": True},
        }
        assert validate(value, BookmarkListResponse) == value

    def test_optional_fields_stay_absent(self):
        """Unset optional fields are not filled in with null."""
        value = {"content": [{"type": "text", "text": "hi", "metadata": BOOKMARK_META}]}
        result = validate(value, BookmarkResponse)
        assert "metadata" not in result
        assert "excerpt" not in result["content"][0]["metadata"]

    def test_default_schema_accepts_any_envelope(self):
        """Without a schema the generic tool response union is used."""
        value = {"content": [{"type": "text", "text": "plain"}]}
        assert validate(value) == value

    def test_missing_required_field_lists_violation(self):
        """Violations carry the path of the missing field."""
        value = {"content": [{"type": "text", "text": "x", "metadata": {"id": 1, "title": "t"}}]}
        with pytest.raises(ValidationError) as exc_info:
            validate(value, CollectionResponse)

        assert exc_info.value.kind is ErrorKind.VALIDATION
        paths = [v["path"] for v in exc_info.value.violations]
        assert "content.0.metadata.count" in paths
        assert "content.0.metadata.count" in exc_info.value.message

    def test_wrong_type_reports_actual_type(self):
        """The message names the type that was found."""
        with pytest.raises(ValidationError) as exc_info:
            validate({"content": "not a list"}, OperationResultResponse)
        assert "(got str)" in exc_info.value.message

    def test_operation_list_response(self):
        """Several operation results with list metadata."""
        op = {"success": True, "message": "done", "operation": "delete", "category": "operation"}
        value = {
            "content": [{"type": "text", "text": "ok", "metadata": op}] * 2,
            "metadata": {"total": 2},
        }
        assert validate(value, OperationResultListResponse) == value

    def test_bookmark_type_enum_is_enforced(self):
        """Bookmark type must be one of the known kinds."""
        meta = dict(BOOKMARK_META, type="podcast")
        with pytest.raises(ValidationError):
            validate({"content": [{"type": "text", "text": "x", "metadata": meta}]}, BookmarkResponse)

    def test_streaming_response_requires_flag(self):
        """StreamingResponse metadata must carry streaming: true."""
        chunk = {"type": "text", "text": "part", "metadata": {"chunkIndex": 0, "isComplete": False}}
        assert validate({"content": [chunk], "metadata": {"streaming": True}}, StreamingResponse)
        with pytest.raises(ValidationError):
            validate({"content": [chunk], "metadata": {"streaming": False}}, StreamingResponse)


class TestWrapWithValidation:
    """Test output validation around async handlers."""

    def test_valid_result_passes_through(self):
        """The wrapper returns the handler's (normalized) result."""
        async def handler(arguments, context):
            return {"content": [{"type": "text", "text": "ok"}]}

        wrapped = wrap_with_validation(handler, None)
        assert asyncio.run(wrapped({}, None)) == {"content": [{"type": "text", "text": "ok"}]}

    def test_malformed_result_raises_contract_error(self):
        """A handler violating its schema raises OutputContractError."""
        async def handler(arguments, context):
            return {"content": [{"type": "text", "text": "missing metadata"}]}

        wrapped = wrap_with_validation(handler, OperationResultResponse)
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(wrapped({}, None))

        assert isinstance(exc_info.value, OutputContractError)
        assert exc_info.value.kind is ErrorKind.CONTRACT
        assert not exc_info.value.is_caller_error

    def test_handler_errors_propagate_unchanged(self):
        """Exceptions from the handler itself are not wrapped."""
        async def handler(arguments, context):
            raise ValidationError("title is required for create")

        wrapped = wrap_with_validation(handler, OperationResultResponse)
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(wrapped({}, None))
        assert not isinstance(exc_info.value, OutputContractError)

    def test_wrapper_keeps_handler_name(self):
        async def handle_something(arguments, context):
            return {"content": []}

        assert wrap_with_validation(handle_something, None).__name__ == "handle_something"


class TestToolMetadata:
    """Test build_tool_metadata and describe_schema."""

    def test_bookmark_list_metadata(self):
        """Metadata names the category and describes a content array."""
        metadata = build_tool_metadata(BookmarkListResponse, "bookmarks")
        assert metadata["category"] == "bookmarks"
        assert metadata["hasValidation"] is True
        assert metadata["outputSchema"]["properties"]["content"]["type"] == "array"
        assert metadata["outputSchema"]["title"] == "bookmarksOutput"
        assert "streaming" not in metadata

    def test_metadata_is_pure(self):
        """Repeated calls are equal and do not share mutable state."""
        first = build_tool_metadata(BookmarkListResponse, "bookmarks")
        first["outputSchema"]["properties"].clear()
        second = build_tool_metadata(BookmarkListResponse, "bookmarks")
        assert second["outputSchema"]["properties"]["content"]["type"] == "array"
        assert second == build_tool_metadata(BookmarkListResponse, "bookmarks")

    def test_streaming_metadata_embeds_chunk_schema(self):
        metadata = build_tool_metadata(BookmarkListResponse, "bookmarks", streaming=True)
        assert metadata["streaming"]["supported"] is True
        chunk_schema = metadata["streaming"]["chunkSchema"]
        assert "metadata" in chunk_schema["properties"]
        assert "chunkIndex" in chunk_schema["$defs"]["StreamingChunkMetadata"]["properties"]

    def test_describe_schema_returns_copies(self):
        schema = describe_schema(CollectionResponse)
        schema["mutated"] = True
        assert "mutated" not in describe_schema(CollectionResponse)
