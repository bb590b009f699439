"""Tests for response mappers and content builders."""
import json

import pytest

from raindrop_mcp import formatters


class TestMappers:
    """Test mapping of raw Raindrop.io objects."""

    def test_map_bookmark_flattens_references(self):
        raw = {
            "_id": 5,
            "title": "Docs",
            "link": "https://docs.python.org",
            "tags": ["python"],
            "collection": {"$id": 42},
            "type": "article",
            "important": True,
        }
        mapped = formatters.map_bookmark(raw)
        assert mapped["id"] == 5
        assert mapped["collectionId"] == 42
        assert mapped["important"] is True
        assert mapped["category"] == "bookmark"

    def test_missing_optional_fields_are_absent(self):
        """Optional fields the API omits are not set to None."""
        mapped = formatters.map_bookmark({"_id": 1, "link": "https://a.b"})
        assert "excerpt" not in mapped
        assert "collectionId" not in mapped
        assert mapped["tags"] == []
        assert mapped["type"] == "link"

    def test_map_collection_parent(self):
        mapped = formatters.map_collection({"_id": 3, "title": "Sub", "count": 2, "parent": {"$id": 1}})
        assert mapped["parentId"] == 1
        assert "description" not in mapped

    def test_map_highlight_bookmark_reference(self):
        mapped = formatters.map_highlight({"_id": "h1", "text": "quote", "raindrop": {"_id": 9}})
        assert mapped["bookmarkId"] == 9
        assert formatters.map_highlight({"_id": "h2", "text": "q"}, bookmark_id=4)["bookmarkId"] == 4

    def test_map_tag(self):
        assert formatters.map_tag({"_id": "python", "count": 3}) == {
            "name": "python", "count": 3, "category": "tag"
        }

    def test_map_stats_system_collections(self):
        raw = {
            "items": [{"_id": 0, "count": 10}, {"_id": -1, "count": 2}, {"_id": -99, "count": 1}],
            "meta": {"duplicates": {"count": 3}},
        }
        mapped = formatters.map_stats(raw)
        assert mapped["count"] == 10
        assert mapped["unsorted"] == 2
        assert mapped["trash"] == 1
        assert mapped["duplicates"] == 3
        assert "broken" not in mapped

    def test_export_status_ready_when_url_present(self):
        mapped = formatters.map_export_status({"url": "https://x/y.csv"})
        assert mapped["status"] == "ready"
        assert mapped["category"] == "export"

    def test_list_mapper_rejects_non_list(self):
        """List mappers raise a descriptive TypeError."""
        with pytest.raises(TypeError) as exc_info:
            formatters.map_bookmarks({"items": []})
        assert "list of bookmarks" in str(exc_info.value)

    def test_mapper_rejects_non_dict(self):
        with pytest.raises(TypeError):
            formatters.map_collection(None)


class TestBuilders:
    """Test content item builders."""

    def test_text_item_without_metadata(self):
        assert formatters.text_item("hi") == {"type": "text", "text": "hi"}

    def test_bookmark_link_points_at_resource(self):
        bookmark = formatters.map_bookmark({"_id": 7, "title": "T", "link": "https://t.co"})
        link = formatters.bookmark_link(bookmark)
        assert link["type"] == "resource_link"
        assert link["uri"] == "mcp://raindrop/7"
        assert link["name"] == "T"
        assert link["mimeType"] == "application/json"

    def test_collection_link_description_falls_back_to_count(self):
        link = formatters.collection_link({"id": 1, "title": "Reading", "count": 4})
        assert link["uri"] == "mcp://collection/1"
        assert link["description"] == "4 bookmarks"

    def test_bookmark_resource_embeds_json(self):
        bookmark = formatters.map_bookmark({"_id": 7, "link": "https://t.co"})
        item = formatters.bookmark_resource(bookmark)
        assert item["type"] == "resource"
        assert json.loads(item["resource"]["text"])["id"] == 7
        assert item["resource"]["metadata"] == bookmark

    def test_operation_item(self):
        item = formatters.operation_item("delete", "Deleted bookmark 3", affected_count=1)
        assert item["metadata"]["success"] is True
        assert item["metadata"]["affectedCount"] == 1
        assert item["text"] == "[OK] Deleted bookmark 3 (1 affected)"

    def test_envelope_omits_empty_metadata(self):
        assert formatters.envelope([]) == {"content": []}
