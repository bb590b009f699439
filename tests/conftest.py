"""Shared fixtures: an in-memory Raindrop.io service and a populated registry."""
import pytest

from raindrop_mcp.registry import ToolContext, ToolRegistry
from raindrop_mcp import resources, tools


def make_bookmark(bookmark_id: int, **overrides) -> dict:
    raw = {
        "_id": bookmark_id,
        "title": f"Bookmark {bookmark_id}",
        "link": f"https://example.com/{bookmark_id}",
        "excerpt": "An example page",
        "tags": ["python"],
        "collection": {"$id": 42},
        "created": "2024-01-01T00:00:00.000Z",
        "lastUpdate": "2024-01-02T00:00:00.000Z",
        "type": "article",
        "important": False,
        "domain": "example.com",
    }
    raw.update(overrides)
    return raw


class FakeRaindropService:
    """Records every call and returns canned Raindrop.io payloads."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.bookmarks = [make_bookmark(i) for i in range(1, 4)]
        self.collections = [
            {"_id": 42, "title": "Reading", "count": 3, "public": False},
            {"_id": 43, "title": "Recipes", "count": 0, "parent": {"$id": 42}},
        ]

    async def get_collections(self):
        self.calls.append(("get_collections",))
        return list(self.collections)

    async def get_child_collections(self, parent_id):
        self.calls.append(("get_child_collections", parent_id))
        return [c for c in self.collections if (c.get("parent") or {}).get("$id") == parent_id]

    async def get_collection(self, collection_id):
        self.calls.append(("get_collection", collection_id))
        return {"_id": collection_id, "title": "Reading", "count": 3}

    async def create_collection(self, title, public=False, parent_id=None):
        self.calls.append(("create_collection", title, public, parent_id))
        return {"_id": 100, "title": title, "count": 0, "public": public}

    async def update_collection(self, collection_id, updates):
        self.calls.append(("update_collection", collection_id, updates))
        return {"_id": collection_id, "count": 3, **updates}

    async def delete_collection(self, collection_id):
        self.calls.append(("delete_collection", collection_id))

    async def get_bookmarks(self, collection_id=0, query=None):
        self.calls.append(("get_bookmarks", collection_id, query))
        return {"items": list(self.bookmarks), "count": len(self.bookmarks)}

    async def get_bookmark(self, bookmark_id):
        self.calls.append(("get_bookmark", bookmark_id))
        return make_bookmark(bookmark_id)

    async def create_bookmark(self, collection_id, payload):
        self.calls.append(("create_bookmark", collection_id, payload))
        return make_bookmark(200, link=payload["link"], title=payload.get("title"),
                             collection={"$id": collection_id})

    async def update_bookmark(self, bookmark_id, payload):
        self.calls.append(("update_bookmark", bookmark_id, payload))
        return make_bookmark(bookmark_id, **{k: v for k, v in payload.items() if k != "collection"})

    async def delete_bookmark(self, bookmark_id):
        self.calls.append(("delete_bookmark", bookmark_id))

    async def bulk_update_bookmarks(self, collection_id, changes):
        self.calls.append(("bulk_update_bookmarks", collection_id, changes))
        return len(changes.get("ids", [])) or 3

    async def get_tags(self, collection_id=None):
        self.calls.append(("get_tags", collection_id))
        return [{"_id": "python", "count": 12}, {"_id": "reading list", "count": 3}]

    async def rename_tag(self, collection_id, old_name, new_name):
        self.calls.append(("rename_tag", collection_id, old_name, new_name))
        return True

    async def merge_tags(self, collection_id, tags, new_name):
        self.calls.append(("merge_tags", collection_id, tags, new_name))
        return True

    async def delete_tags(self, collection_id, tags):
        self.calls.append(("delete_tags", collection_id, tags))
        return True

    async def get_highlights(self, bookmark_id):
        self.calls.append(("get_highlights", bookmark_id))
        return [{"_id": "hl1", "text": "Important sentence", "color": "yellow",
                 "raindropRef": bookmark_id}]

    async def get_all_highlights(self, page=0, per_page=25):
        self.calls.append(("get_all_highlights", page, per_page))
        return [{"_id": "hl2", "text": "Another one", "note": "check this"}]

    async def get_collection_highlights(self, collection_id, page=0, per_page=25):
        self.calls.append(("get_collection_highlights", collection_id, page, per_page))
        return [{"_id": "hl3", "text": "In a collection", "collectionId": collection_id}]

    async def create_highlight(self, bookmark_id, payload):
        self.calls.append(("create_highlight", bookmark_id, payload))
        return {"_id": "hl-new", **payload}

    async def update_highlight(self, highlight_id, payload):
        self.calls.append(("update_highlight", highlight_id, payload))
        return {"_id": highlight_id, "text": "Important sentence", **payload}

    async def delete_highlight(self, highlight_id):
        self.calls.append(("delete_highlight", highlight_id))

    async def get_user_info(self):
        self.calls.append(("get_user_info",))
        return {"_id": 7, "email": "reader@example.com", "fullName": "Reader", "pro": True,
                "registered": "2020-05-01T00:00:00.000Z"}

    async def get_user_stats(self):
        self.calls.append(("get_user_stats",))
        return {
            "items": [{"_id": 0, "count": 120}, {"_id": -1, "count": 8}, {"_id": -99, "count": 2}],
            "meta": {"changedBookmarksDate": "2024-03-01T00:00:00.000Z",
                     "duplicates": {"count": 4}, "broken": {"count": 1}},
        }

    async def get_import_status(self):
        self.calls.append(("get_import_status",))
        return {"status": "in-progress", "progress": 40}

    async def export_bookmarks(self, collection_id, format, broken, duplicates):
        self.calls.append(("export_bookmarks", collection_id, format, broken, duplicates))
        return {"url": "https://raindrop.io/export/abc.csv"}

    async def get_export_status(self):
        self.calls.append(("get_export_status",))
        return {"status": "ready", "url": "https://raindrop.io/export/abc.csv"}


@pytest.fixture
def service():
    return FakeRaindropService()


@pytest.fixture
def context(service):
    return ToolContext(service=service)


@pytest.fixture
def registry(context):
    registry = ToolRegistry(context)
    registry.register(tools.get_tools(), resources.get_resources(), resources.get_resource_templates())
    return registry
