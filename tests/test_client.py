"""Tests for the Raindrop.io HTTP client using httpx.MockTransport."""
import asyncio
import json

import httpx
import pytest

from raindrop_mcp.client import RaindropClient
from raindrop_mcp.errors import (
    AuthError,
    ConfigurationError,
    ErrorKind,
    NotFoundError,
    RateLimitError,
    UpstreamError,
)

BASE_URL = "https://api.raindrop.io/rest/v1"


def make_client(handler):
    return RaindropClient("test-token", BASE_URL, transport=httpx.MockTransport(handler))


def run(client, method, *args, **kwargs):
    async def go():
        try:
            return await getattr(client, method)(*args, **kwargs)
        finally:
            await client.aclose()

    return asyncio.run(go())


class TestRequests:
    """Test request construction."""

    def test_requires_token(self):
        with pytest.raises(ConfigurationError):
            RaindropClient("")

    def test_bearer_token_sent(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            seen["path"] = request.url.path
            return httpx.Response(200, json={"result": True, "items": [{"_id": 1}]})

        items = run(make_client(handler), "get_collections")
        assert items == [{"_id": 1}]
        assert seen["auth"] == "Bearer test-token"
        assert seen["path"] == "/rest/v1/collections"

    def test_get_bookmarks_query(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"result": True, "items": [], "count": 0})

        result = run(make_client(handler), "get_bookmarks", 42, {"search": "python", "perpage": 10, "page": None})
        assert result == {"items": [], "count": 0}
        assert seen["path"] == "/rest/v1/raindrops/42"
        assert seen["params"] == {"search": "python", "perpage": "10"}

    def test_create_bookmark_body(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"result": True, "item": {"_id": 9}})

        item = run(make_client(handler), "create_bookmark", 42, {"link": "https://example.com"})
        assert item == {"_id": 9}
        assert seen["method"] == "POST"
        assert seen["body"] == {
            "link": "https://example.com",
            "collection": {"$id": 42},
            "pleaseParse": {},
        }

    def test_delete_tags_sends_body(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"result": True})

        assert run(make_client(handler), "delete_tags", 5, ["old"]) is True
        assert seen == {"method": "DELETE", "path": "/rest/v1/tags/5", "body": {"tags": ["old"]}}

    def test_child_collections_filtered_by_parent(self):
        def handler(request):
            return httpx.Response(200, json={"result": True, "items": [
                {"_id": 2, "parent": {"$id": 1}},
                {"_id": 3, "parent": {"$id": 7}},
            ]})

        assert run(make_client(handler), "get_child_collections", 1) == [{"_id": 2, "parent": {"$id": 1}}]

    def test_bookmark_highlights_tagged_with_bookmark(self):
        def handler(request):
            return httpx.Response(200, json={"result": True, "item": {
                "_id": 5, "highlights": [{"_id": "h1", "text": "quote"}],
            }})

        highlights = run(make_client(handler), "get_highlights", 5)
        assert highlights == [{"_id": "h1", "text": "quote", "raindropRef": 5}]


class TestErrorMapping:
    """Test translation of HTTP failures into error kinds."""

    @pytest.mark.parametrize("status,error_cls,kind", [
        (401, AuthError, ErrorKind.AUTH),
        (403, AuthError, ErrorKind.AUTH),
        (404, NotFoundError, ErrorKind.NOT_FOUND),
        (429, RateLimitError, ErrorKind.RATE_LIMITED),
        (500, UpstreamError, ErrorKind.UPSTREAM),
        (400, UpstreamError, ErrorKind.UPSTREAM),
    ])
    def test_status_codes(self, status, error_cls, kind):
        def handler(request):
            return httpx.Response(status, json={"result": False, "errorMessage": "nope"})

        with pytest.raises(error_cls) as exc_info:
            run(make_client(handler), "get_bookmark", 1)
        assert exc_info.value.kind is kind
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)
        assert exc_info.value.message.startswith("Get bookmark")

    def test_client_error_includes_api_message(self):
        def handler(request):
            return httpx.Response(400, json={"result": False, "errorMessage": "bad collection"})

        with pytest.raises(UpstreamError) as exc_info:
            run(make_client(handler), "get_collection", 1)
        assert "bad collection" in exc_info.value.message

    def test_result_false_body(self):
        def handler(request):
            return httpx.Response(200, json={"result": False, "errorMessage": "rejected"})

        with pytest.raises(UpstreamError) as exc_info:
            run(make_client(handler), "get_user_info")
        assert "rejected" in exc_info.value.message

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamError) as exc_info:
            run(make_client(handler), "get_tags")
        assert isinstance(exc_info.value.cause, httpx.ConnectError)
