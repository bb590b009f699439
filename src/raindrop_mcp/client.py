"""Async HTTP client for the Raindrop.io REST API.

Every method returns the raw API payload (``item``, ``items`` or the
whole body, depending on the endpoint). HTTP and network failures are
translated into the error taxonomy in ``errors``.
"""
import logging
from typing import Any, Optional, Protocol

import httpx

from .config import DEFAULT_API_BASE_URL, Settings
from .errors import (
    AuthError,
    ConfigurationError,
    NotFoundError,
    RaindropMCPError,
    RateLimitError,
    UpstreamError,
)

logger = logging.getLogger("raindrop-mcp.client")


class RaindropService(Protocol):
    """Operations the tool handlers need from Raindrop.io."""

    async def get_collections(self) -> list[dict]: ...
    async def get_child_collections(self, parent_id: int) -> list[dict]: ...
    async def get_collection(self, collection_id: int) -> dict: ...
    async def create_collection(self, title: str, public: bool = False, parent_id: Optional[int] = None) -> dict: ...
    async def update_collection(self, collection_id: int, updates: dict) -> dict: ...
    async def delete_collection(self, collection_id: int) -> None: ...
    async def get_bookmarks(self, collection_id: int = 0, query: Optional[dict] = None) -> dict: ...
    async def get_bookmark(self, bookmark_id: int) -> dict: ...
    async def create_bookmark(self, collection_id: int, payload: dict) -> dict: ...
    async def update_bookmark(self, bookmark_id: int, payload: dict) -> dict: ...
    async def delete_bookmark(self, bookmark_id: int) -> None: ...
    async def bulk_update_bookmarks(self, collection_id: int, changes: dict) -> Optional[int]: ...
    async def get_tags(self, collection_id: Optional[int] = None) -> list[dict]: ...
    async def rename_tag(self, collection_id: Optional[int], old_name: str, new_name: str) -> bool: ...
    async def merge_tags(self, collection_id: Optional[int], tags: list[str], new_name: str) -> bool: ...
    async def delete_tags(self, collection_id: Optional[int], tags: list[str]) -> bool: ...
    async def get_highlights(self, bookmark_id: int) -> list[dict]: ...
    async def get_all_highlights(self, page: int = 0, per_page: int = 25) -> list[dict]: ...
    async def get_collection_highlights(self, collection_id: int, page: int = 0, per_page: int = 25) -> list[dict]: ...
    async def create_highlight(self, bookmark_id: int, payload: dict) -> dict: ...
    async def update_highlight(self, highlight_id: Any, payload: dict) -> dict: ...
    async def delete_highlight(self, highlight_id: Any) -> None: ...
    async def get_user_info(self) -> dict: ...
    async def get_user_stats(self) -> dict: ...
    async def get_import_status(self) -> dict: ...
    async def export_bookmarks(self, collection_id: Optional[int], format: str, broken: bool, duplicates: bool) -> dict: ...
    async def get_export_status(self) -> dict: ...


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("errorMessage") or body.get("error") or body)
    return str(body)


def _status_error(operation: str, exc: httpx.HTTPStatusError) -> RaindropMCPError:
    status = exc.response.status_code
    if status in (401, 403):
        return AuthError(
            f"{operation}: Unauthorized ({status}). Check RAINDROP_ACCESS_TOKEN.", cause=exc
        )
    if status == 404:
        return NotFoundError(f"{operation}: Resource not found (404).", cause=exc)
    if status == 429:
        return RateLimitError(f"{operation}: Rate limited by Raindrop.io (429). Try again later.", cause=exc)
    if status >= 500:
        return UpstreamError(f"{operation}: Raindrop.io server error ({status}).", cause=exc)
    return UpstreamError(f"{operation}: {_error_detail(exc.response)} ({status})", cause=exc)


class RaindropClient:
    """RaindropService backed by httpx.AsyncClient."""

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not token:
            raise ConfigurationError("RAINDROP_ACCESS_TOKEN is required")
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {token}"},
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "RaindropClient":
        return cls(settings.access_token, settings.api_base_url, settings.http_timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> dict:
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = await self._client.request(method, path, params=params, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"{operation} failed: {method} {path} -> {e.response.status_code}")
            raise _status_error(operation, e) from e
        except httpx.RequestError as e:
            logger.error(f"{operation} failed: {method} {path} -> {e!r}")
            raise UpstreamError(f"{operation}: connection to Raindrop.io failed ({e})", cause=e) from e

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(f"{operation}: invalid JSON in Raindrop.io response", cause=e) from e
        if not isinstance(data, dict):
            raise UpstreamError(f"{operation}: unexpected Raindrop.io response")
        if data.get("result") is False:
            detail = data.get("errorMessage") or data.get("error") or "request rejected"
            raise UpstreamError(f"{operation}: {detail}")
        return data

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    async def get_collections(self) -> list[dict]:
        data = await self._request("GET", "/collections", "Get collections")
        return data.get("items", [])

    async def get_child_collections(self, parent_id: int) -> list[dict]:
        data = await self._request("GET", "/collections/childrens", "Get child collections")
        return [
            item for item in data.get("items", [])
            if (item.get("parent") or {}).get("$id") == parent_id
        ]

    async def get_collection(self, collection_id: int) -> dict:
        data = await self._request("GET", f"/collection/{collection_id}", "Get collection")
        return data.get("item", {})

    async def create_collection(
        self, title: str, public: bool = False, parent_id: Optional[int] = None
    ) -> dict:
        payload: dict[str, Any] = {"title": title, "public": public}
        if parent_id is not None:
            payload["parent"] = {"$id": parent_id}
        data = await self._request("POST", "/collection", "Create collection", json=payload)
        return data.get("item", {})

    async def update_collection(self, collection_id: int, updates: dict) -> dict:
        data = await self._request(
            "PUT", f"/collection/{collection_id}", "Update collection", json=updates
        )
        return data.get("item", {})

    async def delete_collection(self, collection_id: int) -> None:
        await self._request("DELETE", f"/collection/{collection_id}", "Delete collection")

    # ------------------------------------------------------------------
    # Raindrops (bookmarks)
    # ------------------------------------------------------------------

    async def get_bookmarks(self, collection_id: int = 0, query: Optional[dict] = None) -> dict:
        """Search or list bookmarks. Returns ``{"items": [...], "count": n}``."""
        data = await self._request(
            "GET", f"/raindrops/{collection_id}", "Get bookmarks", params=dict(query or {})
        )
        items = data.get("items", [])
        return {"items": items, "count": data.get("count", len(items))}

    async def get_bookmark(self, bookmark_id: int) -> dict:
        data = await self._request("GET", f"/raindrop/{bookmark_id}", "Get bookmark")
        return data.get("item", {})

    async def create_bookmark(self, collection_id: int, payload: dict) -> dict:
        body = {**payload, "collection": {"$id": collection_id}, "pleaseParse": {}}
        data = await self._request("POST", "/raindrop", "Create bookmark", json=body)
        return data.get("item", {})

    async def update_bookmark(self, bookmark_id: int, payload: dict) -> dict:
        data = await self._request("PUT", f"/raindrop/{bookmark_id}", "Update bookmark", json=payload)
        return data.get("item", {})

    async def delete_bookmark(self, bookmark_id: int) -> None:
        await self._request("DELETE", f"/raindrop/{bookmark_id}", "Delete bookmark")

    async def bulk_update_bookmarks(self, collection_id: int, changes: dict) -> Optional[int]:
        data = await self._request(
            "PUT", f"/raindrops/{collection_id}", "Bulk edit bookmarks", json=changes
        )
        return data.get("modified")

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    async def get_tags(self, collection_id: Optional[int] = None) -> list[dict]:
        path = f"/tags/{collection_id}" if collection_id is not None else "/tags/0"
        data = await self._request("GET", path, "Get tags")
        return data.get("items", [])

    def _tags_path(self, collection_id: Optional[int]) -> str:
        return f"/tags/{collection_id}" if collection_id is not None else "/tags"

    async def rename_tag(self, collection_id: Optional[int], old_name: str, new_name: str) -> bool:
        data = await self._request(
            "PUT", self._tags_path(collection_id), "Rename tag",
            json={"replace": new_name, "tags": [old_name]},
        )
        return bool(data.get("result", True))

    async def merge_tags(self, collection_id: Optional[int], tags: list[str], new_name: str) -> bool:
        data = await self._request(
            "PUT", self._tags_path(collection_id), "Merge tags",
            json={"replace": new_name, "tags": list(tags)},
        )
        return bool(data.get("result", True))

    async def delete_tags(self, collection_id: Optional[int], tags: list[str]) -> bool:
        data = await self._request(
            "DELETE", self._tags_path(collection_id), "Delete tags", json={"tags": list(tags)}
        )
        return bool(data.get("result", True))

    # ------------------------------------------------------------------
    # Highlights
    # ------------------------------------------------------------------

    async def get_highlights(self, bookmark_id: int) -> list[dict]:
        """Highlights of one bookmark; each is tagged with the bookmark id."""
        item = await self.get_bookmark(bookmark_id)
        return [{**hl, "raindropRef": bookmark_id} for hl in item.get("highlights") or []]

    async def get_all_highlights(self, page: int = 0, per_page: int = 25) -> list[dict]:
        data = await self._request(
            "GET", "/highlights", "Get highlights", params={"page": page, "perpage": per_page}
        )
        return data.get("items", [])

    async def get_collection_highlights(
        self, collection_id: int, page: int = 0, per_page: int = 25
    ) -> list[dict]:
        data = await self._request(
            "GET", f"/highlights/{collection_id}", "Get collection highlights",
            params={"page": page, "perpage": per_page},
        )
        return data.get("items", [])

    async def create_highlight(self, bookmark_id: int, payload: dict) -> dict:
        body = {**payload, "raindrop": {"$id": bookmark_id}}
        data = await self._request("POST", "/highlights", "Create highlight", json=body)
        return data.get("item", {})

    async def update_highlight(self, highlight_id: Any, payload: dict) -> dict:
        data = await self._request(
            "PUT", f"/highlights/{highlight_id}", "Update highlight", json=payload
        )
        return data.get("item", {})

    async def delete_highlight(self, highlight_id: Any) -> None:
        await self._request("DELETE", f"/highlights/{highlight_id}", "Delete highlight")

    # ------------------------------------------------------------------
    # User, import and export
    # ------------------------------------------------------------------

    async def get_user_info(self) -> dict:
        data = await self._request("GET", "/user", "Get user")
        return data.get("user", {})

    async def get_user_stats(self) -> dict:
        data = await self._request("GET", "/user/stats", "Get user stats")
        return {"items": data.get("items", []), "meta": data.get("meta", {})}

    async def get_import_status(self) -> dict:
        return await self._request("GET", "/import/status", "Get import status")

    async def export_bookmarks(
        self,
        collection_id: Optional[int] = None,
        format: str = "csv",
        broken: bool = False,
        duplicates: bool = False,
    ) -> dict:
        body: dict[str, Any] = {"format": format, "broken": broken, "duplicates": duplicates}
        if collection_id is not None:
            body["collectionId"] = collection_id
        return await self._request("POST", "/export", "Export bookmarks", json=body)

    async def get_export_status(self) -> dict:
        return await self._request("GET", "/export/status", "Get export status")
