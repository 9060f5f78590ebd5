"""Thin async client for the Webflow Data API v2 (CMS collections).

Only the collection item endpoints the publish pipeline needs are
wrapped. Every non-2xx response raises :class:`WebflowApiError` carrying
the status code and the decoded error payload.
"""

import logging
from typing import Any, AsyncIterator, Optional

import httpx

from roma_crm.app.config import get_settings

logger = logging.getLogger(__name__)

_PAGE_SIZE = 100


class WebflowApiError(Exception):
    """Non-2xx response (or transport failure) from the Webflow API."""

    def __init__(self, message: str, status_code: int = 500, payload: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}

    @property
    def is_slug_conflict(self) -> bool:
        """True for a validation error whose details name the ``slug`` field."""
        if self.status_code not in (400, 409):
            return False
        details = self.payload.get("details") or []
        for detail in details:
            if isinstance(detail, dict) and detail.get("param") in ("slug", "fieldData.slug"):
                return True
        message = str(self.payload.get("message", "")).lower()
        return "slug" in message and "already" in message


class WebflowClient:
    """Collection-scoped item operations against the Webflow CMS."""

    def __init__(
        self,
        api_token: str,
        base_url: str = "https://api.webflow.com/v2",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_token = api_token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "WebflowClient":
        settings = get_settings()
        return cls(
            api_token=settings.webflow_api_token,
            base_url=settings.webflow_api_base,
            timeout=settings.webflow_timeout_seconds,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> dict:
        url = f"{self._base_url}{path}"
        headers = {
            "Authorization": f"Bearer {self._api_token}",
            "accept": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.request(method, url, json=json, params=params, headers=headers)
        except httpx.RequestError as exc:
            logger.warning("Webflow %s %s request failed: %s", method, path, exc)
            raise WebflowApiError(f"Webflow request failed: {exc}", status_code=502) from exc

        if resp.status_code >= 400:
            try:
                payload = resp.json()
            except ValueError:
                payload = {"message": resp.text[:500]}
            if not isinstance(payload, dict):
                payload = {"message": str(payload)}
            message = payload.get("message") or resp.reason_phrase or "Webflow API error"
            logger.warning(
                "Webflow %s %s returned %d: %s", method, path, resp.status_code, payload
            )
            raise WebflowApiError(message, status_code=resp.status_code, payload=payload)

        if resp.status_code == 204 or not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            logger.warning("Webflow %s %s returned a non-JSON body", method, path)
            raise WebflowApiError("Webflow returned an invalid response", status_code=502) from exc

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    async def get_collection(self, collection_id: str) -> dict:
        return await self._request("GET", f"/collections/{collection_id}")

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    async def list_items(
        self,
        collection_id: str,
        offset: int = 0,
        limit: int = _PAGE_SIZE,
        slug: Optional[str] = None,
    ) -> dict:
        params: dict[str, Any] = {"offset": offset, "limit": limit}
        if slug:
            params["slug"] = slug
        return await self._request("GET", f"/collections/{collection_id}/items", params=params)

    async def iter_items(self, collection_id: str) -> AsyncIterator[dict]:
        """Yield every item in a collection, following offset pagination."""
        offset = 0
        while True:
            page = await self.list_items(collection_id, offset=offset)
            items = page.get("items") or []
            for item in items:
                yield item
            total = (page.get("pagination") or {}).get("total", 0)
            offset += len(items)
            if not items or offset >= total:
                break

    async def find_item_by_slug(self, collection_id: str, slug: str) -> Optional[dict]:
        """Return the item whose ``fieldData.slug`` equals *slug*, if any."""
        page = await self.list_items(collection_id, slug=slug)
        for item in page.get("items") or []:
            if (item.get("fieldData") or {}).get("slug") == slug:
                return item
        return None

    async def get_item(self, collection_id: str, item_id: str) -> dict:
        return await self._request("GET", f"/collections/{collection_id}/items/{item_id}")

    async def create_item(self, collection_id: str, field_data: dict) -> dict:
        return await self._request(
            "POST",
            f"/collections/{collection_id}/items",
            json={"isArchived": False, "isDraft": False, "fieldData": field_data},
        )

    async def update_item(self, collection_id: str, item_id: str, field_data: dict) -> dict:
        return await self._request(
            "PATCH",
            f"/collections/{collection_id}/items/{item_id}",
            json={"isArchived": False, "isDraft": False, "fieldData": field_data},
        )

    async def publish_items(self, collection_id: str, item_ids: list[str]) -> dict:
        return await self._request(
            "POST",
            f"/collections/{collection_id}/items/publish",
            json={"itemIds": item_ids},
        )
