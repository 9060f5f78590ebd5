"""Object storage client for the Supabase Storage REST API.

Objects live in a single public bucket (``media`` by default) under
``{company_id}/{category}/{uuid}.{ext}``.
"""

import logging
from typing import Optional

import httpx

from roma_crm.app.config import get_settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Non-2xx response or transport failure from object storage."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StorageClient:
    """Upload, delete and address objects in one storage bucket."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        bucket: str = "media",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._service_key = service_key
        self.bucket = bucket
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "StorageClient":
        settings = get_settings()
        return cls(
            base_url=settings.supabase_url,
            service_key=settings.supabase_service_key,
            bucket=settings.storage_bucket,
            timeout=settings.webflow_timeout_seconds,
        )

    # ------------------------------------------------------------------
    # Addressing
    # ------------------------------------------------------------------

    @property
    def public_prefix(self) -> str:
        return f"{self._base_url}/storage/v1/object/public/{self.bucket}/"

    def public_url(self, path: str) -> str:
        """Public URL for an object *path* inside the bucket."""
        return self.public_prefix + path.lstrip("/")

    def owns(self, url: Optional[str]) -> bool:
        """True when *url* already points into this bucket."""
        return bool(url) and url.startswith(self.public_prefix)

    def path_for(self, url: str) -> Optional[str]:
        if not self.owns(url):
            return None
        return url[len(self.public_prefix):]

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            headers={
                "Authorization": f"Bearer {self._service_key}",
                "apikey": self._service_key,
            },
            transport=self._transport,
        )

    async def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Upload *content* to *path* (overwriting) and return its public URL.

        Raises:
            StorageError: on any non-2xx response or transport failure.
        """
        url = f"{self._base_url}/storage/v1/object/{self.bucket}/{path.lstrip('/')}"
        try:
            async with self._client() as client:
                resp = await client.post(
                    url,
                    content=content,
                    headers={"Content-Type": content_type, "x-upsert": "true"},
                )
        except httpx.RequestError as exc:
            raise StorageError(f"Storage upload failed: {exc}") from exc

        if resp.status_code >= 400:
            raise StorageError(
                f"Storage upload failed ({resp.status_code}): {resp.text[:200]}",
                status_code=resp.status_code,
            )

        logger.info("Uploaded %d bytes to %s/%s", len(content), self.bucket, path)
        return self.public_url(path)

    async def remove(self, paths: list[str]) -> None:
        """Delete objects by path.

        Raises:
            StorageError: on any non-2xx response or transport failure.
        """
        if not paths:
            return
        url = f"{self._base_url}/storage/v1/object/{self.bucket}"
        try:
            async with self._client() as client:
                resp = await client.request("DELETE", url, json={"prefixes": paths})
        except httpx.RequestError as exc:
            raise StorageError(f"Storage delete failed: {exc}") from exc

        if resp.status_code >= 400:
            raise StorageError(
                f"Storage delete failed ({resp.status_code}): {resp.text[:200]}",
                status_code=resp.status_code,
            )
