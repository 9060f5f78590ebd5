"""Re-host externally referenced images in owned object storage.

Intake documents link images on the client's own website, directories
and social platforms. Many of those hosts block hotlinking, so a direct
fetch is attempted first with browser-like headers and, failing that,
once more through a public image proxy. When neither works the original
URL is kept: a working external link beats a broken local copy.
"""

import logging
import mimetypes
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, urlparse

import httpx

from roma_crm.app.config import get_settings
from roma_crm.domain.enums import OutcomeStatus
from roma_crm.infra.storage_client import StorageClient, StorageError

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "image/avif,image/webp,image/apng,image/*,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    "image/avif": "avif",
}


@dataclass(frozen=True)
class RelocationResult:
    """Outcome of a relocation attempt.

    ``url`` is always usable: the owned public URL on success/degraded,
    the untouched source URL on failure.
    """

    status: OutcomeStatus
    url: str
    storage_path: Optional[str] = None
    content_type: Optional[str] = None
    size: Optional[int] = None
    error: Optional[str] = None

    @property
    def relocated(self) -> bool:
        return self.status != OutcomeStatus.FAILED


@dataclass(frozen=True)
class _Fetched:
    content: bytes
    content_type: str


def referer_for(url: str) -> str:
    """Origin of *url* with a trailing slash, used as the ``Referer``."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}/"


def strip_protocol(url: str) -> str:
    for prefix in ("https://", "http://"):
        if url.lower().startswith(prefix):
            return url[len(prefix):]
    return url


def extension_for(content_type: str, source_url: str) -> str:
    """File extension from the response type, falling back to the URL path."""
    ext = _EXTENSIONS.get(content_type.split(";")[0].strip().lower())
    if ext:
        return ext
    guessed, _ = mimetypes.guess_type(urlparse(source_url).path)
    if guessed and guessed in _EXTENSIONS:
        return _EXTENSIONS[guessed]
    return "jpg"


class AssetRelocator:
    """Copies remote images into ``{company_id}/{destination_name}.{ext}``."""

    def __init__(
        self,
        storage: StorageClient,
        proxy_url: str = "https://images.weserv.nl/",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._storage = storage
        self._proxy_url = proxy_url
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "AssetRelocator":
        settings = get_settings()
        return cls(
            storage=StorageClient.from_settings(),
            proxy_url=settings.image_proxy_url,
            timeout=settings.asset_fetch_timeout_seconds,
        )

    def proxy_url_for(self, source_url: str) -> str:
        return f"{self._proxy_url}?url={quote(strip_protocol(source_url), safe='/')}"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def relocate(
        self, source_url: str, destination_name: str, company_id: str
    ) -> RelocationResult:
        """Copy *source_url* into owned storage.

        Args:
            source_url: External image URL from the intake document.
            destination_name: Object name relative to the company folder,
                without extension (e.g. ``photo/<uuid>``).
            company_id: Owning company; first path segment in the bucket.

        Returns:
            A ``RelocationResult``. Never raises for network or storage
            failures.
        """
        if self._storage.owns(source_url):
            return RelocationResult(
                status=OutcomeStatus.SUCCESS,
                url=source_url,
                storage_path=self._storage.path_for(source_url),
            )

        try:
            referer = referer_for(source_url)
        except ValueError as exc:
            logger.warning("Malformed image URL %s, keeping original: %s", source_url, exc)
            return RelocationResult(status=OutcomeStatus.FAILED, url=source_url, error=str(exc))

        status = OutcomeStatus.SUCCESS
        direct_headers = {**BROWSER_HEADERS, "Referer": referer}
        fetched = await self._fetch(source_url, headers=direct_headers)
        if fetched is None:
            logger.info("Direct fetch blocked for %s, retrying through proxy", source_url)
            status = OutcomeStatus.DEGRADED
            fetched = await self._fetch(self.proxy_url_for(source_url), headers=BROWSER_HEADERS)

        if fetched is None:
            logger.warning("Could not relocate %s, keeping original URL", source_url)
            return RelocationResult(
                status=OutcomeStatus.FAILED,
                url=source_url,
                error="Direct and proxy fetch both failed",
            )

        ext = extension_for(fetched.content_type, source_url)
        path = f"{company_id}/{destination_name}.{ext}"
        try:
            public_url = await self._storage.upload(path, fetched.content, fetched.content_type)
        except StorageError as exc:
            logger.warning("Upload of %s failed, keeping original URL: %s", source_url, exc)
            return RelocationResult(status=OutcomeStatus.FAILED, url=source_url, error=str(exc))

        return RelocationResult(
            status=status,
            url=public_url,
            storage_path=path,
            content_type=fetched.content_type,
            size=len(fetched.content),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _fetch(self, url: str, headers: dict) -> Optional[_Fetched]:
        """GET *url* and return its bytes when it is a non-empty image."""
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                resp = await client.get(url, headers=headers)
        except (httpx.RequestError, httpx.InvalidURL, ValueError) as exc:
            logger.debug("Fetch of %s failed: %s", url, exc)
            return None

        if resp.status_code >= 400:
            logger.debug("Fetch of %s returned %d", url, resp.status_code)
            return None

        content_type = resp.headers.get("content-type", "")
        if not content_type.lower().startswith("image/") or not resp.content:
            logger.debug("Fetch of %s returned non-image content (%s)", url, content_type)
            return None

        return _Fetched(content=resp.content, content_type=content_type.split(";")[0].strip())
