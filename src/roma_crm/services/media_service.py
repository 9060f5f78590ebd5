"""Media library operations for a company.

Keeps ``Company.logo_url`` in step with the media library: an item
tagged ``logo`` (any case) with status ``active`` is the company logo.
The mirror is applied on the same session as the media change so both
land in one commit.
"""

import logging
import mimetypes
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roma_crm.domain.enums import MediaCategory, MediaStatus
from roma_crm.domain.models import Company, MediaItem
from roma_crm.infra.storage_client import StorageClient, StorageError

logger = logging.getLogger(__name__)


def is_logo_tagged(tags: Optional[list]) -> bool:
    return any(isinstance(t, str) and t.strip().lower() == "logo" for t in tags or [])


def apply_logo_mirror(company: Company, item: MediaItem) -> bool:
    """Copy *item*'s URL onto ``company.logo_url`` when it is the active logo.

    Returns True when the company row was changed.
    """
    if item.status != MediaStatus.ACTIVE.value or not is_logo_tagged(item.tags):
        return False
    if company.logo_url == item.file_url:
        return False
    company.logo_url = item.file_url
    logger.info("Company %s logo set from media item %s", company.id, item.id)
    return True


class MediaService:
    """List, upload, update and delete a company's media items."""

    def __init__(self, db: AsyncSession, storage: Optional[StorageClient] = None):
        self.db = db
        self.storage = storage or StorageClient.from_settings()

    async def list_media(
        self,
        company_id: str,
        category: Optional[str] = None,
        include_eyes_content: bool = True,
    ) -> list[MediaItem]:
        stmt = select(MediaItem).where(MediaItem.company_id == company_id)
        if category:
            stmt = stmt.where(MediaItem.category == category)
        if not include_eyes_content:
            stmt = stmt.where(MediaItem.category != MediaCategory.EYES_CONTENT.value)
        stmt = stmt.order_by(MediaItem.priority.desc(), MediaItem.created_at)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_for_organization(self, media_id: str, organization_id: str) -> Optional[MediaItem]:
        """Load a media item only if its company belongs to *organization_id*."""
        stmt = (
            select(MediaItem)
            .join(Company, Company.id == MediaItem.company_id)
            .where(MediaItem.id == media_id, Company.organization_id == organization_id)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def upload_media(
        self,
        company: Company,
        content: bytes,
        file_name: str,
        content_type: Optional[str],
        category: MediaCategory = MediaCategory.PHOTO,
        uploaded_by_type: str = "staff",
    ) -> MediaItem:
        """Store an uploaded file and create its ``pending`` media row.

        Raises:
            ValueError: when the file is empty.
            StorageError: when the upload is rejected by storage.
        """
        if not content:
            raise ValueError("Uploaded file is empty")

        content_type = content_type or mimetypes.guess_type(file_name)[0] or "application/octet-stream"
        ext = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else "bin"
        path = f"{company.id}/{category.value}/{uuid.uuid4()}.{ext}"
        file_url = await self.storage.upload(path, content, content_type)

        item = MediaItem(
            company_id=company.id,
            organization_id=company.organization_id,
            file_name=file_name,
            file_url=file_url,
            storage_path=path,
            file_type="video" if content_type.startswith("video/") else "image",
            mime_type=content_type,
            file_size=len(content),
            category=category.value,
            tags=["logo"] if category == MediaCategory.LOGO else [],
            status=MediaStatus.PENDING.value,
            uploaded_by_type=uploaded_by_type,
        )
        self.db.add(item)
        await self.db.commit()
        await self.db.refresh(item)
        return item

    async def update_media(
        self,
        item: MediaItem,
        status: Optional[MediaStatus] = None,
        tags: Optional[list[str]] = None,
        priority: Optional[int] = None,
        alt_text: Optional[str] = None,
    ) -> MediaItem:
        """Apply changes and maintain the company logo mirror in one commit."""
        if status is not None:
            item.status = status.value
        if tags is not None:
            item.tags = [t.strip() for t in tags if t and t.strip()]
        if priority is not None:
            item.priority = priority
        if alt_text is not None:
            item.alt_text = alt_text

        company = await self.db.get(Company, item.company_id)
        if company is not None:
            apply_logo_mirror(company, item)

        await self.db.commit()
        await self.db.refresh(item)
        return item

    async def delete_media(self, item: MediaItem) -> None:
        """Delete the row; the storage object is removed best-effort."""
        if item.storage_path:
            try:
                await self.storage.remove([item.storage_path])
            except StorageError as exc:
                logger.warning("Could not remove %s from storage: %s", item.storage_path, exc)

        company = await self.db.get(Company, item.company_id)
        if company is not None and company.logo_url == item.file_url:
            company.logo_url = None

        await self.db.delete(item)
        await self.db.commit()
