"""Media library routes: list, upload, tag and delete company media."""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from roma_crm.app.routes.auth import get_current_user_dep, get_owned_company
from roma_crm.domain.enums import MediaCategory
from roma_crm.domain.models import User
from roma_crm.domain.schemas import MediaItemResponse, MediaItemUpdate
from roma_crm.infra.database import get_db
from roma_crm.infra.storage_client import StorageClient
from roma_crm.services.media_service import MediaService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/media", tags=["media"])


def get_storage_client() -> StorageClient:
    return StorageClient.from_settings()


@router.get("", response_model=list[MediaItemResponse])
async def list_media(
    company_id: str = Query(...),
    category: MediaCategory | None = Query(None),
    exclude_eyes_content: bool = Query(False),
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage_client),
):
    company = await get_owned_company(db, company_id, user)
    svc = MediaService(db, storage)
    return await svc.list_media(
        company.id,
        category=category.value if category else None,
        include_eyes_content=not exclude_eyes_content,
    )


@router.post("/upload", response_model=MediaItemResponse, status_code=201)
async def upload_media(
    company_id: str = Form(...),
    category: MediaCategory = Form(MediaCategory.PHOTO),
    file: UploadFile = File(...),
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage_client),
):
    """Upload a file into ``{company_id}/{category}/`` as a pending media item."""
    company = await get_owned_company(db, company_id, user)
    content = await file.read()
    svc = MediaService(db, storage)
    try:
        item = await svc.upload_media(
            company,
            content=content,
            file_name=file.filename or "upload",
            content_type=file.content_type,
            category=category,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return item


@router.patch("/{media_id}", response_model=MediaItemResponse)
async def update_media(
    media_id: str,
    data: MediaItemUpdate,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage_client),
):
    """Update status, tags, priority or alt text.

    An item tagged ``logo`` and set ``active`` becomes the company logo.
    """
    svc = MediaService(db, storage)
    item = await svc.get_for_organization(media_id, user.organization_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Media item not found")
    return await svc.update_media(
        item,
        status=data.status,
        tags=data.tags,
        priority=data.priority,
        alt_text=data.alt_text,
    )


@router.delete("/{media_id}")
async def delete_media(
    media_id: str,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage_client),
):
    svc = MediaService(db, storage)
    item = await svc.get_for_organization(media_id, user.organization_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Media item not found")
    await svc.delete_media(item)
    return {"success": True}
