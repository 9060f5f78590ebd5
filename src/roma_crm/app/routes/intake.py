"""Intake routes: paste an intake document, parse research text, batch extraction.

Provides endpoints for:
- Fetching the stored intake document of a company
- Pasting an intake document (extract columns, materialize reviews/media)
- Turning free-text research into an intake document with Gemini
- Re-running column extraction for every company in the organization
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from roma_crm.app.routes.auth import get_current_user_dep, get_owned_company
from roma_crm.domain.models import User
from roma_crm.domain.schemas import IntakeResponse, ParseIntakeDocumentRequest, PasteIntakeRequest
from roma_crm.infra.database import get_db
from roma_crm.services.asset_relocator import AssetRelocator
from roma_crm.services.intake_parser import IntakeDocumentParser
from roma_crm.services.intake_service import IntakeService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/intakes", tags=["intake"])


def get_asset_relocator() -> AssetRelocator:
    return AssetRelocator.from_settings()


@router.get("/{company_id}", response_model=IntakeResponse)
async def get_intake(
    company_id: str,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    company = await get_owned_company(db, company_id, user)
    intake = await IntakeService(db).get_intake(company.id)
    if intake is None:
        raise HTTPException(status_code=404, detail="Intake not found")
    return intake


@router.post("/paste")
async def paste_intake(
    data: PasteIntakeRequest,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
    relocator: AssetRelocator = Depends(get_asset_relocator),
):
    """Store an intake document and fan it out into company data.

    Returns the per-entity counts, including how many images could only
    be fetched through the proxy or could not be relocated at all.
    """
    company = await get_owned_company(db, data.company_id, user)
    if not data.roma_data:
        raise HTTPException(status_code=400, detail="roma_data must be a non-empty object")

    summary = await IntakeService(db, relocator).ingest(company, data.roma_data)
    return {"success": True, "company_id": company.id, **summary.to_dict()}


@router.post("/parse-document")
async def parse_intake_document(
    data: ParseIntakeDocumentRequest,
    user: User = Depends(get_current_user_dep),
):
    """Convert pasted research text into an intake document (not stored)."""
    if not data.document.strip():
        raise HTTPException(status_code=400, detail="document is required")

    result = await IntakeDocumentParser().parse(data.document, data.company_name)
    if not result.ok:
        raise HTTPException(status_code=502, detail=f"Intake parsing failed: {result.error}")
    return {"roma_data": result.data, "tokens_used": result.tokens_used}


@router.post("/migrate-to-columns")
async def migrate_intake_to_columns(
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    """Re-extract company columns from every stored intake in the organization."""
    report = await IntakeService(db).extract_all(user.organization_id)
    return report.to_dict()
