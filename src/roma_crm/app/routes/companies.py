"""Company CRUD routes for the staff dashboard."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from roma_crm.app.routes.auth import get_current_user_dep, get_owned_company
from roma_crm.domain.models import User
from roma_crm.domain.schemas import CompanyCreate, CompanyResponse, ReviewResponse
from roma_crm.infra.database import get_db
from roma_crm.services.company_service import CompanyService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/companies", tags=["companies"])


@router.post("", response_model=CompanyResponse, status_code=201)
async def create_company(
    data: CompanyCreate,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    """Create a company in the caller's organization and seed onboarding."""
    svc = CompanyService(db)
    try:
        company = await svc.create_company(
            organization_id=user.organization_id,
            name=data.name,
            website=data.website,
            email=data.email,
            phone=data.phone,
            plan=data.plan,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return company


@router.get("", response_model=list[CompanyResponse])
async def list_companies(
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    return await CompanyService(db).list_companies(user.organization_id)


@router.get("/{company_id}", response_model=CompanyResponse)
async def get_company(
    company_id: str,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    return await get_owned_company(db, company_id, user)


@router.get("/{company_id}/reviews", response_model=list[ReviewResponse])
async def list_reviews(
    company_id: str,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    company = await get_owned_company(db, company_id, user)
    return await CompanyService(db).list_reviews(company.id)
