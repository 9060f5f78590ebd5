"""Onboarding checklist routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from roma_crm.app.routes.auth import get_current_user_dep, get_owned_company
from roma_crm.domain.models import User
from roma_crm.domain.schemas import OnboardingStepResponse
from roma_crm.infra.database import get_db
from roma_crm.services.onboarding_service import OnboardingService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/onboarding", tags=["onboarding"])


@router.get("/{company_id}/steps", response_model=list[OnboardingStepResponse])
async def list_steps(
    company_id: str,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    company = await get_owned_company(db, company_id, user)
    return await OnboardingService(db).list_steps(company.id)


@router.post("/{company_id}/steps/{step_number}/complete")
async def complete_step(
    company_id: str,
    step_number: int,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    """Mark a step complete; returns the company status afterwards."""
    company = await get_owned_company(db, company_id, user)
    svc = OnboardingService(db)
    try:
        step = await svc.complete_step(company, step_number)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    await db.commit()
    return {
        "step_number": step.step_number,
        "completed": step.completed,
        "company_status": company.status,
    }
