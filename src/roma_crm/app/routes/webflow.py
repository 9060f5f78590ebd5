"""Webflow publishing routes: single-company publish and organization sync."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from roma_crm.app.config import get_settings
from roma_crm.app.routes.auth import get_current_user_dep, get_owned_company
from roma_crm.domain.models import User
from roma_crm.domain.schemas import PublishCompanyRequest
from roma_crm.infra.database import get_db
from roma_crm.services.onboarding_service import STEP_PUBLISH_PROFILE, OnboardingService
from roma_crm.services.publish_orchestrator import PublishOrchestrator
from roma_crm.services.sync_driver import SyncDriver

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/webflow", tags=["webflow"])


def get_publish_orchestrator() -> PublishOrchestrator:
    return PublishOrchestrator.from_settings()


@router.post("/publish-company")
async def publish_company(
    data: PublishCompanyRequest,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
    orchestrator: PublishOrchestrator = Depends(get_publish_orchestrator),
):
    """Publish one company's profile and record the remote item on the company."""
    company = await get_owned_company(db, data.company_id, user)
    result = await SyncDriver(db, orchestrator).publish_one(company)

    await OnboardingService(db).complete_step(company, STEP_PUBLISH_PROFILE)
    await db.commit()

    return {
        "success": True,
        "status": result.status.value,
        "outcome": result.outcome.value,
        "remote_id": result.remote_id,
        "slug": result.slug,
        "published": result.published,
        "publish_error": result.publish_error,
        "child_counts": result.child_counts,
        "child_errors": result.child_errors,
        "live_url": f"{get_settings().profile_base_url}/{result.slug}",
    }


@router.post("/sync-profiles")
async def sync_profiles(
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
    orchestrator: PublishOrchestrator = Depends(get_publish_orchestrator),
):
    """Publish every company in the caller's organization, reporting per-company failures."""
    organization_id = user.organization_id
    report = await SyncDriver(db, orchestrator).sync_all(organization_id)
    return report.to_dict()


@router.get("/test-connection")
async def test_connection(
    user: User = Depends(get_current_user_dep),
    orchestrator: PublishOrchestrator = Depends(get_publish_orchestrator),
):
    """Fetch the profiles collection to confirm the token and collection id."""
    collection = await orchestrator.client.get_collection(orchestrator.profiles_collection_id)
    return {
        "success": True,
        "collection_id": collection.get("id"),
        "collection_name": collection.get("displayName") or collection.get("slug"),
    }
