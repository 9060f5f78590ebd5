"""Company records scoped to an organization."""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roma_crm.domain.enums import CompanyPlan, CompanyStatus
from roma_crm.domain.models import Company, Review
from roma_crm.services.onboarding_service import OnboardingService
from roma_crm.services.publish_orchestrator import slugify

logger = logging.getLogger(__name__)


class CompanyService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_company(
        self,
        organization_id: str,
        name: str,
        website: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        plan: CompanyPlan = CompanyPlan.DISCOVER,
    ) -> Company:
        """Create a company in status NEW and seed its onboarding checklist."""
        name = name.strip()
        if not name:
            raise ValueError("Company name is required")

        company = Company(
            organization_id=organization_id,
            name=name,
            slug=slugify(name),
            website=website,
            email=email,
            phone=phone,
            plan=plan.value,
            status=CompanyStatus.NEW.value,
        )
        self.db.add(company)
        await self.db.flush()
        await OnboardingService(self.db).seed_steps(company)
        await self.db.commit()
        await self.db.refresh(company)

        logger.info("Created company %s (%s)", company.id, company.name)
        return company

    async def list_companies(self, organization_id: str) -> list[Company]:
        result = await self.db.execute(
            select(Company)
            .where(Company.organization_id == organization_id)
            .order_by(Company.name)
        )
        return list(result.scalars().all())

    async def get_for_organization(self, company_id: str, organization_id: str) -> Optional[Company]:
        """The company, or None when it is missing or owned by another organization."""
        result = await self.db.execute(
            select(Company).where(
                Company.id == company_id,
                Company.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_reviews(self, company_id: str) -> list[Review]:
        result = await self.db.execute(
            select(Review).where(Review.company_id == company_id).order_by(Review.position)
        )
        return list(result.scalars().all())
