"""Fixed onboarding checklist for client companies."""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roma_crm.domain.enums import CompanyStatus
from roma_crm.domain.models import Company, OnboardingStep

logger = logging.getLogger(__name__)

ONBOARDING_STEPS: dict[int, str] = {
    1: "Billing details",
    2: "Paste intake",
    3: "Review import",
    4: "Media review",
    5: "Website screenshots",
    6: "Video script",
    7: "Video upload",
    8: "Welcome email",
    9: "Publish profile",
}

STEP_PASTE_INTAKE = 2
STEP_PUBLISH_PROFILE = 9


class OnboardingService:
    """Seeds and advances a company's onboarding steps.

    Methods flush only; callers commit.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_steps(self, company_id: str) -> list[OnboardingStep]:
        result = await self.db.execute(
            select(OnboardingStep)
            .where(OnboardingStep.company_id == company_id)
            .order_by(OnboardingStep.step_number)
        )
        return list(result.scalars().all())

    async def seed_steps(self, company: Company) -> list[OnboardingStep]:
        """Create any missing checklist rows for *company*."""
        existing = {step.step_number for step in await self.list_steps(company.id)}
        for number, title in ONBOARDING_STEPS.items():
            if number not in existing:
                self.db.add(OnboardingStep(company_id=company.id, step_number=number, title=title))
        await self.db.flush()
        return await self.list_steps(company.id)

    async def complete_step(self, company: Company, step_number: int) -> OnboardingStep:
        """Mark one step complete; the last open step moves the company to ONBOARDED.

        Raises:
            ValueError: if *step_number* is not part of the checklist.
        """
        if step_number not in ONBOARDING_STEPS:
            raise ValueError(f"Unknown onboarding step: {step_number}")

        steps = {step.step_number: step for step in await self.seed_steps(company)}
        step = steps[step_number]
        if not step.completed:
            step.completed = True
            step.completed_at = datetime.now(timezone.utc)

        if all(s.completed for s in steps.values()) and company.status != CompanyStatus.ONBOARDED.value:
            company.status = CompanyStatus.ONBOARDED.value
            company.onboarding_completed_at = datetime.now(timezone.utc)
            logger.info("Company %s completed onboarding", company.id)

        await self.db.flush()
        return step
