"""Tests for the onboarding checklist."""

import pytest

from roma_crm.services.onboarding_service import ONBOARDING_STEPS, OnboardingService


class TestOnboardingService:
    async def test_seeding_is_idempotent(self, db_session, make_organization, make_company):
        org = await make_organization()
        company = await make_company(org)
        svc = OnboardingService(db_session)

        steps = await svc.seed_steps(company)

        assert [s.step_number for s in steps] == list(range(1, 10))
        assert steps[1].title == "Paste intake"
        assert steps[8].title == "Publish profile"
        assert not any(s.completed for s in steps)

    async def test_complete_step(self, db_session, make_organization, make_company):
        org = await make_organization()
        company = await make_company(org)

        step = await OnboardingService(db_session).complete_step(company, 2)

        assert step.completed is True
        assert step.completed_at is not None
        assert company.status == "NEW"

    async def test_all_steps_mark_company_onboarded(self, db_session, make_organization, make_company):
        org = await make_organization()
        company = await make_company(org)
        svc = OnboardingService(db_session)

        for number in ONBOARDING_STEPS:
            await svc.complete_step(company, number)

        assert company.status == "ONBOARDED"
        assert company.onboarding_completed_at is not None

    @pytest.mark.parametrize("number", [0, 10, -1])
    async def test_unknown_step_raises(self, db_session, make_organization, make_company, number):
        org = await make_organization()
        company = await make_company(org)

        with pytest.raises(ValueError):
            await OnboardingService(db_session).complete_step(company, number)
