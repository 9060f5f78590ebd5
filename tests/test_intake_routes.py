"""Route tests for /api/intakes, /api/companies and /api/onboarding."""

from unittest.mock import AsyncMock, patch

from roma_crm.agents.base import AgentResult
from roma_crm.app.routes.companies import router as companies_router
from roma_crm.app.routes.intake import get_asset_relocator
from roma_crm.app.routes.intake import router as intake_router
from roma_crm.app.routes.onboarding import router as onboarding_router
from roma_crm.services.intake_parser import IntakeDocumentParser


class TestPasteIntake:
    async def test_paste_returns_counts(
        self, make_client, make_organization, make_user, make_company, auth_headers,
        fake_relocator, sample_intake,
    ):
        org = await make_organization()
        user = await make_user(org)
        company = await make_company(org)

        async with make_client(intake_router, overrides={get_asset_relocator: lambda: fake_relocator}) as client:
            resp = await client.post(
                "/api/intakes/paste",
                json={"company_id": company.id, "roma_data": sample_intake},
                headers=auth_headers(user),
            )

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["company_id"] == company.id
        assert body["reviews"] == 3
        assert body["media"] == 4
        assert body["media_degraded"] == 0
        assert body["media_failed"] == 0

    async def test_paste_then_get(
        self, make_client, make_organization, make_user, make_company, auth_headers, fake_relocator,
    ):
        org = await make_organization()
        user = await make_user(org)
        company = await make_company(org)
        document = {"hero": {"tagline": "Roofs done right"}}

        async with make_client(intake_router, overrides={get_asset_relocator: lambda: fake_relocator}) as client:
            await client.post(
                "/api/intakes/paste",
                json={"company_id": company.id, "roma_data": document},
                headers=auth_headers(user),
            )
            resp = await client.get(f"/api/intakes/{company.id}", headers=auth_headers(user))

        assert resp.status_code == 200
        assert resp.json()["roma_data"] == document

    async def test_foreign_company_is_not_found(
        self, make_client, make_organization, make_user, make_company, auth_headers, fake_relocator, sample_intake,
    ):
        org = await make_organization()
        other = await make_organization("Other Agency")
        user = await make_user(org)
        foreign = await make_company(other)

        async with make_client(intake_router, overrides={get_asset_relocator: lambda: fake_relocator}) as client:
            resp = await client.post(
                "/api/intakes/paste",
                json={"company_id": foreign.id, "roma_data": sample_intake},
                headers=auth_headers(user),
            )

        assert resp.status_code == 404
        assert resp.json() == {"error": "Company not found"}
        assert fake_relocator.calls == []

    async def test_missing_token(self, make_client, sample_intake):
        async with make_client(intake_router) as client:
            resp = await client.post("/api/intakes/paste", json={"company_id": "x", "roma_data": sample_intake})

        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}

    async def test_invalid_token(self, make_client, sample_intake):
        async with make_client(intake_router) as client:
            resp = await client.post(
                "/api/intakes/paste",
                json={"company_id": "x", "roma_data": sample_intake},
                headers={"Authorization": "Bearer not-a-jwt"},
            )

        assert resp.status_code == 401

    async def test_missing_roma_data(self, make_client, make_organization, make_user, make_company, auth_headers):
        org = await make_organization()
        user = await make_user(org)
        company = await make_company(org)

        async with make_client(intake_router) as client:
            resp = await client.post(
                "/api/intakes/paste", json={"company_id": company.id}, headers=auth_headers(user),
            )

        assert resp.status_code == 400
        assert "roma_data" in resp.json()["error"]

    async def test_empty_roma_data(
        self, make_client, make_organization, make_user, make_company, auth_headers, fake_relocator,
    ):
        org = await make_organization()
        user = await make_user(org)
        company = await make_company(org)

        async with make_client(intake_router, overrides={get_asset_relocator: lambda: fake_relocator}) as client:
            resp = await client.post(
                "/api/intakes/paste", json={"company_id": company.id, "roma_data": {}}, headers=auth_headers(user),
            )

        assert resp.status_code == 400


class TestParseDocument:
    async def test_parse_document(self, make_client, make_organization, make_user, auth_headers):
        org = await make_organization()
        user = await make_user(org)
        parsed = AgentResult.success({"hero": {"business_name": "Acme"}}, tokens_used=10)

        with patch.object(IntakeDocumentParser, "parse", AsyncMock(return_value=parsed)):
            async with make_client(intake_router) as client:
                resp = await client.post(
                    "/api/intakes/parse-document",
                    json={"document": "Acme Roofing research notes", "company_name": "Acme"},
                    headers=auth_headers(user),
                )

        assert resp.status_code == 200
        assert resp.json() == {"roma_data": {"hero": {"business_name": "Acme"}}, "tokens_used": 10}

    async def test_parse_failure_is_bad_gateway(self, make_client, make_organization, make_user, auth_headers):
        org = await make_organization()
        user = await make_user(org)

        with patch.object(IntakeDocumentParser, "parse", AsyncMock(return_value=AgentResult.failure("timeout"))):
            async with make_client(intake_router) as client:
                resp = await client.post(
                    "/api/intakes/parse-document",
                    json={"document": "notes"},
                    headers=auth_headers(user),
                )

        assert resp.status_code == 502
        assert "timeout" in resp.json()["error"]


class TestMigrateToColumns:
    async def test_reports_counts(
        self, make_client, make_organization, make_user, make_company, auth_headers,
    ):
        org = await make_organization()
        user = await make_user(org)
        await make_company(org)

        async with make_client(intake_router) as client:
            resp = await client.post("/api/intakes/migrate-to-columns", headers=auth_headers(user))

        assert resp.status_code == 200
        assert resp.json() == {"successful": 0, "failed": 0, "skipped": 1, "errors": []}


class TestCompanyAndOnboardingRoutes:
    async def test_create_company_seeds_onboarding(self, make_client, make_organization, make_user, auth_headers):
        org = await make_organization()
        user = await make_user(org)

        async with make_client(companies_router, onboarding_router) as client:
            created = await client.post(
                "/api/companies", json={"name": "  Bright Dental  "}, headers=auth_headers(user),
            )
            company_id = created.json()["id"]
            steps = await client.get(f"/api/onboarding/{company_id}/steps", headers=auth_headers(user))

        assert created.status_code == 201
        assert created.json()["name"] == "Bright Dental"
        assert created.json()["status"] == "NEW"
        assert created.json()["organization_id"] == org.id
        assert [s["step_number"] for s in steps.json()] == list(range(1, 10))

    async def test_blank_company_name(self, make_client, make_organization, make_user, auth_headers):
        org = await make_organization()
        user = await make_user(org)

        async with make_client(companies_router) as client:
            resp = await client.post("/api/companies", json={"name": "   "}, headers=auth_headers(user))

        assert resp.status_code == 400
        assert resp.json() == {"error": "Company name is required"}

    async def test_invalid_step(self, make_client, make_organization, make_user, make_company, auth_headers):
        org = await make_organization()
        user = await make_user(org)
        company = await make_company(org)

        async with make_client(onboarding_router) as client:
            resp = await client.post(
                f"/api/onboarding/{company.id}/steps/12/complete", headers=auth_headers(user),
            )

        assert resp.status_code == 400
        assert resp.json() == {"error": "Unknown onboarding step: 12"}

    async def test_list_companies_is_scoped(self, make_client, make_organization, make_user, make_company, auth_headers):
        org = await make_organization()
        other = await make_organization("Other Agency")
        user = await make_user(org)
        await make_company(org, name="Mine")
        await make_company(other, name="Theirs")

        async with make_client(companies_router) as client:
            resp = await client.get("/api/companies", headers=auth_headers(user))

        assert [c["name"] for c in resp.json()] == ["Mine"]
