"""Tests for PublishOrchestrator: slugs, create/update, slug retry, children."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from roma_crm.domain.enums import OutcomeStatus, PublishStatus
from roma_crm.domain.models import Company, Faq, MediaItem, Review, Service
from roma_crm.infra.webflow_client import WebflowApiError
from roma_crm.services.publish_orchestrator import (
    ProfileContent,
    PublishError,
    PublishOrchestrator,
    build_child_records,
    build_profile_fields,
    load_profile_content,
    profile_slug,
    slugify,
)

COMPANY_ID = "3f2a9c1b-7d4e-4a5b-9c8d-112233445566"
EXPECTED_SLUG = "bob-s-dumpsters-llc-3f2a9c1b"


def _company(**attrs) -> Company:
    defaults = {
        "id": COMPANY_ID,
        "organization_id": "org-1",
        "name": "Bob's Dumpsters, LLC.",
        "plan": "DISCOVER",
        "status": "NEW",
    }
    defaults.update(attrs)
    return Company(**defaults)


def _slug_conflict() -> WebflowApiError:
    return WebflowApiError(
        "Validation Error",
        status_code=400,
        payload={
            "message": "Validation Error",
            "details": [{"param": "slug", "description": "Unique value is already in database"}],
        },
    )


def _mock_client() -> MagicMock:
    client = MagicMock()
    client.get_item = AsyncMock()
    client.find_item_by_slug = AsyncMock(return_value=None)
    client.create_item = AsyncMock(return_value={"id": "wf-new"})
    client.update_item = AsyncMock(return_value={})
    client.publish_items = AsyncMock(return_value={})
    return client


def _orchestrator(client, children=None) -> PublishOrchestrator:
    return PublishOrchestrator(
        client, "profiles-col", child_collections=children or {}, clock=lambda: 1700000000.5,
    )


# ---------------------------------------------------------------------------
# Slugs and field mapping
# ---------------------------------------------------------------------------


class TestSlugs:
    def test_slugify(self):
        assert slugify("Bob's Dumpsters, LLC.") == "bob-s-dumpsters-llc"
        assert slugify("  --Hello   World--  ") == "hello-world"
        assert slugify("") == ""

    def test_profile_slug_includes_id_fragment(self):
        assert profile_slug(_company()) == EXPECTED_SLUG

    def test_profile_slug_for_unsluggable_name(self):
        assert profile_slug(_company(name="!!!")) == "company-3f2a9c1b"


class TestFieldMapping:
    def test_profile_fields(self):
        company = _company(
            tagline="Same-day rentals",
            ai_summary="Family owned.",
            city="Austin",
            website="https://bobs.example",
            phone="+15125550100",
        )
        content = ProfileContent(
            company=company,
            logo_url="https://store.test/logo.png",
            gallery=[MediaItem(file_url="https://store.test/1.jpg")],
        )

        fields = build_profile_fields(content, EXPECTED_SLUG)

        assert fields["name"] == "Bob's Dumpsters, LLC."
        assert fields["slug"] == EXPECTED_SLUG
        assert fields["short-description"] == "Same-day rentals"
        assert fields["visit-website-2"] == "https://bobs.example"
        assert fields["call-now-2"] == "+15125550100"
        assert fields["package-type"] == "discover"
        assert fields["profile-image"] == {"url": "https://store.test/logo.png"}
        assert fields["gallery"] == [{"url": "https://store.test/1.jpg"}]
        assert fields["spotlight"] is False
        assert "email" not in fields
        assert "about-text" not in fields

    def test_child_records_reference_profile(self):
        content = ProfileContent(
            company=_company(),
            services=[Service(name="10 Yard", included=["a", "b"])],
            faqs=[Faq(question="Q?", answer="A.")],
            reviews=[Review(author="Dana", rating=5, text="Great", platform="Google")],
        )

        records = build_child_records(content, EXPECTED_SLUG, "wf-1")

        service = records["services"][0]
        assert service["slug"] == f"{EXPECTED_SLUG}-service-1"
        assert service["profile"] == "wf-1"
        assert service["included1"] == "a"
        assert service["included2"] == "b"
        assert "included3" not in service
        assert records["faqs"][0]["answer"] == "A."
        assert records["reviews"][0]["review-text"] == "Great"
        assert records["locations"] == []


# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------


class TestPublishCompanyProfile:
    async def test_creates_when_missing(self):
        client = _mock_client()

        result = await _orchestrator(client).publish_company_profile(ProfileContent(company=_company()))

        assert result.status == PublishStatus.CREATED
        assert result.remote_id == "wf-new"
        assert result.slug == EXPECTED_SLUG
        assert result.outcome == OutcomeStatus.SUCCESS
        client.find_item_by_slug.assert_awaited_once_with("profiles-col", EXPECTED_SLUG)
        client.get_item.assert_not_awaited()
        client.publish_items.assert_awaited_once_with("profiles-col", ["wf-new"])

    async def test_updates_existing_item_found_by_slug(self):
        client = _mock_client()
        client.find_item_by_slug.return_value = {"id": "wf-old", "fieldData": {"slug": EXPECTED_SLUG}}

        result = await _orchestrator(client).publish_company_profile(ProfileContent(company=_company()))

        assert result.status == PublishStatus.UPDATED
        assert result.remote_id == "wf-old"
        client.create_item.assert_not_awaited()
        args = client.update_item.await_args.args
        assert args[0] == "profiles-col"
        assert args[1] == "wf-old"
        assert args[2]["slug"] == EXPECTED_SLUG

    async def test_stored_remote_id_is_tried_first(self):
        client = _mock_client()
        client.get_item.return_value = {"id": "wf-stored", "fieldData": {"slug": "custom-slug"}}
        company = _company(webflow_profile_id="wf-stored")

        result = await _orchestrator(client).publish_company_profile(ProfileContent(company=company))

        assert result.remote_id == "wf-stored"
        assert result.slug == "custom-slug"
        client.find_item_by_slug.assert_not_awaited()

    async def test_stale_remote_id_falls_back_to_slug(self):
        client = _mock_client()
        client.get_item.side_effect = WebflowApiError("Not found", status_code=404)
        company = _company(webflow_profile_id="wf-deleted")

        result = await _orchestrator(client).publish_company_profile(ProfileContent(company=company))

        assert result.status == PublishStatus.CREATED
        client.find_item_by_slug.assert_awaited_once()

    async def test_slug_conflict_retries_exactly_once(self):
        client = _mock_client()
        client.create_item.side_effect = [_slug_conflict(), {"id": "wf-retry"}]

        result = await _orchestrator(client).publish_company_profile(ProfileContent(company=_company()))

        assert client.create_item.await_count == 2
        assert result.remote_id == "wf-retry"
        assert result.slug == f"{EXPECTED_SLUG}-1700000000"
        second_fields = client.create_item.await_args_list[1].args[1]
        assert second_fields["slug"] == f"{EXPECTED_SLUG}-1700000000"

    async def test_second_slug_conflict_raises(self):
        client = _mock_client()
        client.create_item.side_effect = [_slug_conflict(), _slug_conflict()]

        with pytest.raises(PublishError) as exc_info:
            await _orchestrator(client).publish_company_profile(ProfileContent(company=_company()))

        assert client.create_item.await_count == 2
        assert exc_info.value.status_code == 400
        client.publish_items.assert_not_awaited()

    async def test_other_create_errors_are_not_retried(self):
        client = _mock_client()
        client.create_item.side_effect = WebflowApiError("Unauthorized", status_code=401)

        with pytest.raises(PublishError) as exc_info:
            await _orchestrator(client).publish_company_profile(ProfileContent(company=_company()))

        assert client.create_item.await_count == 1
        assert exc_info.value.status_code == 401

    async def test_publish_failure_is_degraded(self):
        client = _mock_client()
        client.publish_items.side_effect = WebflowApiError("Site not published", status_code=409)

        result = await _orchestrator(client).publish_company_profile(ProfileContent(company=_company()))

        assert result.remote_id == "wf-new"
        assert result.published is False
        assert result.publish_error == "Site not published"
        assert result.outcome == OutcomeStatus.DEGRADED

    async def test_child_errors_are_collected(self):
        client = _mock_client()
        client.create_item.side_effect = [
            {"id": "wf-new"},
            {"id": "svc-1"},
            WebflowApiError("Bad field", status_code=400),
        ]
        content = ProfileContent(
            company=_company(),
            services=[Service(name="A"), Service(name="B")],
        )

        result = await _orchestrator(client, {"services": "services-col"}).publish_company_profile(content)

        assert result.child_counts == {"services": 1}
        assert len(result.child_errors) == 1
        assert f"{EXPECTED_SLUG}-service-2" in result.child_errors[0]
        assert result.outcome == OutcomeStatus.DEGRADED
        client.publish_items.assert_any_await("services-col", ["svc-1"])


class TestLoadProfileContent:
    async def test_logo_and_gallery_from_active_media(self, db_session, make_organization, make_company):
        org = await make_organization()
        company = await make_company(org, logo_url="https://old.test/logo.png")
        db_session.add_all([
            MediaItem(company_id=company.id, file_url="https://s.test/logo.png", category="logo",
                      tags=["Logo"], status="active", priority=100),
            MediaItem(company_id=company.id, file_url="https://s.test/a.jpg", category="photo",
                      tags=[], status="active", priority=2),
            MediaItem(company_id=company.id, file_url="https://s.test/b.jpg", category="photo",
                      tags=[], status="pending", priority=1),
        ])
        await db_session.flush()

        content = await load_profile_content(db_session, company)

        assert content.logo_url == "https://s.test/logo.png"
        assert [m.file_url for m in content.gallery] == ["https://s.test/a.jpg"]

    async def test_falls_back_to_company_logo(self, db_session, make_organization, make_company):
        org = await make_organization()
        company = await make_company(org, logo_url="https://old.test/logo.png")

        content = await load_profile_content(db_session, company)

        assert content.logo_url == "https://old.test/logo.png"
        assert content.gallery == []
