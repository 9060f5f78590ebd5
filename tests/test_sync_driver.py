"""Tests for SyncDriver batch publishing."""

from sqlalchemy import select

from roma_crm.domain.enums import PublishStatus
from roma_crm.domain.models import Company
from roma_crm.services.publish_orchestrator import PublishError, PublishResult
from roma_crm.services.sync_driver import BatchReport, SyncDriver


class StubOrchestrator:
    """Publishes every company except those named in *fail_names*."""

    def __init__(self, fail_names=(), unexpected_names=()):
        self.fail_names = set(fail_names)
        self.unexpected_names = set(unexpected_names)
        self.attempted: list[str] = []

    async def publish_company_profile(self, content):
        company = content.company
        self.attempted.append(company.name)
        if company.name in self.fail_names:
            raise PublishError("Profile create failed: Validation Error", status_code=400)
        if company.name in self.unexpected_names:
            raise RuntimeError("connection reset")
        return PublishResult(
            status=PublishStatus.CREATED,
            remote_id=f"wf-{company.name}",
            slug=company.name.lower(),
        )


class TestBatchReport:
    def test_to_dict(self):
        report = BatchReport(successful=2)
        report.record_failure("c1", "Acme", "boom")

        assert report.to_dict() == {
            "successful": 2,
            "failed": 1,
            "skipped": 0,
            "errors": [{"company_id": "c1", "company_name": "Acme", "reason": "boom"}],
        }


class TestSyncAll:
    async def test_one_failure_does_not_stop_the_batch(self, db_session, make_organization, make_company):
        org = await make_organization()
        org_id = org.id
        names = ["Alpha", "Bravo", "Charlie", "Delta"]
        for name in names:
            await make_company(org, name=name)
        orchestrator = StubOrchestrator(fail_names={"Bravo"})

        report = await SyncDriver(db_session, orchestrator).sync_all(org_id)

        assert sorted(orchestrator.attempted) == names
        assert report.successful == 3
        assert report.failed == 1
        assert report.errors[0].company_name == "Bravo"
        assert report.errors[0].reason == "Profile create failed: Validation Error"

        rows = (await db_session.execute(
            select(Company.name, Company.webflow_profile_id, Company.webflow_published)
            .where(Company.organization_id == org_id)
            .order_by(Company.name)
        )).all()
        assert rows == [
            ("Alpha", "wf-Alpha", True),
            ("Bravo", None, False),
            ("Charlie", "wf-Charlie", True),
            ("Delta", "wf-Delta", True),
        ]

    async def test_unexpected_errors_are_recorded(self, db_session, make_organization, make_company):
        org = await make_organization()
        org_id = org.id
        await make_company(org, name="Alpha")
        await make_company(org, name="Bravo")

        report = await SyncDriver(db_session, StubOrchestrator(unexpected_names={"Alpha"})).sync_all(org_id)

        assert report.successful == 1
        assert report.failed == 1
        assert report.errors[0].reason == "connection reset"

    async def test_only_the_organizations_companies(self, db_session, make_organization, make_company):
        org = await make_organization()
        other = await make_organization("Other Agency")
        org_id = org.id
        await make_company(org, name="Mine")
        await make_company(other, name="Theirs")
        orchestrator = StubOrchestrator()

        report = await SyncDriver(db_session, orchestrator).sync_all(org_id)

        assert orchestrator.attempted == ["Mine"]
        assert report.successful == 1

    async def test_empty_organization(self, db_session, make_organization):
        org = await make_organization()

        report = await SyncDriver(db_session, StubOrchestrator()).sync_all(org.id)

        assert report.to_dict()["successful"] == 0
        assert report.failed == 0


class TestPublishOne:
    async def test_persists_remote_linkage(self, db_session, make_organization, make_company):
        org = await make_organization()
        company = await make_company(org, name="Solo")

        result = await SyncDriver(db_session, StubOrchestrator()).publish_one(company)

        assert result.remote_id == "wf-Solo"
        assert company.webflow_profile_id == "wf-Solo"
        assert company.webflow_slug == "solo"
        assert company.webflow_published is True
        assert company.last_synced_at is not None
