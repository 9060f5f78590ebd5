"""Batch publishing of an organization's companies to Webflow."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roma_crm.domain.models import Company
from roma_crm.services.publish_orchestrator import (
    PublishOrchestrator,
    PublishResult,
    load_profile_content,
)

logger = logging.getLogger(__name__)


@dataclass
class BatchError:
    company_id: str
    company_name: str
    reason: str


@dataclass
class BatchReport:
    """Per-item outcome counts for a batch run. Partial success is normal."""

    successful: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[BatchError] = field(default_factory=list)

    def record_failure(self, company_id: str, company_name: str, reason: str) -> None:
        self.failed += 1
        self.errors.append(BatchError(company_id=company_id, company_name=company_name, reason=reason))

    def to_dict(self) -> dict:
        return {
            "successful": self.successful,
            "failed": self.failed,
            "skipped": self.skipped,
            "errors": [
                {"company_id": e.company_id, "company_name": e.company_name, "reason": e.reason}
                for e in self.errors
            ],
        }


class SyncDriver:
    """Publishes companies one at a time and writes the remote linkage back."""

    def __init__(self, db: AsyncSession, orchestrator: PublishOrchestrator):
        self.db = db
        self.orchestrator = orchestrator

    async def publish_one(self, company: Company) -> PublishResult:
        """Publish *company* and persist its remote id, slug and sync time.

        Raises:
            PublishError: propagated from the orchestrator.
        """
        content = await load_profile_content(self.db, company)
        result = await self.orchestrator.publish_company_profile(content)

        company.webflow_profile_id = result.remote_id
        company.webflow_slug = result.slug
        company.webflow_published = result.published
        company.last_synced_at = datetime.now(timezone.utc)
        await self.db.commit()
        return result

    async def sync_all(self, organization_id: str) -> BatchReport:
        """Publish every company in the organization, sequentially.

        A failing company is recorded in the report and the loop moves on.
        """
        result = await self.db.execute(
            select(Company.id, Company.name)
            .where(Company.organization_id == organization_id)
            .order_by(Company.created_at, Company.name)
        )
        targets = list(result.all())
        report = BatchReport()

        for company_id, company_name in targets:
            try:
                company = await self.db.get(Company, company_id)
                await self.publish_one(company)
                report.successful += 1
            except Exception as exc:  # noqa: BLE001
                await self.db.rollback()
                reason = getattr(exc, "reason", None) or str(exc) or exc.__class__.__name__
                logger.error("Sync failed for company %s (%s): %s", company_id, company_name, reason)
                report.record_failure(company_id, company_name, reason)

        logger.info(
            "Synced organization %s: %d successful, %d failed",
            organization_id, report.successful, report.failed,
        )
        return report
