"""Intake ingestion: store the document, extract columns, materialize rows."""

import logging
from dataclasses import asdict, dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roma_crm.domain.enums import OutcomeStatus
from roma_crm.domain.models import Company, Intake
from roma_crm.services.asset_relocator import AssetRelocator
from roma_crm.services.entity_materializer import EntityMaterializer
from roma_crm.services.field_extractor import extract
from roma_crm.services.onboarding_service import STEP_PASTE_INTAKE, OnboardingService
from roma_crm.services.sync_driver import BatchReport

logger = logging.getLogger(__name__)

# Identity columns are only filled in, never overwritten, by an intake
FILL_ONLY_FIELDS = {"name", "website"}


@dataclass
class IngestSummary:
    fields_updated: int = 0
    reviews: int = 0
    media: int = 0
    services: int = 0
    faqs: int = 0
    locations: int = 0
    media_degraded: int = 0
    media_failed: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def apply_extracted_fields(company: Company, fields: dict[str, str]) -> int:
    """Copy extracted values onto *company*; returns how many columns changed."""
    changed = 0
    for name, value in fields.items():
        current = getattr(company, name, None)
        if name in FILL_ONLY_FIELDS and current:
            continue
        if current != value:
            setattr(company, name, value)
            changed += 1
    return changed


class IntakeService:
    """Runs the paste-intake pipeline for one company at a time."""

    def __init__(self, db: AsyncSession, relocator: Optional[AssetRelocator] = None):
        self.db = db
        self.relocator = relocator

    async def get_intake(self, company_id: str) -> Optional[Intake]:
        result = await self.db.execute(select(Intake).where(Intake.company_id == company_id))
        return result.scalar_one_or_none()

    async def save_intake(self, company: Company, roma_data: dict) -> Intake:
        """Insert or replace the company's intake document."""
        intake = await self.get_intake(company.id)
        if intake is None:
            intake = Intake(
                company_id=company.id,
                organization_id=company.organization_id,
                roma_data=roma_data,
            )
            self.db.add(intake)
        else:
            intake.roma_data = roma_data
        await self.db.flush()
        return intake

    async def ingest(self, company: Company, roma_data: dict) -> IngestSummary:
        """Store *roma_data* and fan it out into company columns and child rows.

        Commits once at the end.
        """
        await self.save_intake(company, roma_data)

        summary = IngestSummary()
        summary.fields_updated = apply_extracted_fields(company, extract(roma_data))

        materializer = EntityMaterializer(self.db, self.relocator or AssetRelocator.from_settings())
        counts = await materializer.materialize_all(company, roma_data)
        summary.reviews = counts["reviews"]
        summary.media = counts["media"]
        summary.services = counts["services"]
        summary.faqs = counts["faqs"]
        summary.locations = counts["locations"]
        summary.media_degraded = materializer.media_outcomes[OutcomeStatus.DEGRADED]
        summary.media_failed = materializer.media_outcomes[OutcomeStatus.FAILED]

        await OnboardingService(self.db).complete_step(company, STEP_PASTE_INTAKE)
        await self.db.commit()

        logger.info(
            "Ingested intake for company %s: %d fields, %d reviews, %d media (%d degraded, %d failed)",
            company.id, summary.fields_updated, summary.reviews, summary.media,
            summary.media_degraded, summary.media_failed,
        )
        return summary

    async def extract_all(self, organization_id: str) -> BatchReport:
        """Re-run field extraction for every company in the organization.

        Companies without an intake, or whose intake yields no fields, are
        counted as skipped.
        """
        result = await self.db.execute(
            select(Company.id, Company.name, Intake.roma_data)
            .outerjoin(Intake, Intake.company_id == Company.id)
            .where(Company.organization_id == organization_id)
            .order_by(Company.name)
        )
        rows = list(result.all())
        report = BatchReport()

        for company_id, company_name, roma_data in rows:
            fields = extract(roma_data) if roma_data else {}
            if not fields:
                report.skipped += 1
                continue
            try:
                company = await self.db.get(Company, company_id)
                apply_extracted_fields(company, fields)
                await self.db.commit()
                report.successful += 1
            except Exception as exc:  # noqa: BLE001
                await self.db.rollback()
                logger.error("Field extraction failed for company %s: %s", company_id, exc)
                report.record_failure(company_id, company_name, str(exc))

        logger.info(
            "Extracted intake columns for organization %s: %d successful, %d failed, %d skipped",
            organization_id, report.successful, report.failed, report.skipped,
        )
        return report
