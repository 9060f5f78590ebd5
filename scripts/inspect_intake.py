"""Diagnostic: show what the field extractor and shape adapters see in an intake.

Usage:
    python scripts/inspect_intake.py <company-id>

Read-only. Prints the extracted columns next to the stored company
values, then the number of raw reviews / photos / services / FAQs /
locations each shape adapter finds.
"""

import asyncio
import logging
import os
import sys

# Ensure src is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

logging.basicConfig(level=logging.INFO, format="%(levelname)s  %(message)s")
logger = logging.getLogger(__name__)


async def inspect(company_id: str) -> int:
    from sqlalchemy import func, select
    from roma_crm.domain.models import Company, Intake, MediaItem, Review
    from roma_crm.infra.database import async_session
    from roma_crm.services import intake_shapes
    from roma_crm.services.field_extractor import extract

    async with async_session() as session:
        company = await session.get(Company, company_id)
        if company is None:
            logger.error("Company %s not found", company_id)
            return 1

        intake = (
            await session.execute(select(Intake).where(Intake.company_id == company_id))
        ).scalar_one_or_none()
        if intake is None:
            logger.error("Company %s (%s) has no intake", company.name, company_id)
            return 1

        review_count = await session.scalar(
            select(func.count()).select_from(Review).where(Review.company_id == company_id)
        )
        media_count = await session.scalar(
            select(func.count()).select_from(MediaItem).where(MediaItem.company_id == company_id)
        )

    document = intake.roma_data
    print(f"\n=== {company.name} ({company.id}) ===")
    print(f"Top-level sections: {', '.join(sorted(document)) or '(none)'}\n")

    print("Extracted columns (stored value in brackets):")
    fields = extract(document)
    for name, value in sorted(fields.items()):
        stored = getattr(company, name, None)
        marker = "" if stored == value else "  <-- differs"
        print(f"  {name:16} {value!r:60.60} [{stored!r}]{marker}")
    if not fields:
        print("  (nothing extractable)")

    print("\nShape adapters:")
    adapters = (
        intake_shapes.REVIEW_ADAPTERS
        + intake_shapes.PHOTO_ADAPTERS
        + intake_shapes.SERVICE_ADAPTERS
        + intake_shapes.FAQ_ADAPTERS
        + intake_shapes.LOCATION_ADAPTERS
    )
    for adapter in adapters:
        print(f"  {adapter.__name__:22} {len(adapter(document))}")

    print(f"\nStored rows: {review_count} reviews, {media_count} media items\n")
    return 0


def main() -> None:
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(1)
    sys.exit(asyncio.run(inspect(sys.argv[1])))


if __name__ == "__main__":
    main()
