"""Diagnostic: list companies and whether they have an intake and a Webflow profile.

Usage:
    python scripts/find_companies_with_intake.py
"""

import asyncio
import logging
import os
import sys

# Ensure src is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

logging.basicConfig(level=logging.INFO, format="%(levelname)s  %(message)s")
logger = logging.getLogger(__name__)


async def report() -> None:
    from sqlalchemy import select
    from roma_crm.domain.models import Company, Intake
    from roma_crm.infra.database import async_session

    async with async_session() as session:
        result = await session.execute(
            select(Company, Intake.id)
            .outerjoin(Intake, Intake.company_id == Company.id)
            .order_by(Company.organization_id, Company.name)
        )
        rows = result.all()

    if not rows:
        logger.info("No companies found.")
        return

    with_intake = 0
    print(f"\n{'company':40} {'status':10} {'intake':7} webflow")
    for company, intake_id in rows:
        has_intake = intake_id is not None
        with_intake += has_intake
        webflow = company.webflow_slug or "-"
        print(f"{company.name[:40]:40} {company.status:10} {'yes' if has_intake else 'no':7} {webflow}")

    print(f"\n{with_intake} of {len(rows)} companies have an intake document.\n")


if __name__ == "__main__":
    asyncio.run(report())
