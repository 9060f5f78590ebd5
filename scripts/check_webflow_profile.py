"""Diagnostic: compare a company's local record with its Webflow profile item.

Usage:
    python scripts/check_webflow_profile.py <company-id>

Read-only. Looks the profile up by stored item id, then by slug, and
prints which CMS fields are filled, plus the child items that reference
the profile in each configured child collection.
"""

import asyncio
import logging
import os
import sys

# Ensure src is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

logging.basicConfig(level=logging.INFO, format="%(levelname)s  %(message)s")
logger = logging.getLogger(__name__)


async def check(company_id: str) -> int:
    from roma_crm.app.config import get_settings
    from roma_crm.domain.models import Company
    from roma_crm.infra.database import async_session
    from roma_crm.infra.webflow_client import WebflowApiError, WebflowClient
    from roma_crm.services.publish_orchestrator import profile_slug

    settings = get_settings()
    if not settings.webflow_api_token or not settings.webflow_profiles_collection_id:
        logger.error("WEBFLOW_API_TOKEN / WEBFLOW_PROFILES_COLLECTION_ID not set in .env")
        return 1

    async with async_session() as session:
        company = await session.get(Company, company_id)
    if company is None:
        logger.error("Company %s not found", company_id)
        return 1

    client = WebflowClient.from_settings()
    collection_id = settings.webflow_profiles_collection_id
    slug = company.webflow_slug or profile_slug(company)

    print(f"\n=== {company.name} ({company.id}) ===")
    print(f"  stored item id : {company.webflow_profile_id}")
    print(f"  stored slug    : {company.webflow_slug}")
    print(f"  computed slug  : {profile_slug(company)}")
    print(f"  published      : {company.webflow_published}  last sync: {company.last_synced_at}\n")

    item = None
    try:
        if company.webflow_profile_id:
            try:
                item = await client.get_item(collection_id, company.webflow_profile_id)
            except WebflowApiError as exc:
                if exc.status_code != 404:
                    raise
                print("  Stored item id not found in Webflow, trying slug lookup")
        if item is None:
            item = await client.find_item_by_slug(collection_id, slug)
    except WebflowApiError as exc:
        logger.error("Webflow lookup failed (%s): %s", exc.status_code, exc)
        return 1

    if item is None:
        print(f"  No profile item found for slug {slug!r}\n")
        return 0

    print(f"Profile item {item['id']} (draft={item.get('isDraft')}, archived={item.get('isArchived')})")
    for name, value in sorted((item.get("fieldData") or {}).items()):
        if isinstance(value, list):
            value = f"[{len(value)} entries]"
        print(f"  {name:22} {str(value)[:70]}")

    for kind, child_collection in settings.webflow_child_collections.items():
        count = 0
        async for child in client.iter_items(child_collection):
            if (child.get("fieldData") or {}).get("profile") == item["id"]:
                count += 1
        print(f"\n  {kind}: {count} items reference this profile")

    print()
    return 0


def main() -> None:
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(1)
    sys.exit(asyncio.run(check(sys.argv[1])))


if __name__ == "__main__":
    main()
