"""Turn list-valued intake sections into relational rows.

Every ``materialize_*`` method follows the same replace policy: collect
raw items from all known shapes, and when at least one usable item was
found, delete the company's existing rows of that entity and insert the
new set. Running it twice with the same document leaves the same rows
behind. Rows added outside the intake flow are replaced as well.

Methods flush but never commit; the caller owns the transaction.
"""

import logging
import math
import uuid
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from roma_crm.domain.enums import MediaCategory, MediaStatus, OutcomeStatus
from roma_crm.domain.models import Company, Faq, Location, MediaItem, Review, Service
from roma_crm.services.asset_relocator import AssetRelocator
from roma_crm.services.intake_shapes import (
    FAQ_ADAPTERS,
    LOCATION_ADAPTERS,
    PHOTO_ADAPTERS,
    REVIEW_ADAPTERS,
    SERVICE_ADAPTERS,
    collect,
)
from roma_crm.services.intake_values import clean, pick, resolve_path, strip_prefix
from roma_crm.services.media_service import apply_logo_mirror

logger = logging.getLogger(__name__)

REVIEW_AUTHOR_KEYS = ("reviewer", "author", "author_name", "reviewer_name", "name")
REVIEW_RATING_KEYS = ("stars", "rating")
REVIEW_TEXT_KEYS = ("excerpt", "text", "review_text", "comment")
REVIEW_DATE_KEYS = ("date", "review_date", "time_description")
REVIEW_PLATFORM_KEYS = ("source", "platform")
REVIEW_URL_KEYS = ("url", "review_url")

PHOTO_URL_KEYS = ("url", "image_url", "src")
PHOTO_ALT_KEYS = ("alt", "caption", "alt_text")
LOGO_PATHS = ("hero.logo_url", "hero.hero_image_url", "hero.image")
LOGO_PRIORITY = 100

SERVICE_NAME_KEYS = ("title", "name", "service_name")
SERVICE_DESCRIPTION_KEYS = ("description", "summary", "whats_included")
MAX_INCLUDED = 4


def _rating(item: dict) -> int:
    raw = pick(item, REVIEW_RATING_KEYS)
    try:
        value = float(raw) if raw is not None else 5.0
    except ValueError:
        value = 5.0
    if not math.isfinite(value):
        value = 5.0
    return max(1, min(5, round(value)))


def _included(item: dict) -> list[str]:
    """Bullet points from ``included_1..4`` or an ``included`` list."""
    bullets = [clean(item.get(f"included_{i}")) for i in range(1, MAX_INCLUDED + 1)]
    listed = item.get("included")
    if isinstance(listed, list):
        bullets.extend(clean(b) for b in listed)
    return [b for b in bullets if b][:MAX_INCLUDED]


class EntityMaterializer:
    """Writes reviews, media, services, FAQs and locations for one company."""

    def __init__(self, db: AsyncSession, relocator: AssetRelocator):
        self.db = db
        self.relocator = relocator
        self.media_outcomes: dict[OutcomeStatus, int] = {status: 0 for status in OutcomeStatus}

    async def _replace(self, model, company_id: str, rows: list) -> int:
        if not rows:
            return 0
        await self.db.execute(delete(model).where(model.company_id == company_id))
        self.db.add_all(rows)
        await self.db.flush()
        return len(rows)

    async def _drop_replaced_logo(self, company: Company) -> None:
        """Clear ``company.logo_url`` when it mirrors a media row about to be replaced."""
        mirrored = await self.db.scalar(
            select(MediaItem.id)
            .where(MediaItem.company_id == company.id, MediaItem.file_url == company.logo_url)
            .limit(1)
        )
        if mirrored is not None:
            logger.info("Company %s logo cleared; its media item is being replaced", company.id)
            company.logo_url = None

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    async def materialize_reviews(self, company: Company, document: Any) -> int:
        """Replace the company's reviews with those in *document*."""
        rows = []
        for item in collect(document, REVIEW_ADAPTERS):
            if not isinstance(item, dict):
                continue
            text = pick(item, REVIEW_TEXT_KEYS)
            if text is None:
                continue
            rows.append(
                Review(
                    company_id=company.id,
                    organization_id=company.organization_id,
                    platform=pick(item, REVIEW_PLATFORM_KEYS) or "Google",
                    author=pick(item, REVIEW_AUTHOR_KEYS) or "Anonymous",
                    rating=_rating(item),
                    text=text,
                    review_date=pick(item, REVIEW_DATE_KEYS),
                    url=pick(item, REVIEW_URL_KEYS),
                    position=len(rows),
                )
            )

        count = await self._replace(Review, company.id, rows)
        logger.info("Materialized %d reviews for company %s", count, company.id)
        return count

    # ------------------------------------------------------------------
    # Media
    # ------------------------------------------------------------------

    async def _media_row(
        self,
        company: Company,
        source_url: str,
        category: MediaCategory,
        **attrs,
    ) -> MediaItem:
        result = await self.relocator.relocate(
            source_url, f"{category.value}/{uuid.uuid4()}", company.id
        )
        self.media_outcomes[result.status] += 1
        return MediaItem(
            company_id=company.id,
            organization_id=company.organization_id,
            file_name=source_url.rsplit("/", 1)[-1][:255] or None,
            file_url=result.url,
            source_url=source_url,
            storage_path=result.storage_path,
            mime_type=result.content_type,
            file_size=result.size,
            category=category.value,
            relocation_status=result.status.value,
            uploaded_by_type="intake",
            **attrs,
        )

    async def materialize_media(self, company: Company, document: Any) -> int:
        """Replace the company's media with the logo and gallery in *document*.

        Each image is relocated into owned storage before its row is
        written. The logo is stored ``active`` and mirrored onto
        ``company.logo_url``.
        """
        rows = []

        logo_url = None
        for path in LOGO_PATHS:
            logo_url = clean(resolve_path(document, path))
            if logo_url:
                break
        if logo_url:
            logo = await self._media_row(
                company,
                logo_url,
                MediaCategory.LOGO,
                tags=["logo"],
                status=MediaStatus.ACTIVE.value,
                priority=LOGO_PRIORITY,
            )
            rows.append(logo)

        photos = collect(document, PHOTO_ADAPTERS)
        for index, item in enumerate(photos):
            if isinstance(item, dict):
                url, alt = pick(item, PHOTO_URL_KEYS), pick(item, PHOTO_ALT_KEYS)
            else:
                url, alt = clean(item), None
            if not url:
                continue
            rows.append(
                await self._media_row(
                    company,
                    url,
                    MediaCategory.PHOTO,
                    alt_text=alt,
                    tags=[],
                    status=MediaStatus.PENDING.value,
                    priority=len(photos) - index,
                )
            )

        if rows and not logo_url and company.logo_url:
            await self._drop_replaced_logo(company)

        count = await self._replace(MediaItem, company.id, rows)
        if count and logo_url:
            apply_logo_mirror(company, rows[0])
        logger.info("Materialized %d media items for company %s", count, company.id)
        return count

    # ------------------------------------------------------------------
    # Services / FAQs / Locations
    # ------------------------------------------------------------------

    async def materialize_services(self, company: Company, document: Any) -> int:
        rows = []
        for item in collect(document, SERVICE_ADAPTERS):
            if isinstance(item, str):
                item = {"title": item}
            if not isinstance(item, dict):
                continue
            name = pick(item, SERVICE_NAME_KEYS)
            if not name:
                continue
            rows.append(
                Service(
                    company_id=company.id,
                    name=name,
                    description=pick(item, SERVICE_DESCRIPTION_KEYS),
                    included=_included(item),
                    position=len(rows),
                )
            )
        return await self._replace(Service, company.id, rows)

    async def materialize_faqs(self, company: Company, document: Any) -> int:
        rows = []
        for item in collect(document, FAQ_ADAPTERS):
            if not isinstance(item, dict):
                continue
            question = pick(item, ("question", "q"))
            answer = pick(item, ("answer", "a"))
            if not question or not answer:
                continue
            rows.append(
                Faq(
                    company_id=company.id,
                    question=question,
                    answer=answer,
                    category=clean(item.get("category")),
                    position=len(rows),
                )
            )
        return await self._replace(Faq, company.id, rows)

    async def materialize_locations(self, company: Company, document: Any) -> int:
        rows = []
        for item in collect(document, LOCATION_ADAPTERS):
            if not isinstance(item, dict):
                continue
            address = pick(item, ("full_address", "address_line_1", "address"))
            city = pick(item, ("city",))
            if not address and not city:
                continue
            hours = item.get("hours")
            rows.append(
                Location(
                    company_id=company.id,
                    name=pick(item, ("name", "location_name")),
                    address=address,
                    city=city,
                    state=pick(item, ("state",)),
                    zip=pick(item, ("zip", "postalCode")),
                    phone=strip_prefix(pick(item, ("phone",)), ("tel:",)),
                    hours=hours if isinstance(hours, (dict, list)) else clean(hours),
                    is_primary=bool(item.get("is_primary")),
                    position=len(rows),
                )
            )
        return await self._replace(Location, company.id, rows)

    async def materialize_all(self, company: Company, document: Any) -> dict[str, int]:
        """Run every materializer and return per-entity counts."""
        return {
            "reviews": await self.materialize_reviews(company, document),
            "media": await self.materialize_media(company, document),
            "services": await self.materialize_services(company, document),
            "faqs": await self.materialize_faqs(company, document),
            "locations": await self.materialize_locations(company, document),
        }

