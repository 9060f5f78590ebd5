"""Publish a company profile and its child records to the Webflow CMS.

The orchestrator only talks to Webflow. Reading the company and its
related rows happens up front in :func:`load_profile_content`, and
persisting the returned remote id and slug is left to the caller.

Flow for one company:

1. Compute ``{slugify(name)}-{company_id[:8]}`` (or reuse the slug
   stored from an earlier publish).
2. Find an existing item (stored remote id, then slug). Found: PATCH.
   Otherwise: POST.
3. A POST rejected because the slug is taken (archived items keep their
   slug) is retried exactly once with a timestamp suffix.
4. Publish the item. A failed publish leaves a draft and is reported,
   not raised.
5. Upsert child records (services, FAQs, locations, reviews) that
   reference the profile. Child failures are collected, not raised.
"""

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roma_crm.app.config import get_settings
from roma_crm.domain.enums import CompanyPlan, CompanyStatus, MediaStatus, OutcomeStatus, PublishStatus
from roma_crm.domain.models import Company, Faq, Location, MediaItem, Review, Service
from roma_crm.infra.webflow_client import WebflowApiError, WebflowClient
from roma_crm.services.media_service import is_logo_tagged

logger = logging.getLogger(__name__)

GALLERY_LIMIT = 10
REVIEW_LIMIT = 5
SERVICE_LIMIT = 5
FAQ_LIMIT = 10
SLUG_ID_FRAGMENT = 8

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


# ---------------------------------------------------------------------------
# Errors / results
# ---------------------------------------------------------------------------


class PublishError(Exception):
    """Terminal failure publishing one company."""

    def __init__(self, reason: str, status_code: int = 502):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


@dataclass
class PublishResult:
    status: PublishStatus
    remote_id: str
    slug: str
    published: bool = True
    publish_error: Optional[str] = None
    child_counts: dict[str, int] = field(default_factory=dict)
    child_errors: list[str] = field(default_factory=list)

    @property
    def outcome(self) -> OutcomeStatus:
        if self.published and not self.child_errors:
            return OutcomeStatus.SUCCESS
        return OutcomeStatus.DEGRADED


@dataclass
class ProfileContent:
    """A company plus the related rows projected into its CMS profile."""

    company: Company
    logo_url: Optional[str] = None
    gallery: list[MediaItem] = field(default_factory=list)
    reviews: list[Review] = field(default_factory=list)
    services: list[Service] = field(default_factory=list)
    faqs: list[Faq] = field(default_factory=list)
    locations: list[Location] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Slugs
# ---------------------------------------------------------------------------


def slugify(text: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to ``-``, trim hyphens."""
    return _NON_ALNUM.sub("-", (text or "").lower()).strip("-")


def profile_slug(company: Company) -> str:
    base = slugify(company.name) or "company"
    fragment = slugify(str(company.id))[:SLUG_ID_FRAGMENT].strip("-")
    return f"{base}-{fragment}" if fragment else base


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


async def load_profile_content(db: AsyncSession, company: Company) -> ProfileContent:
    """Read everything the profile projection needs for *company*."""
    media_result = await db.execute(
        select(MediaItem)
        .where(
            MediaItem.company_id == company.id,
            MediaItem.status == MediaStatus.ACTIVE.value,
        )
        .order_by(MediaItem.priority.desc(), MediaItem.created_at)
    )
    active_media = list(media_result.scalars().all())
    logo = next((m for m in active_media if is_logo_tagged(m.tags)), None)
    gallery = [m for m in active_media if not is_logo_tagged(m.tags) and m.category == "photo"]

    reviews = await db.execute(
        select(Review)
        .where(Review.company_id == company.id, Review.status == "active")
        .order_by(Review.position)
        .limit(REVIEW_LIMIT)
    )
    services = await db.execute(
        select(Service)
        .where(Service.company_id == company.id)
        .order_by(Service.position)
        .limit(SERVICE_LIMIT)
    )
    faqs = await db.execute(
        select(Faq).where(Faq.company_id == company.id).order_by(Faq.position).limit(FAQ_LIMIT)
    )
    locations = await db.execute(
        select(Location).where(Location.company_id == company.id).order_by(Location.position)
    )

    return ProfileContent(
        company=company,
        logo_url=logo.file_url if logo else company.logo_url,
        gallery=gallery[:GALLERY_LIMIT],
        reviews=list(reviews.scalars().all()),
        services=list(services.scalars().all()),
        faqs=list(faqs.scalars().all()),
        locations=list(locations.scalars().all()),
    )


# ---------------------------------------------------------------------------
# Field mapping
# ---------------------------------------------------------------------------


def _compact(fields: dict) -> dict:
    """Drop empty values so an update never blanks a CMS field."""
    return {k: v for k, v in fields.items() if v not in (None, "", [])}


def build_profile_fields(content: ProfileContent, slug: str) -> dict:
    company = content.company
    plan = (company.plan or CompanyPlan.DISCOVER.value).lower()
    fields = {
        "name": company.name,
        "slug": slug,
        "business-name": company.name,
        "tagline": company.tagline,
        "ai-summary": company.ai_summary,
        "about-text": company.about,
        "short-description": company.tagline or company.ai_summary,
        "meta-description": (company.ai_summary or "")[:160] or None,
        "pricing-information": company.pricing_info,
        "city": company.city,
        "state": company.state,
        "visit-website-2": company.website,
        "call-now-2": company.phone,
        "email": company.email,
        "social-handle": "@" + re.sub(r"[^a-z0-9]", "", company.name.lower()),
        "spotlight": company.status == CompanyStatus.ACTIVE.value,
        "directory": True,
        "package-type": plan,
    }
    if content.logo_url:
        fields["profile-image"] = {"url": content.logo_url}
    if content.gallery:
        fields["gallery"] = [{"url": m.file_url} for m in content.gallery]
    return _compact(fields)


def build_child_records(content: ProfileContent, slug: str, profile_id: str) -> dict[str, list[dict]]:
    """Child CMS records keyed by content kind, each with a stable slug."""
    records: dict[str, list[dict]] = {"services": [], "faqs": [], "locations": [], "reviews": []}

    for i, service in enumerate(content.services, start=1):
        included = list(service.included or [])
        fields = {
            "name": service.name,
            "slug": f"{slug}-service-{i}",
            "profile": profile_id,
            "description": service.description,
        }
        for n in range(1, 5):
            fields[f"included{n}"] = included[n - 1] if len(included) >= n else None
        records["services"].append(_compact(fields))

    for i, faq in enumerate(content.faqs, start=1):
        records["faqs"].append(_compact({
            "name": faq.question,
            "slug": f"{slug}-faq-{i}",
            "profile": profile_id,
            "answer": faq.answer,
            "category": faq.category,
        }))

    for i, location in enumerate(content.locations, start=1):
        records["locations"].append(_compact({
            "name": location.name or content.company.name,
            "slug": f"{slug}-location-{i}",
            "profile": profile_id,
            "address": location.address,
            "city": location.city,
            "state": location.state,
            "zip": location.zip,
            "phone": location.phone,
        }))

    for i, review in enumerate(content.reviews, start=1):
        records["reviews"].append(_compact({
            "name": review.author,
            "slug": f"{slug}-review-{i}",
            "profile": profile_id,
            "review-text": review.text,
            "review-source-company": review.platform,
            "rating": review.rating,
        }))

    return records


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class PublishOrchestrator:
    """Pushes one company's profile into the Webflow profiles collection."""

    def __init__(
        self,
        client: WebflowClient,
        profiles_collection_id: str,
        child_collections: Optional[dict[str, str]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.profiles_collection_id = profiles_collection_id
        self.child_collections = child_collections or {}
        self._clock = clock

    @classmethod
    def from_settings(cls) -> "PublishOrchestrator":
        settings = get_settings()
        if not settings.webflow_api_token or not settings.webflow_profiles_collection_id:
            raise PublishError("Webflow is not configured", status_code=400)
        return cls(
            client=WebflowClient.from_settings(),
            profiles_collection_id=settings.webflow_profiles_collection_id,
            child_collections=settings.webflow_child_collections,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def publish_company_profile(self, content: ProfileContent) -> PublishResult:
        """Create or update the company's profile item and publish it.

        Raises:
            PublishError: when the profile item cannot be created or
                updated. Publish and child-record failures do not raise.
        """
        company = content.company
        slug = company.webflow_slug or profile_slug(company)

        try:
            existing = await self._find_existing(company, slug)
        except WebflowApiError as exc:
            raise PublishError(f"Profile lookup failed: {exc}", exc.status_code) from exc

        if existing is not None:
            remote_id = existing["id"]
            slug = (existing.get("fieldData") or {}).get("slug") or slug
            try:
                await self.client.update_item(
                    self.profiles_collection_id, remote_id, build_profile_fields(content, slug)
                )
            except WebflowApiError as exc:
                raise PublishError(f"Profile update failed: {exc}", exc.status_code) from exc
            status = PublishStatus.UPDATED
        else:
            remote_id, slug = await self._create(content, slug)
            status = PublishStatus.CREATED

        result = PublishResult(status=status, remote_id=remote_id, slug=slug)

        try:
            await self.client.publish_items(self.profiles_collection_id, [remote_id])
        except WebflowApiError as exc:
            logger.warning("Profile %s saved as draft, publish failed: %s", remote_id, exc)
            result.published = False
            result.publish_error = str(exc)

        await self._sync_children(content, result)

        logger.info(
            "Profile %s for company %s (%s, published=%s)",
            status.value, company.id, remote_id, result.published,
        )
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _find_existing(self, company: Company, slug: str) -> Optional[dict]:
        if company.webflow_profile_id:
            try:
                return await self.client.get_item(self.profiles_collection_id, company.webflow_profile_id)
            except WebflowApiError as exc:
                if exc.status_code != 404:
                    raise
                logger.info("Stored profile %s no longer exists, looking up by slug", company.webflow_profile_id)
        return await self.client.find_item_by_slug(self.profiles_collection_id, slug)

    async def _create(self, content: ProfileContent, slug: str) -> tuple[str, str]:
        try:
            item = await self.client.create_item(
                self.profiles_collection_id, build_profile_fields(content, slug)
            )
            return item["id"], slug
        except WebflowApiError as exc:
            if not exc.is_slug_conflict:
                raise PublishError(f"Profile create failed: {exc}", exc.status_code) from exc
            logger.info("Slug %s already taken, retrying with timestamp suffix", slug)

        retry_slug = f"{slug}-{int(self._clock())}"
        try:
            item = await self.client.create_item(
                self.profiles_collection_id, build_profile_fields(content, retry_slug)
            )
        except WebflowApiError as exc:
            raise PublishError(
                f"Profile create failed after slug retry: {exc}", exc.status_code
            ) from exc
        return item["id"], retry_slug

    async def _sync_children(self, content: ProfileContent, result: PublishResult) -> None:
        records = build_child_records(content, result.slug, result.remote_id)
        for kind, collection_id in self.child_collections.items():
            item_ids = []
            for fields in records.get(kind, []):
                try:
                    existing = await self.client.find_item_by_slug(collection_id, fields["slug"])
                    if existing is not None:
                        await self.client.update_item(collection_id, existing["id"], fields)
                        item_ids.append(existing["id"])
                    else:
                        created = await self.client.create_item(collection_id, fields)
                        item_ids.append(created["id"])
                except WebflowApiError as exc:
                    logger.warning("Could not sync %s item %s: %s", kind, fields["slug"], exc)
                    result.child_errors.append(f"{kind}/{fields['slug']}: {exc}")

            result.child_counts[kind] = len(item_ids)
            if not item_ids:
                continue
            try:
                await self.client.publish_items(collection_id, item_ids)
            except WebflowApiError as exc:
                logger.warning("Publishing %d %s items failed: %s", len(item_ids), kind, exc)
                result.child_errors.append(f"{kind}/publish: {exc}")
