"""Flat company attributes from an intake (ROMA) document.

Each target column has an ordered list of candidate paths; the first one
holding a known value wins. Unknown values are left out of the result
entirely so a re-extraction never blanks a column that already holds
good data.
"""

import logging
from typing import Any

from roma_crm.services.intake_values import (
    clean,
    first_present,
    resolve_path,
)

logger = logging.getLogger(__name__)

_LOCATION = "locations_and_hours"
_PRIMARY = f"{_LOCATION}.primary_location"

FIELD_PATHS: dict[str, tuple[str, ...]] = {
    "name": ("hero.business_name",),
    "website": ("hero.quick_actions.website_url", "footer.website_url"),
    "ai_summary": ("ai_overview.overview_line",),
    "about": ("about_and_badges.ai_summary_120w",),
    "tagline": ("hero.tagline",),
    "phone": (
        f"{_PRIMARY}.phone",
        "hero.quick_actions.call_tel",
        "footer.phone_e164",
    ),
    "email": ("hero.quick_actions.email_mailto", "footer.email"),
    "address": (
        f"{_PRIMARY}.full_address",
        f"{_LOCATION}.full_address",
        f"{_PRIMARY}.address_line_1",
        f"{_LOCATION}.address_line_1",
    ),
    "city": (f"{_PRIMARY}.city", f"{_LOCATION}.city"),
    "state": (f"{_PRIMARY}.state", f"{_LOCATION}.state"),
    "zip": (f"{_PRIMARY}.zip", f"{_PRIMARY}.postalCode", f"{_LOCATION}.zip"),
    "google_maps_url": ("hero.quick_actions.maps_link", "footer.get_directions_url"),
    "pricing_info": ("pricing_information.summary_line",),
    "facebook_url": ("footer.social.facebook",),
    "instagram_url": ("footer.social.instagram",),
    "youtube_url": ("footer.social.youtube",),
}

# Scheme prefixes removed before a value is stored
FIELD_PREFIXES: dict[str, tuple[str, ...]] = {
    "phone": ("tel:",),
    "email": ("mailto:",),
}

BADGE_PATH = "about_and_badges.company_badges"
MAX_BADGES = 4


def _badge_text(badge: Any) -> str | None:
    if isinstance(badge, dict):
        return clean(badge.get("text")) or clean(badge.get("label"))
    return clean(badge)


def _extract_badges(document: dict) -> dict[str, str]:
    badges = resolve_path(document, BADGE_PATH)
    if isinstance(badges, dict):
        badges = list(badges.values())
    if not isinstance(badges, list):
        return {}

    texts = [text for text in (_badge_text(b) for b in badges) if text]
    return {f"tag{i}": text for i, text in enumerate(texts[:MAX_BADGES], start=1)}


def extract(document: Any) -> dict[str, str]:
    """Extract company column values from an intake document.

    Args:
        document: Parsed intake JSON. Anything that is not a mapping
            yields an empty result.

    Returns:
        Mapping of company column name to value, containing only the
        columns for which a known value was found.
    """
    if not isinstance(document, dict):
        return {}

    fields: dict[str, str] = {}
    for field_name, paths in FIELD_PATHS.items():
        value = first_present(document, paths, FIELD_PREFIXES.get(field_name, ()))
        if value is not None:
            fields[field_name] = value

    fields.update(_extract_badges(document))

    logger.debug("Extracted %d fields from intake document", len(fields))
    return fields
