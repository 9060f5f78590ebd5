"""Shape adapters for list-valued intake sections.

The same logical list shows up in more than one shape: older captures
use keyed objects (``review_1``, ``review_2``...) and newer ones use
arrays (``featured_reviews.items``). Documents often mix both, so every
adapter for a section runs and the results are concatenated instead of
picking a single "version".

Each adapter is a pure ``document -> list`` function that never raises.
"""

import re
from typing import Any, Callable, Iterable

from roma_crm.services.intake_values import resolve_path

RawItem = Any
ShapeAdapter = Callable[[Any], list[RawItem]]


# ---------------------------------------------------------------------------
# Generic shapes
# ---------------------------------------------------------------------------


def keyed_items(section: Any, prefix: str) -> list[RawItem]:
    """Values of ``{prefix}_N`` keys, ordered by N."""
    if not isinstance(section, dict):
        return []
    pattern = re.compile(rf"^{re.escape(prefix)}_(\d+)$")
    numbered = []
    for key, value in section.items():
        match = pattern.match(str(key))
        if match and value is not None:
            numbered.append((int(match.group(1)), value))
    numbered.sort(key=lambda pair: pair[0])
    return [value for _, value in numbered]


def array_items(section: Any, key: str | None = None) -> list[RawItem]:
    """The list at ``section[key]``, or *section* itself when it is a list."""
    if isinstance(section, list):
        return [item for item in section if item is not None]
    if key and isinstance(section, dict):
        items = section.get(key)
        if isinstance(items, list):
            return [item for item in items if item is not None]
    return []


def collect(document: Any, adapters: Iterable[ShapeAdapter]) -> list[RawItem]:
    """Run every adapter over *document* and concatenate the results."""
    items: list[RawItem] = []
    for adapter in adapters:
        items.extend(adapter(document))
    return items


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------


def reviews_keyed(document: Any) -> list[RawItem]:
    return keyed_items(resolve_path(document, "featured_reviews"), "review")


def reviews_array(document: Any) -> list[RawItem]:
    return array_items(resolve_path(document, "featured_reviews"), "items")


REVIEW_ADAPTERS: tuple[ShapeAdapter, ...] = (reviews_keyed, reviews_array)


# ---------------------------------------------------------------------------
# Photos
# ---------------------------------------------------------------------------


def photos_keyed(document: Any) -> list[RawItem]:
    return keyed_items(resolve_path(document, "photo_gallery"), "image")


def photos_array(document: Any) -> list[RawItem]:
    return array_items(resolve_path(document, "photo_gallery"), "images")


PHOTO_ADAPTERS: tuple[ShapeAdapter, ...] = (photos_keyed, photos_array)


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


def services_keyed(document: Any) -> list[RawItem]:
    return keyed_items(resolve_path(document, "services"), "service")


def services_array(document: Any) -> list[RawItem]:
    return array_items(resolve_path(document, "services"), "items")


SERVICE_ADAPTERS: tuple[ShapeAdapter, ...] = (services_keyed, services_array)


# ---------------------------------------------------------------------------
# FAQs
# ---------------------------------------------------------------------------


def faqs_grouped(document: Any) -> list[RawItem]:
    """``faqs.all_questions`` maps a category name to a list of Q&A objects."""
    groups = resolve_path(document, "faqs.all_questions")
    if not isinstance(groups, dict):
        return []
    items = []
    for category, entries in groups.items():
        for entry in array_items(entries):
            if isinstance(entry, dict):
                items.append({**entry, "category": entry.get("category") or category})
    return items


def faqs_array(document: Any) -> list[RawItem]:
    faqs = resolve_path(document, "faqs")
    return array_items(faqs, "items") + keyed_items(faqs, "faq")


FAQ_ADAPTERS: tuple[ShapeAdapter, ...] = (faqs_grouped, faqs_array)


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------


def locations_primary(document: Any) -> list[RawItem]:
    primary = resolve_path(document, "locations_and_hours.primary_location")
    if isinstance(primary, dict) and primary:
        return [{**primary, "is_primary": True}]
    return []


def locations_additional(document: Any) -> list[RawItem]:
    section = resolve_path(document, "locations_and_hours")
    return array_items(section, "additional_locations") + keyed_items(section, "location")


LOCATION_ADAPTERS: tuple[ShapeAdapter, ...] = (locations_primary, locations_additional)
