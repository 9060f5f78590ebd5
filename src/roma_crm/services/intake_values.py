"""Raw value access for intake (ROMA) documents.

Intake documents are produced by an LLM research prompt and mark unknown
facts with the ``<>`` placeholder, sometimes behind a scheme prefix
(``tel:<>``, ``mailto:<>``, ``https://maps.google.com/?q=<>``). Every read
of a raw document value goes through :func:`is_unknown` so the
placeholder convention lives in exactly one place.
"""

from typing import Any, Iterable, Optional

SENTINEL = "<>"

_NULL_STRINGS = {"null", "undefined", "none", "n/a"}


def is_unknown(value: Any) -> bool:
    """True when *value* carries no usable information."""
    if value is None:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return False
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return True
        if stripped.lower() in _NULL_STRINGS:
            return True
        return SENTINEL in stripped
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def clean(value: Any) -> Optional[str]:
    """Return *value* as a stripped string, or None when unknown.

    Non-string scalars are stringified; containers are never text.
    """
    if is_unknown(value) or isinstance(value, (list, tuple, dict)):
        return None
    return str(value).strip()


def resolve_path(document: Any, path: str) -> Any:
    """Walk a dotted *path* through nested mappings.

    Any missing or non-mapping intermediate resolves to None.
    """
    node = document
    for key in path.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(key)
        if node is None:
            return None
    return node


def first_present(
    document: Any, paths: Iterable[str], prefixes: Iterable[str] = ()
) -> Optional[str]:
    """Return the first known value among candidate *paths*.

    *prefixes* are stripped from each candidate before it is accepted, so
    a bare ``tel:`` falls through to the next path.
    """
    for path in paths:
        value = strip_prefix(clean(resolve_path(document, path)), prefixes)
        if value is not None:
            return value
    return None


def pick(item: dict, keys: Iterable[str]) -> Optional[str]:
    """First known value among *keys* of a single raw item."""
    for key in keys:
        value = clean(item.get(key))
        if value is not None:
            return value
    return None


def strip_prefix(value: Optional[str], prefixes: Iterable[str]) -> Optional[str]:
    """Drop a leading scheme prefix such as ``tel:`` (case-insensitive)."""
    if value is None:
        return None
    lowered = value.lower()
    for prefix in prefixes:
        if lowered.startswith(prefix):
            value = value[len(prefix):].strip()
            break
    return value or None
