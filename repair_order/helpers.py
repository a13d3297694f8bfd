"""Helpers for the loosely shaped values returned by the catalog and order APIs."""

from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .config import DEFAULT_LOCALES

ZERO = Decimal("0")


def normalize_id(value: Any) -> Optional[str]:
    """Normalize an id that may arrive as a string, ``{"_id": ...}`` or ``{"$oid": ...}``."""
    if not value:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        inner = value.get("$oid") or value.get("_id") or value.get("id")
        return normalize_id(inner)
    return None


def display_name(value: Any, locales: Iterable[str] = DEFAULT_LOCALES) -> str:
    """Resolve a plain or multilingual name to a single display string.

    Multilingual names are mappings keyed by locale ({"tr": ..., "en": ..., "de": ...});
    the first non-empty locale in ``locales`` wins. Missing values resolve to "".
    """
    if not value:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        for locale in locales:
            text = value.get(locale)
            if text:
                return str(text)
        # Entries carrying the name one level down, e.g. a whole catalog record.
        if "name" in value:
            return display_name(value["name"], locales)
        return ""
    return str(value)


def to_amount(value: Any) -> Decimal:
    """Convert a bare number to Decimal; anything unparsable becomes zero."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return ZERO


def extract_amount(value: Any) -> Decimal:
    """Read a money value that is either a bare number or ``{"amount": n}``."""
    if isinstance(value, Mapping):
        return to_amount(value.get("amount"))
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return to_amount(value)
    return ZERO


def first_amount(*values: Any) -> Decimal:
    """Return the first non-zero amount among the candidates, else zero."""
    for value in values:
        amount = extract_amount(value)
        if amount:
            return amount
    return ZERO


def pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present (and not None) in a mapping."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default
