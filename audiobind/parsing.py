"""Shared parsing helpers for config values and bibliographic text fields."""

from __future__ import annotations

import html
import re


_TRUE_BOOLEAN_TOKENS = frozenset({"1", "true", "yes", "on"})
_FALSE_BOOLEAN_TOKENS = frozenset({"0", "false", "no", "off"})
_HTML_TAG_RE = re.compile(r"<[^>]*>")


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def parse_permissive_boolean(value: object) -> bool | None:
    """Parse a permissive boolean token and return `None` for invalid values."""

    if isinstance(value, bool):
        return value

    normalized = normalize_optional_string(value)
    if normalized is None:
        return None

    token = normalized.lower()
    if token in _TRUE_BOOLEAN_TOKENS:
        return True
    if token in _FALSE_BOOLEAN_TOKENS:
        return False
    return None


def strip_html_tags(value: str) -> str:
    """Remove HTML/XML tags from a bibliographic field and unescape entities.

    Example: `"<i>Jules Verne</i>"` becomes `"Jules Verne"`.
    """

    without_tags = _HTML_TAG_RE.sub("", value)
    return html.unescape(without_tags).strip()
