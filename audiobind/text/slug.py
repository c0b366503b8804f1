"""Deterministic slug and filename helpers.

Responsibilities:
- Normalize free-form titles into stable ASCII slugs for workspace names.
- Sanitize book titles into safe output filenames without losing readability.
"""

from __future__ import annotations

import re
import unicodedata

_UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


def slugify_title(value: str) -> str:
    """Return a deterministic filesystem-safe ASCII slug for a title."""

    normalized = unicodedata.normalize("NFKD", value)
    ascii_only = normalized.encode("ascii", "ignore").decode("ascii")
    lowered = ascii_only.lower().strip()
    collapsed = re.sub(r"[^a-z0-9]+", "-", lowered)
    slug = collapsed.strip("-")
    return slug or "book"


def sanitize_filename(value: str, fallback: str) -> str:
    """Return `value` with path separators and reserved characters removed.

    Whitespace is collapsed and leading/trailing dots are dropped; `fallback`
    is returned when nothing printable remains.
    """

    cleaned = _UNSAFE_FILENAME_RE.sub(" ", value)
    collapsed = " ".join(cleaned.split()).strip(" .")
    return collapsed or fallback
