"""OPF package-document metadata reader.

Responsibilities:
- Read Dublin Core title, date, description, language, and every creator.
- Tolerate namespace prefixes by matching element local names.
"""

from __future__ import annotations

from pathlib import Path
import xml.etree.ElementTree as ET

from ..errors import FormatError
from ..models.datatypes import BookMetadata
from ..parsing import normalize_optional_string


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _element_text(element: ET.Element) -> str | None:
    return normalize_optional_string("".join(element.itertext()))


def read_opf_metadata(path: Path) -> BookMetadata:
    """Parse an OPF package document into `BookMetadata`.

    Fields missing from the document stay `None`; creators keep document order.

    Raises:
        FormatError: When the file cannot be read or is not well-formed XML.
    """

    try:
        root = ET.parse(path).getroot()
    except (ET.ParseError, OSError) as exc:
        raise FormatError(
            f"OPF metadata `{path.name}` could not be parsed: {exc}",
            stage="metadata",
            hint="Pass the `content.opf` package document extracted from the EPUB.",
        ) from exc

    metadata_node = next(
        (child for child in root if _local_name(child.tag) == "metadata"),
        None,
    )
    if metadata_node is None:
        return BookMetadata()

    fields: dict[str, str | None] = {}
    authors: list[str] = []
    for child in metadata_node:
        name = _local_name(child.tag)
        if name == "creator":
            author = _element_text(child)
            if author:
                authors.append(author)
        elif name in {"title", "date", "description", "language"} and name not in fields:
            fields[name] = _element_text(child)

    return BookMetadata(
        title=fields.get("title"),
        authors=tuple(authors),
        date=fields.get("date"),
        description=fields.get("description"),
        language=fields.get("language"),
    )
