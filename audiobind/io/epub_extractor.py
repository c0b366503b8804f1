"""EPUB to segmented-text extraction.

Responsibilities:
- Walk EPUB spine documents in reading order.
- Treat `h1` and `h2.chapter` elements as chapter headings.
- Drop front-matter and navigation chapters by title.
- Emit `# <title>` segmented text consumable by the segmenter.
"""

from __future__ import annotations

from pathlib import Path
import re
import zipfile

import ebooklib
from bs4 import BeautifulSoup, Tag
from ebooklib import epub

from ..errors import FormatError

FILTERED_TITLE_PHRASES = (
    "copyright",
    "landmarks",
    "table of contents",
    "illustration",
    "contents",
    "navigation",
)
BLOCK_TAGS = ("p", "div", "li", "blockquote", "pre", "h1", "h2", "h3", "h4", "h5", "h6")

_WHITESPACE_RE = re.compile(r"\s+")


def is_filtered_title(title: str) -> bool:
    """Return whether a chapter title names front matter or navigation."""

    lowered = title.lower()
    return any(phrase in lowered for phrase in FILTERED_TITLE_PHRASES)


def is_chapter_heading(element: Tag) -> bool:
    """Return whether an element starts a chapter (`h1` or `h2.chapter`)."""

    if element.name == "h1":
        return True
    return element.name == "h2" and "chapter" in (element.get("class") or [])


def render_segmented_text(chapters: list[tuple[str, list[str]]]) -> str:
    """Render `(title, paragraphs)` pairs as segmented text blocks."""

    blocks = [f"# {title}\n" + "\n".join(paragraphs) + "\n\n" for title, paragraphs in chapters]
    return "".join(blocks)


class EpubTextExtractor:
    """Extract chapters from an EPUB into heading-delimited plain text."""

    def extract(self, epub_path: Path) -> list[tuple[str, list[str]]]:
        """Return kept chapters as `(title, paragraphs)` in reading order.

        Raises:
            FormatError: When the EPUB cannot be opened or parsed.
        """

        book = self._read_book(epub_path)
        chapters: list[tuple[str, list[str]]] = []
        current_title: str | None = None
        current_paragraphs: list[str] = []
        skip_current = False
        seen_items: set[str] = set()

        def flush() -> None:
            if current_title is not None and not skip_current:
                chapters.append((current_title, list(current_paragraphs)))

        for item in self._spine_documents(book):
            if item.get_id() in seen_items:
                continue
            seen_items.add(item.get_id())

            soup = BeautifulSoup(item.get_content(), "html.parser")
            body = soup.body or soup
            for element in self._leaf_blocks(body):
                text = _WHITESPACE_RE.sub(" ", element.get_text(" ", strip=True)).strip()
                if is_chapter_heading(element):
                    if not text:
                        continue
                    flush()
                    current_title = text
                    current_paragraphs = []
                    skip_current = is_filtered_title(text)
                    continue
                if text and current_title is not None and not skip_current:
                    current_paragraphs.append(text)

        flush()
        return chapters

    def write(self, epub_path: Path, output_path: Path) -> Path:
        """Extract `epub_path` and write segmented text to `output_path`."""

        text = render_segmented_text(self.extract(epub_path))
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8")
        return output_path

    def _read_book(self, epub_path: Path) -> epub.EpubBook:
        try:
            return epub.read_epub(str(epub_path))
        except (epub.EpubException, zipfile.BadZipFile, KeyError, OSError) as exc:
            raise FormatError(
                f"EPUB `{epub_path.name}` could not be read: {exc}",
                stage="extract",
                hint="Provide a valid, DRM-free EPUB file.",
            ) from exc

    def _spine_documents(self, book: epub.EpubBook) -> list[epub.EpubItem]:
        """Return XHTML documents in spine order."""

        documents = []
        for entry in book.spine:
            item_id = entry[0] if isinstance(entry, tuple) else entry
            item = book.get_item_with_id(item_id)
            if item is not None and item.get_type() == ebooklib.ITEM_DOCUMENT:
                documents.append(item)
        return documents

    def _leaf_blocks(self, root: Tag) -> list[Tag]:
        """Return block elements in document order, skipping ones that wrap other blocks.

        Headings always count as blocks so chapter boundaries are never lost.
        """

        leaves: list[Tag] = []
        for element in root.find_all(BLOCK_TAGS):
            if any(is_chapter_heading(parent) for parent in element.parents):
                continue
            if is_chapter_heading(element) or element.find(BLOCK_TAGS) is None:
                leaves.append(element)
        return leaves
