"""Heading-delimited text segmentation.

Responsibilities:
- Convert `# `-headed plain text into ordered chapters of paragraphs.
- Keep deeper headings (`## `, `### `) as verbatim body text.
- Skip preambles written by foreign exporters (`Title: ...` blocks).
"""

from __future__ import annotations

from pathlib import Path

from ..errors import FormatError
from ..models.datatypes import Book, Chapter

HEADING_MARKER = "# "
FOREIGN_PREAMBLE_MARKER = "Title: "


def is_top_level_heading(line: str) -> bool:
    """Return whether a trimmed line is a single-level `# ` heading."""

    return line.startswith(HEADING_MARKER) and line[2:3] != "#"


def strip_heading_marker(line: str) -> str:
    """Strip the leading heading marker from a top-level heading line."""

    return line[len(HEADING_MARKER):].strip()


class Segmenter:
    """Split heading-delimited text into `Book` chapters."""

    def read(self, path: Path) -> Book:
        """Read and segment a UTF-8 text file.

        Raises:
            FormatError: If the file cannot be opened or decoded as text.
        """

        try:
            text = path.read_text(encoding="utf-8-sig")
        except UnicodeDecodeError as exc:
            raise FormatError(
                f"Input `{path}` is not decodable as UTF-8 text: {exc.reason}.",
                hint="Save the segmented text as UTF-8 and rerun.",
            ) from exc
        except OSError as exc:
            raise FormatError(
                f"Cannot open input `{path}`: {exc.strerror or exc}.",
                hint="Verify the input path exists and is readable.",
            ) from exc
        return self.split(text)

    def split(self, text: str) -> Book:
        """Split raw text into chapters.

        Each top-level heading opens a chapter whose first paragraph is the
        stripped title. Blank lines are dropped. Content before the first
        heading is a preamble: it is dropped when it starts with a foreign
        `Title: ` marker and otherwise kept, titled by its first line.
        """

        lines = text.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n").split("\n")
        sections = self.read_sections(lines)
        titles = self.read_titles(lines)

        if sections and not self._starts_with_heading(lines):
            if sections[0][0].startswith(FOREIGN_PREAMBLE_MARKER):
                sections = sections[1:]
            else:
                titles.insert(0, sections[0][0])

        count = min(len(sections), len(titles))
        chapters = [
            Chapter(index=position + 1, title=titles[position], paragraphs=tuple(sections[position]))
            for position in range(count)
        ]
        return Book(chapters=tuple(chapter for chapter in chapters if chapter.paragraphs))

    def read_sections(self, lines: list[str]) -> list[list[str]]:
        """Group non-blank trimmed lines into sections opened by top-level headings."""

        sections: list[list[str]] = []
        current: list[str] = []
        for raw_line in lines:
            line = raw_line.strip()
            if is_top_level_heading(line):
                if current:
                    sections.append(current)
                    current = []
                current.append(strip_heading_marker(line))
                continue
            if line:
                current.append(line)

        if current:
            sections.append(current)
        return sections

    def read_titles(self, lines: list[str]) -> list[str]:
        """Extract top-level heading titles in order."""

        return [
            strip_heading_marker(line)
            for line in (raw_line.strip() for raw_line in lines)
            if is_top_level_heading(line)
        ]

    @staticmethod
    def _starts_with_heading(lines: list[str]) -> bool:
        """Return whether the first non-blank line is a top-level heading."""

        for raw_line in lines:
            line = raw_line.strip()
            if line:
                return is_top_level_heading(line)
        return False
