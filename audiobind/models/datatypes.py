"""Core datatypes shared across Audiobind modules.

Responsibilities:
- Represent immutable records exchanged between pipeline stages.
- Carry explicit identity keys so ordering never depends on completion time.

Key types:
- `Book`, `Chapter`, `Fragment`, `SynthesisReport`, `ChapterAudio`,
  `ChapterMark`, `BookMetadata`, and `RunResult`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class Chapter:
    """A chapter segmented from source text.

    Attributes:
        index: 1-based chapter index in book order.
        title: Chapter title with the heading marker stripped.
        paragraphs: Ordered non-empty paragraph strings; the title line comes first.
    """

    index: int
    title: str
    paragraphs: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class Book:
    """Ordered chapters of one book.

    Attributes:
        chapters: Chapters in source order; empty chapters are never present.
    """

    chapters: tuple[Chapter, ...] = field(default_factory=tuple)

    @property
    def titles(self) -> list[str]:
        """Return chapter titles in book order."""

        return [chapter.title for chapter in self.chapters]

    def __len__(self) -> int:
        return len(self.chapters)


@dataclass(frozen=True, slots=True)
class Fragment:
    """One paragraph's synthesized audio file.

    Attributes:
        chapter_index: 1-based chapter index.
        paragraph_index: 0-based paragraph index within the chapter.
        path: Fragment audio file in the workspace.
    """

    chapter_index: int
    paragraph_index: int
    path: Path

    @property
    def key(self) -> tuple[int, int]:
        """Return the `(chapter_index, paragraph_index)` identity key."""

        return (self.chapter_index, self.paragraph_index)


@dataclass(frozen=True, slots=True)
class SynthesisReport:
    """Settled outcome of synthesizing every paragraph of one chapter.

    Attributes:
        chapter_index: 1-based chapter index.
        paragraph_count: Number of paragraphs submitted.
        fragments: Produced fragments sorted by paragraph index.
        empty_indices: Paragraphs whose synthesis produced zero bytes.
        failed_indices: Paragraphs whose synthesis raised a provider error.
    """

    chapter_index: int
    paragraph_count: int
    fragments: tuple[Fragment, ...]
    empty_indices: tuple[int, ...] = field(default_factory=tuple)
    failed_indices: tuple[int, ...] = field(default_factory=tuple)

    @property
    def missing_indices(self) -> tuple[int, ...]:
        """Return sorted paragraph indices without a fragment."""

        return tuple(sorted(self.empty_indices + self.failed_indices))


@dataclass(frozen=True, slots=True)
class ChapterAudio:
    """Assembled audio for one chapter.

    Attributes:
        chapter_index: 1-based chapter index.
        path: Chapter audio file in the workspace.
        duration_ms: Measured duration in milliseconds.
        resumed: Whether the file already existed from a previous run.
    """

    chapter_index: int
    path: Path
    duration_ms: int
    resumed: bool = False


@dataclass(frozen=True, slots=True)
class ChapterMark:
    """A named time interval marking one chapter in the final container."""

    title: str
    start_ms: int
    end_ms: int


@dataclass(frozen=True, slots=True)
class BookMetadata:
    """Bibliographic fields written into the final container.

    Attributes:
        title: Book title, also written as album.
        authors: Ordered creator names.
        date: Publication date text.
        description: Free-form description.
        language: Language code.
    """

    title: str | None = None
    authors: tuple[str, ...] = field(default_factory=tuple)
    date: str | None = None
    description: str | None = None
    language: str | None = None

    def is_empty(self) -> bool:
        """Return whether no field carries a value."""

        return not any(
            (self.title, self.authors, self.date, self.description, self.language)
        )


@dataclass(frozen=True, slots=True)
class RunResult:
    """Terminal summary of one pipeline run.

    Attributes:
        output_path: Final audiobook file (tagged, or the untagged container on tag failure).
        chapter_marks: Chapter marks embedded in the container.
        chapter_audio: Per-chapter assembly results in book order.
        tagged: Whether bibliographic tagging succeeded.
    """

    output_path: Path
    chapter_marks: tuple[ChapterMark, ...]
    chapter_audio: tuple[ChapterAudio, ...]
    tagged: bool
