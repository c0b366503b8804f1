"""Scratch workspace for one audiobook run.

Responsibilities:
- Own the per-book directory holding fragments, chapter audio, the silence pad,
  concat lists, and the chapter-marker document.
- Provide deterministic artifact naming keyed by chapter/paragraph identity.
- Recover leftover fragment and chapter files from an interrupted run.
"""

from __future__ import annotations

from hashlib import sha256
from pathlib import Path
import re
import shutil

from ..models.datatypes import Fragment
from ..text.slug import slugify_title

_FRAGMENT_NAME_RE = re.compile(r"^c(?P<chapter>\d+)_p_(?P<paragraph>\d+)\.mp3$")
_CHAPTER_NAME_RE = re.compile(r"chapter_(?P<number>\d+)\.m4a$")


def parse_fragment_name(name: str) -> tuple[int, int] | None:
    """Parse `(chapter_index, paragraph_index)` from a fragment filename."""

    match = _FRAGMENT_NAME_RE.match(name)
    if match is None:
        return None
    return int(match.group("chapter")), int(match.group("paragraph"))


def parse_chapter_number(name: str) -> int | None:
    """Parse the chapter-number token from a chapter audio filename."""

    match = _CHAPTER_NAME_RE.search(name)
    if match is None:
        return None
    return int(match.group("number"))


def chapter_file_sort_key(path: Path) -> tuple[int, int, str]:
    """Sort chapter files numerically by chapter token, unresolvable names last."""

    number = parse_chapter_number(path.name)
    if number is None:
        return (1, 0, path.name)
    return (0, number, path.name)


class Workspace:
    """Filesystem-backed scratch directory shared by every pipeline stage."""

    FRAGMENT_SUFFIX = ".mp3"
    CHAPTER_SUFFIX = ".m4a"

    def __init__(self, root: Path) -> None:
        """Initialize the workspace with its root directory."""

        self.root = root

    @classmethod
    def for_source(cls, base_dir: Path, source_path: Path) -> "Workspace":
        """Derive a stable per-book workspace under `base_dir` for one source file."""

        digest = sha256(str(source_path.resolve()).encode("utf-8")).hexdigest()
        return cls(base_dir / f"{slugify_title(source_path.stem)}-{digest[:8]}")

    def create(self) -> "Workspace":
        """Create the workspace directory when missing and return self."""

        self.root.mkdir(parents=True, exist_ok=True)
        return self

    def remove(self) -> None:
        """Remove the workspace directory and everything inside it."""

        if self.root.exists():
            shutil.rmtree(self.root)

    def exists(self) -> bool:
        """Return whether the workspace directory exists."""

        return self.root.is_dir()

    def fragment_path(self, chapter_index: int, paragraph_index: int) -> Path:
        """Return the fragment path for one `(chapter, paragraph)` identity."""

        return self.root / f"c{chapter_index}_p_{paragraph_index}{self.FRAGMENT_SUFFIX}"

    def chapter_path(self, chapter_index: int) -> Path:
        """Return the assembled chapter audio path for one chapter."""

        return self.root / f"chapter_{chapter_index}{self.CHAPTER_SUFFIX}"

    @property
    def silence_path(self) -> Path:
        """Return the cached inter-paragraph silence pad path."""

        return self.root / f"silence{self.FRAGMENT_SUFFIX}"

    @property
    def chapter_marks_path(self) -> Path:
        """Return the chapter-marker metadata document path."""

        return self.root / "chapters.txt"

    @property
    def intermediate_container_path(self) -> Path:
        """Return the concatenated, not yet chaptered, container path."""

        return self.root / "concat_book.m4a"

    @property
    def container_path(self) -> Path:
        """Return the chaptered, untagged container path."""

        return self.root / "book.m4a"

    def concat_list_path(self, name: str) -> Path:
        """Return a concat-demuxer list path for one named concatenation."""

        return self.root / f"{name}.concat.txt"

    def list_fragments(self, chapter_index: int) -> list[Fragment]:
        """List non-empty fragment files of one chapter in paragraph order.

        Ordering is numeric by paragraph index, so `p_2` precedes `p_10`.
        """

        if not self.exists():
            return []
        fragments: list[Fragment] = []
        for path in self.root.iterdir():
            identity = parse_fragment_name(path.name)
            if identity is None or identity[0] != chapter_index:
                continue
            if not path.is_file() or path.stat().st_size == 0:
                continue
            fragments.append(
                Fragment(chapter_index=identity[0], paragraph_index=identity[1], path=path)
            )
        return sorted(fragments, key=lambda item: item.key)

    def list_chapter_files(self) -> list[Path]:
        """List assembled chapter audio files ordered by chapter number."""

        if not self.exists():
            return []
        files = [
            path
            for path in self.root.iterdir()
            if path.is_file()
            and path.suffix == self.CHAPTER_SUFFIX
            and path.name.startswith("chapter_")
        ]
        return sorted(files, key=chapter_file_sort_key)

    def write_concat_list(self, list_path: Path, files: list[Path]) -> Path:
        """Write an ffmpeg concat-demuxer list for the given files in order."""

        list_path.parent.mkdir(parents=True, exist_ok=True)
        content = "\n".join(
            f"file '{self._escape_concat_path(path.resolve())}'" for path in files
        )
        list_path.write_text(content + "\n", encoding="utf-8")
        return list_path

    @staticmethod
    def _escape_concat_path(path: Path) -> str:
        """Escape one file path for ffmpeg concat list format."""

        return str(path).replace("'", "'\\''")
