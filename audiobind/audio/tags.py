"""Bibliographic tagging and cover embedding for the final audiobook.

Responsibilities:
- Map `BookMetadata` to container tags with HTML markup stripped.
- Name the deliverable after the book title.
- Crop cover art to a top-left square and embed it as MP4 artwork.
- Keep the untagged container when tagging fails.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from mutagen import MutagenError
from mutagen.mp4 import MP4, MP4Cover
from PIL import Image

from ..models.datatypes import BookMetadata
from ..parsing import normalize_optional_string, strip_html_tags
from ..telemetry.logger import RunLogger
from ..text.slug import sanitize_filename
from .ffmpeg import FFmpegTools, ToolCallError

DEFAULT_BOOK_NAME = "generated_book"
OUTPUT_SUFFIX = ".m4b"
AUTHOR_SEPARATOR = ", "


@dataclass(frozen=True, slots=True)
class TagResult:
    """Outcome of the tagging step.

    Attributes:
        path: Final deliverable path (the untagged container when tagging failed).
        tagged: Whether metadata tags were written.
        cover_embedded: Whether cover art was embedded.
    """

    path: Path
    tagged: bool
    cover_embedded: bool = False


def build_tags(metadata: BookMetadata | None) -> dict[str, str]:
    """Return container tag key/values for present metadata fields."""

    if metadata is None or metadata.is_empty():
        return {}

    tags: dict[str, str] = {}
    title = _clean(metadata.title)
    if title:
        tags["title"] = title
        tags["album"] = title
    authors = [author for author in (_clean(value) for value in metadata.authors) if author]
    if authors:
        joined = AUTHOR_SEPARATOR.join(authors)
        tags["artist"] = joined
        tags["author"] = joined
    for key, value in (
        ("date", metadata.date),
        ("description", metadata.description),
        ("language", metadata.language),
    ):
        cleaned = _clean(value)
        if cleaned:
            tags[key] = cleaned
    return tags


def output_filename(metadata: BookMetadata | None) -> str:
    """Return `<title>.m4b`, or `generated_book.m4b` without a usable title."""

    title = _clean(metadata.title) if metadata is not None else None
    stem = sanitize_filename(title or "", DEFAULT_BOOK_NAME)
    return f"{stem}{OUTPUT_SUFFIX}"


def crop_square_cover(source_path: Path, output_path: Path) -> Path:
    """Crop an image to its top-left square and save it as JPEG."""

    with Image.open(source_path) as image:
        side = min(image.width, image.height)
        cropped = image.crop((0, 0, side, side))
        if cropped.mode != "RGB":
            cropped = cropped.convert("RGB")
        output_path.parent.mkdir(parents=True, exist_ok=True)
        cropped.save(output_path, format="JPEG")
    return output_path


def embed_cover(audio_path: Path, cover_path: Path) -> None:
    """Embed a square-cropped cover image as MP4 `covr` artwork."""

    cropped_path = audio_path.with_name(f"{audio_path.stem}.cover.jpg")
    try:
        crop_square_cover(cover_path, cropped_path)
        audio = MP4(audio_path)
        audio["covr"] = [MP4Cover(cropped_path.read_bytes(), imageformat=MP4Cover.FORMAT_JPEG)]
        audio.save()
    finally:
        if cropped_path.exists():
            cropped_path.unlink()


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return normalize_optional_string(strip_html_tags(value))


class Tagger:
    """Write the tagged deliverable from the chaptered container."""

    def __init__(self, tools: FFmpegTools, run_logger: RunLogger | None = None) -> None:
        self._tools = tools
        self._run_logger = run_logger

    def tag(
        self,
        container_path: Path,
        metadata: BookMetadata | None,
        cover_path: Path | None,
        output_dir: Path,
    ) -> TagResult:
        """Tag `container_path` into `output_dir` and embed the optional cover.

        On tag failure the tool diagnostics are logged and the untagged
        container is returned; cover failures never fail the step.
        """

        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / output_filename(metadata)
        tags = build_tags(metadata)

        try:
            self._tools.write_tags(container_path, output_path, tags)
        except ToolCallError as exc:
            if output_path.exists() and output_path != container_path:
                output_path.unlink()
            if self._run_logger is not None:
                self._run_logger.log_warning("tag", "tagging_failed", kept=container_path.name)
                self._run_logger.log_tool_diagnostic("tag", exc.tool, exc.stderr)
            return TagResult(path=container_path, tagged=False)

        if container_path.exists() and container_path != output_path:
            container_path.unlink()

        cover_embedded = False
        if cover_path is not None:
            cover_embedded = self._embed_cover(output_path, cover_path)

        if self._run_logger is not None:
            self._run_logger.log_event(
                "tag",
                "tags_written",
                path=output_path.name,
                tags=len(tags),
                cover=cover_embedded,
            )
        return TagResult(path=output_path, tagged=True, cover_embedded=cover_embedded)

    def _embed_cover(self, audio_path: Path, cover_path: Path) -> bool:
        try:
            embed_cover(audio_path, cover_path)
        except (OSError, MutagenError) as exc:
            if self._run_logger is not None:
                self._run_logger.log_warning(
                    "tag",
                    "cover_failed",
                    cover=cover_path.name,
                    error_type=type(exc).__name__,
                )
            return False
        return True
