"""Chapter timeline construction and ffmetadata rendering.

Responsibilities:
- Turn ordered chapter titles and durations into contiguous chapter marks.
- Render and write the ffmetadata chapter document consumed by the container mux.
"""

from __future__ import annotations

from pathlib import Path

from ..models.datatypes import ChapterMark

FFMETADATA_HEADER = ";FFMETADATA1"
TIMEBASE = "1/1000"

_ESCAPED_CHARACTERS = ("=", ";", "#")


def escape_ffmetadata_value(value: str) -> str:
    """Escape ffmetadata special characters in one value."""

    escaped = value.replace("\\", "\\\\")
    for character in _ESCAPED_CHARACTERS:
        escaped = escaped.replace(character, f"\\{character}")
    return escaped.replace("\n", "\\\n")


class ChapterTimelineBuilder:
    """Build cumulative chapter marks in milliseconds."""

    def build(self, titles: list[str], durations_ms: list[int]) -> list[ChapterMark]:
        """Return one mark per title with contiguous, non-overlapping ranges.

        A title beyond the known durations ends at the sum of all known durations.
        """

        total_ms = sum(durations_ms)
        marks: list[ChapterMark] = []
        cursor = 0
        for position, title in enumerate(titles):
            start_ms = cursor
            if position < len(durations_ms):
                end_ms = start_ms + durations_ms[position]
            else:
                end_ms = total_ms
            marks.append(ChapterMark(title=title, start_ms=start_ms, end_ms=end_ms))
            cursor = end_ms
        return marks

    def render(self, marks: list[ChapterMark]) -> str:
        """Render marks as an ffmetadata document."""

        lines = [FFMETADATA_HEADER]
        for mark in marks:
            lines.extend(
                [
                    "",
                    "[CHAPTER]",
                    f"TIMEBASE={TIMEBASE}",
                    f"START={mark.start_ms}",
                    f"END={mark.end_ms}",
                    f"title={escape_ffmetadata_value(mark.title)}",
                ]
            )
        return "\n".join(lines) + "\n"

    def write(self, marks: list[ChapterMark], path: Path) -> Path:
        """Write the rendered ffmetadata document to `path`."""

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render(marks), encoding="utf-8")
        return path
