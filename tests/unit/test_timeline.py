"""Unit tests for chapter timeline construction and ffmetadata rendering."""

from __future__ import annotations

from pathlib import Path

from audiobind.audio.timeline import ChapterTimelineBuilder, escape_ffmetadata_value
from audiobind.models import ChapterMark


def test_build_accumulates_durations_into_chapter_ranges() -> None:
    """Marks should start at zero and advance by each chapter duration."""

    marks = ChapterTimelineBuilder().build(["Intro", "Chapter One"], [1000, 2000])

    assert marks == [
        ChapterMark(title="Intro", start_ms=0, end_ms=1000),
        ChapterMark(title="Chapter One", start_ms=1000, end_ms=3000),
    ]


def test_build_produces_contiguous_ranges_covering_total_duration() -> None:
    """Each mark should begin where the previous ended, including zero-length chapters."""

    durations = [5, 0, 17, 1200, 3_600_000]
    titles = [f"Chapter {number}" for number in range(1, len(durations) + 1)]

    marks = ChapterTimelineBuilder().build(titles, durations)

    assert marks[0].start_ms == 0
    assert marks[-1].end_ms == sum(durations)
    for previous, current in zip(marks, marks[1:]):
        assert current.start_ms == previous.end_ms
    assert all(mark.end_ms >= mark.start_ms for mark in marks)


def test_build_ends_titles_without_durations_at_the_total() -> None:
    """A title beyond the known durations should collapse onto the end of the book."""

    marks = ChapterTimelineBuilder().build(["A", "B", "C"], [100, 200])

    assert marks[-1] == ChapterMark(title="C", start_ms=300, end_ms=300)


def test_build_with_no_titles_returns_no_marks() -> None:
    """An empty title list should yield an empty timeline."""

    assert ChapterTimelineBuilder().build([], []) == []


def test_render_writes_ffmetadata_chapter_blocks() -> None:
    """Rendering should emit the header and one millisecond-timebase block per mark."""

    document = ChapterTimelineBuilder().render(
        [
            ChapterMark(title="Intro", start_ms=0, end_ms=1000),
            ChapterMark(title="Chapter One", start_ms=1000, end_ms=3000),
        ]
    )

    assert document == (
        ";FFMETADATA1\n"
        "\n"
        "[CHAPTER]\n"
        "TIMEBASE=1/1000\n"
        "START=0\n"
        "END=1000\n"
        "title=Intro\n"
        "\n"
        "[CHAPTER]\n"
        "TIMEBASE=1/1000\n"
        "START=1000\n"
        "END=3000\n"
        "title=Chapter One\n"
    )


def test_escape_ffmetadata_value_escapes_reserved_characters() -> None:
    """Backslashes, `=`, `;`, `#`, and newlines should be backslash-escaped."""

    assert escape_ffmetadata_value("A=B; #1 \\ x") == "A\\=B\\; \\#1 \\\\ x"
    assert escape_ffmetadata_value("two\nlines") == "two\\\nlines"


def test_write_persists_rendered_document(tmp_path: Path) -> None:
    """`write` should store exactly the rendered document at the requested path."""

    builder = ChapterTimelineBuilder()
    marks = builder.build(["Only"], [42])
    target = tmp_path / "nested" / "chapters.txt"

    builder.write(marks, target)

    assert target.read_text(encoding="utf-8") == builder.render(marks)
