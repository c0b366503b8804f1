"""Integration tests for the end-to-end build pipeline with in-process fakes."""

from __future__ import annotations

from io import StringIO
from pathlib import Path

import pytest

from audiobind.config import AudiobindConfig
from audiobind.errors import AssemblyError, MuxError, PipelineStageError
from audiobind.io.workspace import Workspace
from audiobind.models import ChapterMark
from audiobind.pipeline import AudiobindPipeline
from audiobind.telemetry.logger import RunLogger
from tests.fakes import FakeSynthesizer, FakeTools
from tests.sample_books import write_sample_opf

INTRO_PARAGRAPHS = ["Intro", "It was a dark night.", "The moon was full."]
CHAPTER_ONE_PARAGRAPHS = ["Chapter One", "## A Subheading", "They set out at dawn."]


def _config(tmp_path: Path, input_path: Path, **overrides: object) -> AudiobindConfig:
    config = AudiobindConfig(
        input_path=input_path,
        output_dir=tmp_path / "out",
        workspace_dir=tmp_path / "workspaces",
        worker_count=2,
    )
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


def _workspace(config: AudiobindConfig) -> Workspace:
    return Workspace.for_source(config.workspace_dir, config.input_path)


def _durations() -> dict[str, int]:
    return {"chapter_1.m4a": 1000, "chapter_2.m4a": 2000}


def test_run_builds_chaptered_book_and_removes_workspace(
    tmp_path: Path,
    segmented_book: Path,
) -> None:
    """A clean run should produce marks, the default-named book, and no workspace."""

    tools = FakeTools(durations_ms=_durations())
    synthesizer = FakeSynthesizer()
    config = _config(tmp_path, segmented_book)

    result = AudiobindPipeline(synthesizer=synthesizer, tools=tools).run(config)

    assert result.output_path == tmp_path / "out" / "generated_book.m4b"
    assert result.output_path.is_file()
    assert result.tagged is True
    assert result.chapter_marks == (
        ChapterMark(title="Intro", start_ms=0, end_ms=1000),
        ChapterMark(title="Chapter One", start_ms=1000, end_ms=3000),
    )
    assert [audio.chapter_index for audio in result.chapter_audio] == [1, 2]
    assert sorted(synthesizer.calls) == sorted(INTRO_PARAGRAPHS + CHAPTER_ONE_PARAGRAPHS)
    assert not _workspace(config).exists()

    marks_document = next(payload for name, payload in tools.calls if name == "mux_metadata")
    assert "START=1000\nEND=3000\ntitle=Chapter One" in str(marks_document)


def test_run_names_and_tags_book_from_opf_metadata(
    tmp_path: Path,
    segmented_book: Path,
) -> None:
    """OPF metadata should drive the output filename and the written tags."""

    tools = FakeTools(durations_ms=_durations())
    config = _config(
        tmp_path,
        segmented_book,
        metadata_path=write_sample_opf(tmp_path / "content.opf"),
    )

    result = AudiobindPipeline(synthesizer=FakeSynthesizer(), tools=tools).run(config)

    assert result.output_path.name == "Around the World in Eighty Days.m4b"
    assert tools.written_tags[0]["artist"] == "Jules Verne, George Makepeace Towle"
    assert tools.written_tags[0]["description"] == "A wager around the globe."


def test_run_keeps_workspace_after_mux_failure_and_resumes_without_synthesis(
    tmp_path: Path,
    segmented_book: Path,
) -> None:
    """Chapters from a failed run should be reused by the next run without new synthesis."""

    config = _config(tmp_path, segmented_book)
    first_synthesizer = FakeSynthesizer()

    with pytest.raises(MuxError):
        AudiobindPipeline(
            synthesizer=first_synthesizer,
            tools=FakeTools(durations_ms=_durations(), fail_on=frozenset({"mux_metadata"})),
        ).run(config)

    workspace = _workspace(config)
    assert workspace.exists()
    assert [path.name for path in workspace.list_chapter_files()] == [
        "chapter_1.m4a",
        "chapter_2.m4a",
    ]

    second_synthesizer = FakeSynthesizer()
    result = AudiobindPipeline(
        synthesizer=second_synthesizer,
        tools=FakeTools(durations_ms=_durations()),
    ).run(config)

    assert second_synthesizer.calls == []
    assert all(audio.resumed for audio in result.chapter_audio)
    assert result.chapter_marks[-1].end_ms == 3000
    assert not workspace.exists()


def test_run_skips_synthesis_for_chapter_already_assembled(
    tmp_path: Path,
    segmented_book: Path,
) -> None:
    """An existing chapter file should prevent synthesis of that chapter only."""

    config = _config(tmp_path, segmented_book)
    workspace = _workspace(config).create()
    workspace.chapter_path(1).write_bytes(b"intro audio from a previous run")
    synthesizer = FakeSynthesizer()
    sink = StringIO()

    result = AudiobindPipeline(
        run_logger=RunLogger(sink=sink),
        synthesizer=synthesizer,
        tools=FakeTools(durations_ms=_durations()),
    ).run(config)

    assert sorted(synthesizer.calls) == sorted(CHAPTER_ONE_PARAGRAPHS)
    assert [audio.resumed for audio in result.chapter_audio] == [True, False]
    assert "event=chapter_skipped chapter=1" in sink.getvalue()


def test_run_drops_failed_paragraphs_but_keeps_the_chapter(
    tmp_path: Path,
    segmented_book: Path,
) -> None:
    """A paragraph that fails synthesis should be omitted from an otherwise normal book."""

    tools = FakeTools(durations_ms=_durations())
    sink = StringIO()
    config = _config(tmp_path, segmented_book)

    result = AudiobindPipeline(
        run_logger=RunLogger(sink=sink),
        synthesizer=FakeSynthesizer(failing=frozenset({"The moon was full."})),
        tools=tools,
    ).run(config)

    assert result.tagged is True
    intro_list = tools.concat_lists[0]
    assert [line.rsplit("/", 1)[-1].rstrip("'") for line in intro_list] == [
        "c1_p_0.mp3",
        "silence.mp3",
        "c1_p_1.mp3",
    ]
    assert "event=paragraphs_dropped" in sink.getvalue()
    assert "failed=1" in sink.getvalue()


def test_run_fails_when_every_paragraph_of_a_chapter_is_empty(
    tmp_path: Path,
    segmented_book: Path,
) -> None:
    """A chapter with no audio at all should abort the run at the assemble stage."""

    config = _config(tmp_path, segmented_book, keep_workspace_on_failure=False)
    synthesizer = FakeSynthesizer(empty=frozenset(CHAPTER_ONE_PARAGRAPHS))

    with pytest.raises(AssemblyError) as exc_info:
        AudiobindPipeline(synthesizer=synthesizer, tools=FakeTools()).run(config)

    assert exc_info.value.stage == "assemble"
    assert "Chapter 2" in exc_info.value.detail
    assert not _workspace(config).exists()


def test_run_keeps_untagged_container_in_output_dir_when_tagging_fails(
    tmp_path: Path,
    segmented_book: Path,
) -> None:
    """A failed tag pass should still deliver the chaptered container."""

    config = _config(tmp_path, segmented_book)

    result = AudiobindPipeline(
        synthesizer=FakeSynthesizer(),
        tools=FakeTools(durations_ms=_durations(), fail_on=frozenset({"write_tags"})),
    ).run(config)

    assert result.tagged is False
    assert result.output_path == tmp_path / "out" / "generated_book.m4a"
    assert result.output_path.is_file()
    assert not (tmp_path / "out" / "generated_book.m4b").exists()
    assert not _workspace(config).exists()


def test_run_reports_stage_progress_in_pipeline_order(
    tmp_path: Path,
    segmented_book: Path,
) -> None:
    """Stage callbacks should follow the fixed stage sequence, once per chapter for loops."""

    stages: list[tuple[str, int, int]] = []
    chapters: list[tuple[int, int, int]] = []

    AudiobindPipeline(
        stage_progress_callback=lambda name, index, total: stages.append((name, index, total)),
        chapter_progress_callback=lambda chapter, done, total: chapters.append(
            (chapter, done, total)
        ),
        synthesizer=FakeSynthesizer(),
        tools=FakeTools(durations_ms=_durations()),
    ).run(_config(tmp_path, segmented_book))

    assert [name for name, _, _ in stages] == [
        "tools",
        "metadata",
        "segment",
        "synthesize",
        "assemble",
        "synthesize",
        "assemble",
        "timeline",
        "mux",
        "tag",
    ]
    assert all(total == 8 for _, _, total in stages)
    assert (1, 3, 3) in chapters and (2, 3, 3) in chapters


def test_run_rejects_missing_input_before_any_work(tmp_path: Path) -> None:
    """A missing input file should fail at config without touching tools."""

    tools = FakeTools()

    with pytest.raises(PipelineStageError) as exc_info:
        AudiobindPipeline(synthesizer=FakeSynthesizer(), tools=tools).run(
            _config(tmp_path, tmp_path / "missing.txt")
        )

    assert exc_info.value.stage == "config"
    assert tools.calls == []


def test_run_rejects_text_without_chapters(tmp_path: Path) -> None:
    """Input with no content should fail at segment before a workspace is created."""

    source = tmp_path / "blank.txt"
    source.write_text("\n\n", encoding="utf-8")
    config = _config(tmp_path, source)

    with pytest.raises(PipelineStageError) as exc_info:
        AudiobindPipeline(synthesizer=FakeSynthesizer(), tools=FakeTools()).run(config)

    assert exc_info.value.stage == "segment"
    assert not _workspace(config).exists()
