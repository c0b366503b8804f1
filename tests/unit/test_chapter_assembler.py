"""Unit tests for chapter assembly from paragraph fragments."""

from __future__ import annotations

import pytest

from audiobind.audio import ChapterAssembler
from audiobind.errors import AssemblyError
from audiobind.io.workspace import Workspace
from audiobind.models import Fragment
from tests.fakes import FakeTools


def _fragment(workspace: Workspace, chapter_index: int, paragraph_index: int) -> Fragment:
    path = workspace.fragment_path(chapter_index, paragraph_index)
    path.write_bytes(f"fragment {paragraph_index}".encode("utf-8"))
    return Fragment(chapter_index=chapter_index, paragraph_index=paragraph_index, path=path)


def _listed_names(lines: list[str]) -> list[str]:
    return [line.rsplit("/", 1)[-1].rstrip("'") for line in lines]


def test_assemble_interleaves_silence_between_numerically_ordered_fragments(
    workspace: Workspace,
) -> None:
    """Fragments should be ordered 0, 2, 10 with the silence pad only between them."""

    tools = FakeTools(durations_ms={"chapter_1.m4a": 4321})
    fragments = [_fragment(workspace, 1, index) for index in (10, 0, 2)]

    audio = ChapterAssembler(tools, workspace).assemble(1, fragments)

    assert _listed_names(tools.concat_lists[0]) == [
        "c1_p_0.mp3",
        "silence.mp3",
        "c1_p_2.mp3",
        "silence.mp3",
        "c1_p_10.mp3",
    ]
    assert ("generate_silence", 1.0) in tools.calls
    assert ("concat", ("chapter_1.m4a", "aac", "69k")) in tools.calls
    assert audio.duration_ms == 4321
    assert audio.path == workspace.chapter_path(1)
    assert audio.resumed is False


def test_assemble_removes_consumed_fragments_and_concat_list(workspace: Workspace) -> None:
    """After encoding, fragments and the chapter concat list should be gone."""

    fragments = [_fragment(workspace, 1, index) for index in (0, 1)]

    ChapterAssembler(FakeTools(), workspace).assemble(1, fragments)

    assert workspace.chapter_path(1).is_file()
    assert all(not fragment.path.exists() for fragment in fragments)
    assert not workspace.concat_list_path("chapter_1").exists()


def test_assemble_single_fragment_needs_no_silence(workspace: Workspace) -> None:
    """A one-fragment chapter should be encoded without generating the silence pad."""

    tools = FakeTools()

    ChapterAssembler(tools, workspace).assemble(1, [_fragment(workspace, 1, 0)])

    assert "generate_silence" not in tools.operations()
    assert _listed_names(tools.concat_lists[0]) == ["c1_p_0.mp3"]


def test_assemble_with_zero_silence_skips_the_pad(workspace: Workspace) -> None:
    """A zero-second silence setting should concatenate fragments back to back."""

    tools = FakeTools()
    fragments = [_fragment(workspace, 1, index) for index in (0, 1)]

    ChapterAssembler(tools, workspace, silence_seconds=0).assemble(1, fragments)

    assert _listed_names(tools.concat_lists[0]) == ["c1_p_0.mp3", "c1_p_1.mp3"]


def test_assemble_recovers_leftover_fragments_from_workspace(workspace: Workspace) -> None:
    """Fragments left by an interrupted run should be assembled with the new ones."""

    tools = FakeTools()
    _fragment(workspace, 1, 3)
    fresh = [_fragment(workspace, 1, 1)]

    ChapterAssembler(tools, workspace, silence_seconds=0).assemble(1, fresh)

    assert _listed_names(tools.concat_lists[0]) == ["c1_p_1.mp3", "c1_p_3.mp3"]


def test_assemble_skips_chapter_already_assembled(workspace: Workspace) -> None:
    """An existing chapter file should be reused and only probed."""

    tools = FakeTools(durations_ms={"chapter_2.m4a": 777})
    workspace.chapter_path(2).write_bytes(b"previous run")

    assembler = ChapterAssembler(tools, workspace)
    audio = assembler.assemble(2)

    assert assembler.is_assembled(2)
    assert audio.resumed is True
    assert audio.duration_ms == 777
    assert tools.operations() == ["probe"]


def test_assemble_without_fragments_raises_assembly_error(workspace: Workspace) -> None:
    """A chapter whose paragraphs all produced nothing should be fatal."""

    with pytest.raises(AssemblyError) as exc_info:
        ChapterAssembler(FakeTools(), workspace).assemble(3)

    assert exc_info.value.stage == "assemble"
    assert "Chapter 3" in exc_info.value.detail


def test_assemble_encode_failure_removes_partial_output_and_keeps_fragments(
    workspace: Workspace,
) -> None:
    """A failed encode should leave no chapter file but keep fragments for a retry."""

    fragments = [_fragment(workspace, 1, index) for index in (0, 1)]

    with pytest.raises(AssemblyError, match="could not be encoded"):
        ChapterAssembler(FakeTools(fail_on=frozenset({"encode"})), workspace).assemble(1, fragments)

    assert not workspace.chapter_path(1).exists()
    assert all(fragment.path.exists() for fragment in fragments)
    assert not workspace.concat_list_path("chapter_1").exists()


def test_assemble_probe_failure_raises_assembly_error(workspace: Workspace) -> None:
    """An unreadable chapter duration should surface as an assembly failure."""

    tools = FakeTools(fail_on=frozenset({"probe"}))

    with pytest.raises(AssemblyError, match="could not be probed"):
        ChapterAssembler(tools, workspace).assemble(1, [_fragment(workspace, 1, 0)])
