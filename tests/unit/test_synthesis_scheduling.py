"""Unit tests for the paragraph worker and the per-chapter fragment scheduler."""

from __future__ import annotations

import threading

import pytest

from audiobind.errors import PipelineStageError
from audiobind.io.workspace import Workspace
from audiobind.models import Chapter
from audiobind.tts import FragmentScheduler, SynthesisJob, SynthesisWorker, VoiceProfile
from tests.fakes import FakeSynthesizer

VOICE = VoiceProfile(voice="en-US-TestNeural")


def _chapter(*paragraphs: str, index: int = 1) -> Chapter:
    return Chapter(index=index, title=paragraphs[0], paragraphs=tuple(paragraphs))


def test_worker_writes_fragment_keyed_by_identity(workspace: Workspace) -> None:
    """A successful job should write exactly one fragment at its identity path."""

    worker = SynthesisWorker(FakeSynthesizer(), VOICE, workspace)

    outcome = worker.run(SynthesisJob(chapter_index=2, paragraph_index=5, text="Hello."))

    assert outcome.status == "ok"
    assert outcome.fragment is not None
    assert outcome.fragment.path == workspace.fragment_path(2, 5)
    assert outcome.fragment.path.read_bytes() == b"mp3:en-US-TestNeural:Hello."


def test_worker_discards_zero_byte_audio(workspace: Workspace) -> None:
    """An empty synthesis result should leave no fragment file behind."""

    worker = SynthesisWorker(FakeSynthesizer(empty=frozenset({"..."})), VOICE, workspace)

    outcome = worker.run(SynthesisJob(chapter_index=1, paragraph_index=0, text="..."))

    assert outcome.status == "empty"
    assert outcome.fragment is None
    assert not workspace.fragment_path(1, 0).exists()


def test_worker_contains_provider_failures(workspace: Workspace) -> None:
    """A `SynthesisError` should become a failed outcome instead of propagating."""

    worker = SynthesisWorker(FakeSynthesizer(failing=frozenset({"Boom."})), VOICE, workspace)

    outcome = worker.run(SynthesisJob(chapter_index=1, paragraph_index=0, text="Boom."))

    assert outcome.status == "failed"
    assert outcome.error is not None and "service unavailable" in outcome.error
    assert not workspace.fragment_path(1, 0).exists()


def test_worker_reuses_existing_fragment_without_synthesis(workspace: Workspace) -> None:
    """A non-empty fragment left by an interrupted run should be reused as-is."""

    synthesizer = FakeSynthesizer()
    workspace.fragment_path(1, 0).write_bytes(b"old audio")
    worker = SynthesisWorker(synthesizer, VOICE, workspace)

    outcome = worker.run(SynthesisJob(chapter_index=1, paragraph_index=0, text="Hello."))

    assert outcome.status == "reused"
    assert synthesizer.calls == []
    assert workspace.fragment_path(1, 0).read_bytes() == b"old audio"


def test_worker_resynthesizes_over_an_interrupted_partial_write(workspace: Workspace) -> None:
    """A leftover temporary file from a killed run should be replaced, never reused."""

    synthesizer = FakeSynthesizer()
    final_path = workspace.fragment_path(1, 0)
    partial_path = final_path.with_suffix(final_path.suffix + ".tmp")
    partial_path.write_bytes(b"trunc")
    worker = SynthesisWorker(synthesizer, VOICE, workspace)

    outcome = worker.run(SynthesisJob(chapter_index=1, paragraph_index=0, text="Hello."))

    assert outcome.status == "ok"
    assert synthesizer.calls == ["Hello."]
    assert final_path.read_bytes() == b"mp3:en-US-TestNeural:Hello."
    assert not partial_path.exists()
    assert [fragment.key for fragment in workspace.list_fragments(1)] == [(1, 0)]


def test_scheduler_rejects_non_positive_worker_count(workspace: Workspace) -> None:
    """A worker pool of size zero should be refused up front."""

    worker = SynthesisWorker(FakeSynthesizer(), VOICE, workspace)

    with pytest.raises(ValueError, match="max_workers"):
        FragmentScheduler(worker, max_workers=0)


def test_scheduler_keys_fragments_by_paragraph_despite_reversed_completion(
    workspace: Workspace,
) -> None:
    """Fragments should map to their own paragraph even when later jobs finish first."""

    paragraphs = [f"Paragraph {number}." for number in range(6)]
    delays = {text: (len(paragraphs) - position) * 0.02 for position, text in enumerate(paragraphs)}
    synthesizer = FakeSynthesizer(delays=delays)
    scheduler = FragmentScheduler(
        SynthesisWorker(synthesizer, VOICE, workspace), max_workers=len(paragraphs)
    )

    report = scheduler.synthesize_chapter(_chapter(*paragraphs))

    assert [fragment.paragraph_index for fragment in report.fragments] == list(range(6))
    for fragment in report.fragments:
        expected = f"mp3:en-US-TestNeural:{paragraphs[fragment.paragraph_index]}"
        assert fragment.path.read_bytes() == expected.encode("utf-8")


def test_scheduler_settles_all_jobs_and_reports_missing_paragraphs(
    workspace: Workspace,
) -> None:
    """Empty and failed paragraphs should be reported while the rest still synthesize."""

    synthesizer = FakeSynthesizer(empty=frozenset({"B"}), failing=frozenset({"D"}))
    scheduler = FragmentScheduler(SynthesisWorker(synthesizer, VOICE, workspace), max_workers=2)

    report = scheduler.synthesize_chapter(_chapter("A", "B", "C", "D", "E"))

    assert report.paragraph_count == 5
    assert [fragment.paragraph_index for fragment in report.fragments] == [0, 2, 4]
    assert report.empty_indices == (1,)
    assert report.failed_indices == (3,)
    assert report.missing_indices == (1, 3)
    assert sorted(synthesizer.calls) == ["A", "B", "C", "D", "E"]


def test_scheduler_reports_progress_once_per_settled_job(workspace: Workspace) -> None:
    """The progress callback should count up to the paragraph total exactly once each."""

    progress: list[tuple[int, int, int]] = []
    lock = threading.Lock()

    def record(chapter_index: int, completed: int, total: int) -> None:
        with lock:
            progress.append((chapter_index, completed, total))

    scheduler = FragmentScheduler(
        SynthesisWorker(FakeSynthesizer(), VOICE, workspace),
        max_workers=3,
        progress_callback=record,
    )

    scheduler.synthesize_chapter(_chapter("A", "B", "C", "D", index=4))

    assert progress == [(4, completed, 4) for completed in range(1, 5)]


class _DiskFullSynthesizer:
    """Raise a non-provider error for one paragraph."""

    def __init__(self, broken_text: str) -> None:
        self.broken_text = broken_text
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def synthesize(self, text: str, voice: VoiceProfile) -> bytes:
        with self._lock:
            self.calls.append(text)
        if text == self.broken_text:
            raise OSError(28, "No space left on device")
        return b"audio"


def test_scheduler_raises_stage_error_for_unexpected_failures_after_barrier(
    workspace: Workspace,
) -> None:
    """A non-provider error should abort the chapter only after every job has settled."""

    synthesizer = _DiskFullSynthesizer("B")
    scheduler = FragmentScheduler(SynthesisWorker(synthesizer, VOICE, workspace), max_workers=1)

    with pytest.raises(PipelineStageError) as exc_info:
        scheduler.synthesize_chapter(_chapter("A", "B", "C"))

    assert exc_info.value.stage == "synthesize"
    assert "Paragraph 1 of chapter 1" in exc_info.value.detail
    assert sorted(synthesizer.calls) == ["A", "B", "C"]
    assert workspace.fragment_path(1, 2).exists()
