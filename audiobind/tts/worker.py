"""Paragraph-level synthesis worker.

Responsibilities:
- Synthesize one paragraph into a fragment file keyed by chapter/paragraph identity.
- Discard zero-byte results instead of keeping them as false fragments.
- Publish fragments by rename so an interrupted write is never reused.
- Contain provider failures to the paragraph that raised them.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import SynthesisError
from ..io.workspace import Workspace
from ..models.datatypes import Fragment
from ..telemetry.logger import RunLogger
from .synthesizer import SpeechSynthesizer
from .voices import VoiceProfile


@dataclass(frozen=True, slots=True)
class SynthesisJob:
    """One paragraph to synthesize.

    Attributes:
        chapter_index: 1-based chapter index.
        paragraph_index: 0-based paragraph index within the chapter.
        text: Paragraph text.
    """

    chapter_index: int
    paragraph_index: int
    text: str


@dataclass(frozen=True, slots=True)
class SynthesisOutcome:
    """Settled result of one synthesis job.

    Attributes:
        job: The job this outcome settles.
        status: `ok`, `reused`, `empty`, or `failed`.
        fragment: Produced fragment for `ok`/`reused`, else `None`.
        error: Failure detail for `failed`.
    """

    job: SynthesisJob
    status: str
    fragment: Fragment | None = None
    error: str | None = None


class SynthesisWorker:
    """Turn one paragraph into one fragment file in the workspace."""

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        voice: VoiceProfile,
        workspace: Workspace,
        run_logger: RunLogger | None = None,
    ) -> None:
        self._synthesizer = synthesizer
        self._voice = voice
        self._workspace = workspace
        self._run_logger = run_logger

    def run(self, job: SynthesisJob) -> SynthesisOutcome:
        """Synthesize `job` and return its settled outcome; never raises `SynthesisError`."""

        output_path = self._workspace.fragment_path(job.chapter_index, job.paragraph_index)
        if output_path.is_file() and output_path.stat().st_size > 0:
            return SynthesisOutcome(job=job, status="reused", fragment=self._fragment(job))

        try:
            audio_bytes = self._synthesizer.synthesize(job.text, self._voice)
        except SynthesisError as exc:
            self._log_warning("paragraph_failed", job, error=exc.detail)
            return SynthesisOutcome(job=job, status="failed", error=exc.detail)

        if not audio_bytes:
            self._log_warning("paragraph_empty", job, preview=job.text[:40])
            return SynthesisOutcome(job=job, status="empty")

        output_path.parent.mkdir(parents=True, exist_ok=True)
        partial_path = output_path.with_suffix(output_path.suffix + ".tmp")
        partial_path.write_bytes(audio_bytes)
        partial_path.replace(output_path)

        return SynthesisOutcome(job=job, status="ok", fragment=self._fragment(job))

    def _fragment(self, job: SynthesisJob) -> Fragment:
        return Fragment(
            chapter_index=job.chapter_index,
            paragraph_index=job.paragraph_index,
            path=self._workspace.fragment_path(job.chapter_index, job.paragraph_index),
        )

    def _log_warning(self, event: str, job: SynthesisJob, **context: object) -> None:
        if self._run_logger is not None:
            self._run_logger.log_warning(
                "synthesize",
                event,
                chapter=job.chapter_index,
                paragraph=job.paragraph_index,
                **context,
            )
