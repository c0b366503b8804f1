"""Pipeline orchestration for Audiobind.

Responsibilities:
- Define the high-level stage order for the audiobook build flow.
- Run chapters sequentially, skipping chapters assembled by a previous run.
- Own the per-book workspace lifecycle for one run.

Key types:
- `AudiobindPipeline`: orchestration facade.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from ..audio.assembler import ChapterAssembler
from ..audio.container import ContainerAssembler
from ..audio.ffmpeg import FFmpegTools
from ..audio.tags import Tagger
from ..config import AudiobindConfig
from ..io.epub_extractor import EpubTextExtractor
from ..models.datatypes import Book, ChapterAudio, RunResult
from ..telemetry.logger import RunLogger
from ..tts.scheduler import FragmentScheduler, ProgressCallback
from ..tts.synthesizer import EdgeTTSSynthesizer, SpeechSynthesizer
from ..tts.worker import SynthesisWorker
from .execution import PipelineExecutionMixin
from .runtime import PipelineRuntimeMixin
from .telemetry import PipelineTelemetryMixin


class AudiobindPipeline(
    PipelineExecutionMixin,
    PipelineRuntimeMixin,
    PipelineTelemetryMixin,
):
    """Coordinate all stages for a single Audiobind run."""

    def __init__(
        self,
        run_logger: RunLogger | None = None,
        stage_progress_callback: Callable[[str, int, int], None] | None = None,
        chapter_progress_callback: ProgressCallback | None = None,
        synthesizer: SpeechSynthesizer | None = None,
        tools: FFmpegTools | None = None,
    ) -> None:
        """Initialize logging/progress hooks and optional injected capabilities."""

        self._run_logger = run_logger
        self._stage_progress_callback = stage_progress_callback
        self._chapter_progress_callback = chapter_progress_callback
        self._synthesizer = synthesizer
        self._tools = tools
        self._reset_synthesis_telemetry()

    def run(self, config: AudiobindConfig) -> RunResult:
        """Run the full pipeline and return the run summary."""

        self._validate_config(config)
        self._reset_synthesis_telemetry()
        tools = self._tools or FFmpegTools()
        synthesizer = self._synthesizer or EdgeTTSSynthesizer(
            max_attempts=config.synthesis_attempts
        )

        self._run_stage("tools", lambda: self._check_tools(tools))
        metadata = self._run_stage("metadata", lambda: self._read_metadata(config))
        book = self._run_stage("segment", lambda: self._segment(config.input_path))

        workspace = self._prepare_workspace(config)
        succeeded = False
        try:
            worker = SynthesisWorker(
                synthesizer,
                config.voice_profile(),
                workspace,
                run_logger=self._run_logger,
            )
            scheduler = FragmentScheduler(
                worker,
                max_workers=config.worker_count,
                progress_callback=self._chapter_progress_callback,
                run_logger=self._run_logger,
            )
            assembler = ChapterAssembler(
                tools,
                workspace,
                silence_seconds=config.silence_seconds,
                bitrate=config.chapter_bitrate,
                run_logger=self._run_logger,
            )

            chapter_audio: list[ChapterAudio] = []
            for chapter in book.chapters:
                report = None
                if assembler.is_assembled(chapter.index):
                    self._record_resumed_chapter(chapter.index)
                else:
                    report = self._run_stage(
                        "synthesize",
                        lambda: self._synthesize(scheduler, chapter),
                    )
                    self._record_synthesis_report(report)
                chapter_audio.append(
                    self._run_stage(
                        "assemble",
                        lambda: self._assemble(assembler, chapter, report),
                    )
                )
            self._log_synthesis_summary(getattr(synthesizer, "retry_attempt_count", 0))

            marks, marks_path = self._run_stage(
                "timeline",
                lambda: self._build_timeline(book, chapter_audio, workspace),
            )
            container_path = self._run_stage(
                "mux",
                lambda: self._mux(
                    ContainerAssembler(tools, workspace, run_logger=self._run_logger),
                    chapter_audio,
                    marks_path,
                    workspace,
                ),
            )
            tag_result = self._run_stage(
                "tag",
                lambda: self._tag(
                    Tagger(tools, run_logger=self._run_logger),
                    container_path,
                    metadata,
                    config,
                ),
            )
            succeeded = True
        finally:
            self._teardown_workspace(workspace, config, succeeded=succeeded)

        return RunResult(
            output_path=tag_result.path,
            chapter_marks=tuple(marks),
            chapter_audio=tuple(chapter_audio),
            tagged=tag_result.tagged,
        )

    def list_chapters(self, input_path: Path) -> Book:
        """Segment source text without synthesis, for listing chapters."""

        return self._segment(input_path)

    def extract_epub(self, epub_path: Path, output_path: Path) -> Path:
        """Extract an EPUB into segmented text at `output_path`."""

        return self._run_stage(
            "extract",
            lambda: EpubTextExtractor().write(epub_path, output_path),
        )
