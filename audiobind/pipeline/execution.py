"""Core stage execution helpers for Audiobind pipeline.

Responsibilities:
- Execute the segment, synthesize, assemble, timeline, mux, and tag stages.
- Map unexpected exceptions to the stage's domain error with chained causes.
"""

from __future__ import annotations

from pathlib import Path
import shutil

from ..audio.assembler import ChapterAssembler
from ..audio.container import ContainerAssembler
from ..audio.ffmpeg import FFmpegTools
from ..audio.tags import Tagger, TagResult, output_filename
from ..audio.timeline import ChapterTimelineBuilder
from ..config import AudiobindConfig
from ..errors import (
    AssemblyError,
    FormatError,
    MuxError,
    PipelineStageError,
    SynthesisError,
)
from ..io.opf_metadata import read_opf_metadata
from ..io.workspace import Workspace
from ..models.datatypes import (
    Book,
    BookMetadata,
    Chapter,
    ChapterAudio,
    ChapterMark,
    SynthesisReport,
)
from ..text.segmenter import Segmenter
from ..tts.scheduler import FragmentScheduler


class PipelineExecutionMixin:
    """Provide stage-level pipeline helper methods."""

    def _check_tools(self, tools: FFmpegTools) -> dict[str, str]:
        """Resolve ffmpeg/ffprobe before any work starts."""

        return tools.check_available()

    def _read_metadata(self, config: AudiobindConfig) -> BookMetadata:
        """Read optional OPF metadata; fail fast when the given file is unusable."""

        if config.metadata_path is None:
            return BookMetadata()
        try:
            return read_opf_metadata(config.metadata_path)
        except PipelineStageError:
            raise
        except Exception as exc:
            raise FormatError(
                f"Failed to read OPF metadata: {exc}",
                stage="metadata",
                hint="Pass a readable OPF package document with `--opf`.",
            ) from exc

    def _segment(self, input_path: Path) -> Book:
        """Segment source text into chapters."""

        try:
            book = Segmenter().read(input_path)
        except PipelineStageError:
            raise
        except Exception as exc:
            raise FormatError(
                f"Failed to segment `{input_path.name}`: {exc}",
                hint="Provide UTF-8 text with `# ` chapter headings.",
            ) from exc

        if not book.chapters:
            raise FormatError(
                f"No chapters with content were found in `{input_path.name}`.",
                hint="Mark chapters with `# ` headings followed by paragraph lines.",
            )
        return book

    def _synthesize(self, scheduler: FragmentScheduler, chapter: Chapter) -> SynthesisReport:
        """Synthesize every paragraph of one chapter behind the scheduler barrier."""

        try:
            return scheduler.synthesize_chapter(chapter)
        except PipelineStageError:
            raise
        except Exception as exc:
            raise SynthesisError(
                f"Failed to synthesize chapter {chapter.index}: {exc}",
                hint="Check network connectivity and workspace directory permissions.",
            ) from exc

    def _assemble(
        self,
        assembler: ChapterAssembler,
        chapter: Chapter,
        report: SynthesisReport | None,
    ) -> ChapterAudio:
        """Assemble one chapter file from its synthesized fragments."""

        fragments = report.fragments if report is not None else ()
        try:
            return assembler.assemble(chapter.index, fragments)
        except PipelineStageError:
            raise
        except Exception as exc:
            raise AssemblyError(
                f"Failed to assemble chapter {chapter.index}: {exc}",
                hint="Check workspace files and rerun to resume.",
            ) from exc

    def _build_timeline(
        self,
        book: Book,
        chapter_audio: list[ChapterAudio],
        workspace: Workspace,
    ) -> tuple[list[ChapterMark], Path]:
        """Compute chapter marks and write the ffmetadata document."""

        builder = ChapterTimelineBuilder()
        ordered = sorted(chapter_audio, key=lambda item: item.chapter_index)
        marks = builder.build(book.titles, [item.duration_ms for item in ordered])
        try:
            path = builder.write(marks, workspace.chapter_marks_path)
        except OSError as exc:
            raise PipelineStageError(
                f"Failed to write chapter marks: {exc}",
                stage="timeline",
                hint="Check workspace directory permissions.",
            ) from exc
        return marks, path

    def _mux(
        self,
        container_assembler: ContainerAssembler,
        chapter_audio: list[ChapterAudio],
        metadata_path: Path,
        workspace: Workspace,
    ) -> Path:
        """Concatenate chapter files and attach chapter marks."""

        try:
            return container_assembler.assemble(
                [item.path for item in chapter_audio],
                metadata_path,
                workspace.container_path,
            )
        except PipelineStageError:
            raise
        except Exception as exc:
            raise MuxError(
                f"Failed to build the chaptered container: {exc}",
                hint="Chapter files were kept in the workspace; rerun to retry the mux.",
            ) from exc

    def _tag(
        self,
        tagger: Tagger,
        container_path: Path,
        metadata: BookMetadata,
        config: AudiobindConfig,
    ) -> TagResult:
        """Tag the container into the output directory.

        When tagging fails the untagged container is moved next to where the
        tagged book would have been, so workspace teardown never deletes it.
        """

        try:
            result = tagger.tag(container_path, metadata, config.cover_path, config.output_dir)
        except PipelineStageError:
            raise
        except Exception as exc:
            raise PipelineStageError(
                f"Failed to tag the audiobook: {exc}",
                stage="tag",
                hint="Check the output directory permissions and rerun.",
            ) from exc

        if result.tagged:
            return result

        config.output_dir.mkdir(parents=True, exist_ok=True)
        fallback_path = config.output_dir / f"{Path(output_filename(metadata)).stem}.m4a"
        shutil.move(str(result.path), str(fallback_path))
        return TagResult(path=fallback_path, tagged=False)
