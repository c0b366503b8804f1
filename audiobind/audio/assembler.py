"""Chapter audio assembly from paragraph fragments.

Responsibilities:
- Order fragments numerically by paragraph identity and interleave the silence pad.
- Encode one AAC chapter file per chapter and probe its duration.
- Skip chapters already assembled by a previous run.
- Remove consumed fragments once the chapter file exists.
"""

from __future__ import annotations

from pathlib import Path

from ..errors import AssemblyError
from ..io.workspace import Workspace
from ..models.datatypes import ChapterAudio, Fragment
from ..telemetry.logger import RunLogger
from .ffmpeg import FFmpegTools, ToolCallError

DEFAULT_SILENCE_SECONDS = 1.0
DEFAULT_CHAPTER_BITRATE = "69k"
CHAPTER_CODEC = "aac"


class ChapterAssembler:
    """Concatenate one chapter's fragments into a single encoded chapter file."""

    def __init__(
        self,
        tools: FFmpegTools,
        workspace: Workspace,
        *,
        silence_seconds: float = DEFAULT_SILENCE_SECONDS,
        bitrate: str = DEFAULT_CHAPTER_BITRATE,
        run_logger: RunLogger | None = None,
    ) -> None:
        self._tools = tools
        self._workspace = workspace
        self._silence_seconds = silence_seconds
        self._bitrate = bitrate
        self._run_logger = run_logger

    def is_assembled(self, chapter_index: int) -> bool:
        """Return whether a non-empty chapter file from a previous run exists."""

        path = self._workspace.chapter_path(chapter_index)
        return path.is_file() and path.stat().st_size > 0

    def assemble(
        self,
        chapter_index: int,
        fragments: list[Fragment] | tuple[Fragment, ...] = (),
    ) -> ChapterAudio:
        """Assemble one chapter and return its audio record with duration.

        Explicit `fragments` are merged with any leftover fragment files of the
        same chapter found in the workspace.

        Raises:
            AssemblyError: When no fragment exists or ffmpeg/ffprobe fails.
        """

        chapter_path = self._workspace.chapter_path(chapter_index)
        if self.is_assembled(chapter_index):
            if self._run_logger is not None:
                self._run_logger.log_event("assemble", "chapter_resumed", chapter=chapter_index)
            return ChapterAudio(
                chapter_index=chapter_index,
                path=chapter_path,
                duration_ms=self._probe(chapter_index, chapter_path),
                resumed=True,
            )

        ordered = self.collect_fragments(chapter_index, fragments)
        if not ordered:
            raise AssemblyError(
                f"Chapter {chapter_index} has no audio fragments to assemble.",
                hint="Every paragraph of this chapter failed or produced no audio; rerun to retry.",
            )

        list_path = self._workspace.concat_list_path(f"chapter_{chapter_index}")
        try:
            sequence = self._interleave_silence([fragment.path for fragment in ordered])
            self._workspace.write_concat_list(list_path, sequence)
            self._tools.concat(
                list_path,
                chapter_path,
                codec=CHAPTER_CODEC,
                bitrate=self._bitrate,
            )
        except ToolCallError as exc:
            if chapter_path.exists():
                chapter_path.unlink()
            raise AssemblyError(
                f"Chapter {chapter_index} could not be encoded: {exc}",
                hint="Check the fragment files and local ffmpeg AAC encoder support.",
            ) from exc
        finally:
            if list_path.exists():
                list_path.unlink()

        duration_ms = self._probe(chapter_index, chapter_path)
        for fragment in ordered:
            if fragment.path.exists():
                fragment.path.unlink()

        if self._run_logger is not None:
            self._run_logger.log_event(
                "assemble",
                "chapter_encoded",
                chapter=chapter_index,
                fragments=len(ordered),
                duration_ms=duration_ms,
            )
        return ChapterAudio(
            chapter_index=chapter_index,
            path=chapter_path,
            duration_ms=duration_ms,
            resumed=False,
        )

    def collect_fragments(
        self,
        chapter_index: int,
        fragments: list[Fragment] | tuple[Fragment, ...] = (),
    ) -> list[Fragment]:
        """Return existing, non-empty fragments of one chapter in numeric paragraph order."""

        by_paragraph: dict[int, Fragment] = {
            fragment.paragraph_index: fragment
            for fragment in self._workspace.list_fragments(chapter_index)
        }
        for fragment in fragments:
            if fragment.chapter_index != chapter_index:
                continue
            if fragment.path.is_file() and fragment.path.stat().st_size > 0:
                by_paragraph[fragment.paragraph_index] = fragment
        return [by_paragraph[index] for index in sorted(by_paragraph)]

    def _interleave_silence(self, paths: list[Path]) -> list[Path]:
        """Place the shared silence pad between consecutive fragments."""

        if len(paths) < 2 or self._silence_seconds <= 0:
            return list(paths)
        silence = self._tools.generate_silence(self._workspace.silence_path, self._silence_seconds)
        sequence: list[Path] = []
        for position, path in enumerate(paths):
            if position > 0:
                sequence.append(silence)
            sequence.append(path)
        return sequence

    def _probe(self, chapter_index: int, chapter_path: Path) -> int:
        try:
            return self._tools.probe_duration_ms(chapter_path)
        except ToolCallError as exc:
            raise AssemblyError(
                f"Duration of chapter {chapter_index} could not be probed: {exc}",
                hint=f"Delete `{chapter_path.name}` from the workspace and rerun.",
            ) from exc
