"""Stage telemetry helper methods for Audiobind pipeline.

Responsibilities:
- Provide stage index/total metadata for progress reporting.
- Emit stage start/complete/failure events.
- Accumulate dropped-paragraph and retry counters across chapters.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from ..models.datatypes import SynthesisReport

_StageResult = TypeVar("_StageResult")


class PipelineTelemetryMixin:
    """Provide stage-telemetry helper methods."""

    _PHASE_SEQUENCE = (
        "tools",
        "metadata",
        "segment",
        "synthesize",
        "assemble",
        "timeline",
        "mux",
        "tag",
    )

    def _reset_synthesis_telemetry(self) -> None:
        """Reset dropped-paragraph counters for a new pipeline execution flow."""

        self._empty_paragraphs = 0
        self._failed_paragraphs = 0
        self._resumed_chapters = 0

    def _record_synthesis_report(self, report: SynthesisReport) -> None:
        """Accumulate dropped-paragraph telemetry from one chapter report."""

        self._empty_paragraphs += len(report.empty_indices)
        self._failed_paragraphs += len(report.failed_indices)
        if report.missing_indices and self._run_logger is not None:
            self._run_logger.log_warning(
                "synthesize",
                "paragraphs_dropped",
                chapter=report.chapter_index,
                missing=len(report.missing_indices),
                total=report.paragraph_count,
            )

    def _record_resumed_chapter(self, chapter_index: int) -> None:
        self._resumed_chapters += 1
        if self._run_logger is not None:
            self._run_logger.log_event("synthesize", "chapter_skipped", chapter=chapter_index)

    def _log_synthesis_summary(self, retry_attempts: int) -> None:
        """Emit one run-level synthesis summary event."""

        if self._run_logger is not None:
            self._run_logger.log_event(
                "synthesize",
                "summary",
                empty=self._empty_paragraphs,
                failed=self._failed_paragraphs,
                resumed_chapters=self._resumed_chapters,
                retries=retry_attempts,
            )

    def _stage_position(self, stage_name: str) -> tuple[int, int] | None:
        """Return 1-based stage index and total stage count for known stages."""

        try:
            index = self._PHASE_SEQUENCE.index(stage_name) + 1
        except ValueError:
            return None
        return index, len(self._PHASE_SEQUENCE)

    def _on_stage_start(self, stage_name: str) -> None:
        """Emit start events to stage progress callback and structured logger."""

        stage_position = self._stage_position(stage_name)
        if stage_position and self._stage_progress_callback is not None:
            self._stage_progress_callback(stage_name, stage_position[0], stage_position[1])
        if self._run_logger is not None:
            self._run_logger.log_stage_start(stage_name)

    def _on_stage_complete(self, stage_name: str) -> None:
        """Emit stage-complete event to the structured logger."""

        if self._run_logger is not None:
            self._run_logger.log_stage_complete(stage_name)

    def _on_stage_failure(self, stage_name: str, exc: Exception) -> None:
        """Emit stage-failure event with sanitized exception metadata."""

        if self._run_logger is not None:
            self._run_logger.log_stage_failure(stage_name, type(exc).__name__)

    def _run_stage(
        self,
        stage_name: str,
        action: Callable[[], _StageResult],
    ) -> _StageResult:
        """Run one named stage and emit start/complete/failure telemetry events."""

        self._on_stage_start(stage_name)
        try:
            result = action()
        except Exception as exc:
            self._on_stage_failure(stage_name, exc)
            raise
        self._on_stage_complete(stage_name)
        return result
