"""Bounded-concurrency fragment scheduling for one chapter.

Responsibilities:
- Submit every paragraph of a chapter to a fixed-size worker pool at once.
- Block until every job has settled before the chapter is assembled.
- Report progress counts without relying on completion order for identity.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, as_completed

from ..errors import PipelineStageError
from ..models.datatypes import Chapter, SynthesisReport
from ..telemetry.logger import RunLogger
from .worker import SynthesisJob, SynthesisOutcome, SynthesisWorker

ProgressCallback = Callable[[int, int, int], None]

DEFAULT_WORKER_COUNT = 8


class FragmentScheduler:
    """Run a `SynthesisWorker` over all paragraphs of a chapter with bounded parallelism."""

    def __init__(
        self,
        worker: SynthesisWorker,
        max_workers: int = DEFAULT_WORKER_COUNT,
        progress_callback: ProgressCallback | None = None,
        run_logger: RunLogger | None = None,
    ) -> None:
        if max_workers <= 0:
            raise ValueError("`max_workers` must be a positive integer.")
        self._worker = worker
        self._max_workers = max_workers
        self._progress_callback = progress_callback
        self._run_logger = run_logger

    def jobs_for(self, chapter: Chapter) -> list[SynthesisJob]:
        """Build one job per paragraph, keyed by chapter and 0-based paragraph index."""

        return [
            SynthesisJob(chapter_index=chapter.index, paragraph_index=position, text=text)
            for position, text in enumerate(chapter.paragraphs)
        ]

    def synthesize_chapter(self, chapter: Chapter) -> SynthesisReport:
        """Synthesize every paragraph and return once all jobs have settled."""

        jobs = self.jobs_for(chapter)
        total = len(jobs)
        outcomes: list[SynthesisOutcome] = []
        unexpected: list[tuple[SynthesisJob, BaseException]] = []

        with ThreadPoolExecutor(
            max_workers=self._max_workers,
            thread_name_prefix=f"audiobind-c{chapter.index}",
        ) as executor:
            futures: dict[Future[SynthesisOutcome], SynthesisJob] = {
                executor.submit(self._worker.run, job): job for job in jobs
            }
            for completed, future in enumerate(as_completed(futures), start=1):
                job = futures[future]
                exc = future.exception()
                if exc is not None:
                    unexpected.append((job, exc))
                else:
                    outcomes.append(future.result())
                self._report_progress(chapter.index, completed, total)

        if unexpected:
            job, exc = min(unexpected, key=lambda item: item[0].paragraph_index)
            raise PipelineStageError(
                f"Paragraph {job.paragraph_index} of chapter {chapter.index} could not be "
                f"written: {exc}",
                stage="synthesize",
                hint="Check free disk space and workspace directory permissions.",
            ) from exc

        return self._report(chapter, outcomes)

    def _report(self, chapter: Chapter, outcomes: list[SynthesisOutcome]) -> SynthesisReport:
        """Fold settled outcomes into an identity-ordered chapter report."""

        fragments = sorted(
            (outcome.fragment for outcome in outcomes if outcome.fragment is not None),
            key=lambda fragment: fragment.key,
        )
        empty = sorted(o.job.paragraph_index for o in outcomes if o.status == "empty")
        failed = sorted(o.job.paragraph_index for o in outcomes if o.status == "failed")
        return SynthesisReport(
            chapter_index=chapter.index,
            paragraph_count=len(chapter.paragraphs),
            fragments=tuple(fragments),
            empty_indices=tuple(empty),
            failed_indices=tuple(failed),
        )

    def _report_progress(self, chapter_index: int, completed: int, total: int) -> None:
        if self._progress_callback is not None:
            self._progress_callback(chapter_index, completed, total)
        if self._run_logger is not None:
            self._run_logger.log_progress(chapter_index, completed, total)
