"""Final chaptered container assembly.

Responsibilities:
- Concatenate chapter files in numeric chapter order without re-encoding.
- Attach the chapter-marker document in a second stream-copy pass.
- Clean intermediate artifacts on success and preserve chapter files on failure.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from ..errors import MuxError
from ..io.workspace import Workspace, chapter_file_sort_key
from ..telemetry.logger import RunLogger
from .ffmpeg import FFmpegTools, ToolCallError


class ContainerAssembler:
    """Combine chapter audio files and chapter marks into one container."""

    def __init__(
        self,
        tools: FFmpegTools,
        workspace: Workspace,
        run_logger: RunLogger | None = None,
    ) -> None:
        self._tools = tools
        self._workspace = workspace
        self._run_logger = run_logger

    def assemble(self, chapter_files: list[Path], metadata_path: Path, output_path: Path) -> Path:
        """Build the chaptered container at `output_path` and return it.

        Raises:
            MuxError: When there is nothing to concatenate or either ffmpeg pass fails.
        """

        if not chapter_files:
            raise MuxError(
                "No chapter audio files are available for the container.",
                hint="Rerun the build so every chapter is assembled first.",
            )

        ordered = sorted(chapter_files, key=chapter_file_sort_key)
        list_path = self._workspace.concat_list_path("book")
        intermediate = self._workspace.intermediate_container_path
        self._workspace.write_concat_list(list_path, ordered)

        try:
            self._run_pass(
                "concatenate",
                lambda: self._tools.concat(list_path, intermediate),
                partial_output=intermediate,
            )
        finally:
            if list_path.exists():
                list_path.unlink()

        self._run_pass(
            "chapter_marks",
            lambda: self._tools.mux_metadata(intermediate, metadata_path, output_path),
            partial_output=output_path,
        )

        for path in [intermediate, metadata_path, *ordered]:
            if path.exists():
                path.unlink()

        if self._run_logger is not None:
            self._run_logger.log_event(
                "mux",
                "container_written",
                chapters=len(ordered),
                path=output_path.name,
            )
        return output_path

    def _run_pass(
        self,
        name: str,
        action: Callable[[], object],
        *,
        partial_output: Path,
    ) -> None:
        """Run one ffmpeg pass, mapping tool failures to `MuxError`."""

        try:
            action()
        except ToolCallError as exc:
            if partial_output.exists():
                partial_output.unlink()
            if self._run_logger is not None:
                self._run_logger.log_tool_diagnostic("mux", exc.tool, exc.stderr)
            raise MuxError(
                f"Container {name.replace('_', ' ')} pass failed: {exc}",
                hint="Chapter files were kept in the workspace; rerun to retry the mux.",
            ) from exc
