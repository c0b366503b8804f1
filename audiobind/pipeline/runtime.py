"""Runtime configuration and workspace helpers for Audiobind pipeline.

Responsibilities:
- Validate pipeline configuration before execution.
- Derive the per-book workspace and tear it down according to run outcome.
"""

from __future__ import annotations

from ..config import AudiobindConfig
from ..errors import PipelineStageError
from ..io.workspace import Workspace


class PipelineRuntimeMixin:
    """Provide runtime/config helper methods for pipeline orchestration."""

    def _validate_config(self, config: AudiobindConfig) -> None:
        """Validate top-level configuration and map failures to stage-aware error."""

        try:
            config.validate()
        except ValueError as exc:
            raise PipelineStageError(
                str(exc),
                stage="config",
                hint="Update voice/worker/silence options and rerun the command.",
            ) from exc

        if not config.input_path.is_file():
            raise PipelineStageError(
                f"Input text not found: {config.input_path}",
                stage="config",
                hint="Pass an existing segmented `.txt` file.",
            )

    def _prepare_workspace(self, config: AudiobindConfig) -> Workspace:
        """Create the stable per-book workspace for one config."""

        workspace = Workspace.for_source(config.workspace_dir, config.input_path)
        try:
            workspace.create()
        except OSError as exc:
            raise PipelineStageError(
                f"Workspace `{workspace.root}` could not be created: {exc}",
                stage="config",
                hint="Choose a writable `--workspace` directory.",
            ) from exc
        if self._run_logger is not None:
            self._run_logger.log_debug("config", "workspace_ready", path=workspace.root)
        return workspace

    def _teardown_workspace(
        self,
        workspace: Workspace,
        config: AudiobindConfig,
        *,
        succeeded: bool,
    ) -> None:
        """Remove the workspace after success, or after failure unless it is kept for resume."""

        if not succeeded and config.keep_workspace_on_failure:
            if self._run_logger is not None:
                self._run_logger.log_event("cleanup", "workspace_kept", path=workspace.root)
            return
        workspace.remove()
