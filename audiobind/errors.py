"""Domain exceptions for pipeline and CLI diagnostics.

Responsibilities:
- Carry the failing stage, a concise detail, and an actionable hint.
- Separate recoverable paragraph-level failures from fatal chapter/container failures.
"""

from __future__ import annotations


class PipelineStageError(RuntimeError):
    """Raised when a specific pipeline stage fails."""

    default_stage = "pipeline"

    def __init__(
        self,
        detail: str,
        *,
        stage: str | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped pipeline error."""

        super().__init__(detail)
        self.stage = stage or self.default_stage
        self.detail = detail
        self.hint = hint


class FormatError(PipelineStageError):
    """Raised when an input document cannot be opened, decoded, or parsed."""

    default_stage = "segment"


class SynthesisError(PipelineStageError):
    """Raised when one paragraph cannot be synthesized; recovered per paragraph."""

    default_stage = "synthesize"


class AssemblyError(PipelineStageError):
    """Raised when one chapter cannot be assembled; fatal to the run."""

    default_stage = "assemble"


class MuxError(PipelineStageError):
    """Raised when the final container cannot be concatenated or muxed."""

    default_stage = "mux"


class ToolUnavailableError(PipelineStageError):
    """Raised when a required external executable cannot be found."""

    default_stage = "tools"
