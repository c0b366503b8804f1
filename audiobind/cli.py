"""Command-line interface for Audiobind.

Responsibilities:
- Expose user-facing commands for pipeline operations.
- Convert CLI arguments into `AudiobindConfig` and run the pipeline.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import typer

from .cli_rendering import (
    echo_chapter_list,
    echo_run_summary,
    echo_tool_paths,
    exit_with_command_error,
)
from .config import AudiobindConfig, ConfigLoader
from .errors import PipelineStageError
from .pipeline import AudiobindPipeline
from .runtime_tools import require_tools
from .telemetry.logger import RunLogger

DEFAULT_TEXT_OUTPUT = Path("book.txt")

app = typer.Typer(
    name="audiobind",
    no_args_is_help=True,
    help="Audiobind CLI: segmented text or EPUB to a chaptered .m4b audiobook.",
)


class BuildProgressIndicator:
    """Render deterministic per-stage and per-chapter progress lines."""

    _SPINNER_FRAMES = "|/-\\"

    def __init__(self, command_name: str) -> None:
        """Initialize progress indicator metadata for a command invocation."""

        self._command_name = command_name

    def on_stage_start(self, stage_name: str, stage_index: int, stage_total: int) -> None:
        """Print one progress line for a stage start transition."""

        spinner = self._SPINNER_FRAMES[(stage_index - 1) % len(self._SPINNER_FRAMES)]
        typer.echo(
            f"[progress] command={self._command_name} "
            f"{spinner} {stage_index}/{stage_total} stage={stage_name}"
        )

    def on_chapter_progress(self, chapter_index: int, completed: int, total: int) -> None:
        """Print one line when every paragraph of a chapter has settled."""

        if completed == total:
            typer.echo(
                f"[progress] command={self._command_name} "
                f"chapter={chapter_index} paragraphs={completed}/{total}"
            )


def _load_yaml_config(config_path: Path, overrides: dict[str, Any]) -> AudiobindConfig:
    """Load a YAML config file with CLI overrides and map failures to stage errors."""

    try:
        return ConfigLoader.from_yaml(config_path, overrides)
    except FileNotFoundError as exc:
        raise PipelineStageError(
            f"Config file not found: `{config_path}`.",
            stage="config",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise PipelineStageError(
            f"Invalid config file `{config_path}`: {exc}",
            stage="config",
            hint="Fix config keys/values and rerun.",
        ) from exc
    except OSError as exc:
        raise PipelineStageError(
            f"Failed to load config file `{config_path}`: {exc}",
            stage="config",
            hint="Verify YAML file permissions.",
        ) from exc


def _resolve_build_config(
    config_file: Path | None,
    input_path: Path | None,
    overrides: dict[str, Any],
) -> AudiobindConfig:
    """Resolve effective build config from YAML defaults and explicit CLI overrides."""

    explicit = {key: value for key, value in overrides.items() if value is not None}
    if input_path is not None:
        explicit["input_path"] = input_path

    if config_file is not None:
        return _load_yaml_config(config_file, explicit)

    if input_path is None:
        raise PipelineStageError(
            "Input path is required when `--config` is not provided.",
            stage="config",
            hint="Pass `<input.txt>` or use `--config <path.yaml>` with `input_path`.",
        )
    try:
        return ConfigLoader.from_mapping(explicit, source_label="CLI options")
    except ValueError as exc:
        raise PipelineStageError(
            str(exc),
            stage="config",
            hint="Check `--workers` and the other option values.",
        ) from exc


def _extract_to_text(
    pipeline: AudiobindPipeline,
    epub_path: Path,
    text_out: Path | None,
) -> Path:
    output_path = text_out if text_out is not None else DEFAULT_TEXT_OUTPUT
    return pipeline.extract_epub(epub_path, output_path)


@app.command("build")
def build_command(
    input_path: Annotated[
        Path | None,
        typer.Argument(
            help=(
                "Segmented `.txt` source, or an `.epub` to extract into editable text. "
                "Required unless provided by `--config`."
            ),
        ),
    ] = None,
    opf: Annotated[
        Path | None,
        typer.Option("--opf", help="OPF package document with title/author/date metadata."),
    ] = None,
    cover: Annotated[
        Path | None,
        typer.Option("--cover", help="Cover image, cropped to a square and embedded."),
    ] = None,
    out: Annotated[
        Path | None,
        typer.Option("--out", help="Output directory for the `.m4b` (overrides config)."),
    ] = None,
    workspace: Annotated[
        Path | None,
        typer.Option("--workspace", help="Base directory for scratch workspaces."),
    ] = None,
    voice: Annotated[
        str | None,
        typer.Option("--voice", help="Edge read-aloud voice id, e.g. `en-US-BrianNeural`."),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option("--workers", help="Concurrent paragraph synthesis workers."),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config file with command defaults."),
    ] = None,
    text_out: Annotated[
        Path | None,
        typer.Option("--text-out", help="Segmented text path written for `.epub` input."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Emit debug-level progress logs."),
    ] = False,
) -> None:
    """Build a chaptered audiobook from segmented text."""

    try:
        config = _resolve_build_config(
            config_file=config_file,
            input_path=input_path,
            overrides={
                "metadata_path": opf,
                "cover_path": cover,
                "output_dir": out,
                "workspace_dir": workspace,
                "voice": voice,
                "worker_count": workers,
            },
        )
        suffix = config.input_path.suffix.lower()
        progress = BuildProgressIndicator(command_name="build")
        pipeline = AudiobindPipeline(
            run_logger=RunLogger(level="DEBUG" if verbose else "INFO"),
            stage_progress_callback=progress.on_stage_start,
            chapter_progress_callback=progress.on_chapter_progress,
        )
        if suffix == ".epub":
            text_path = _extract_to_text(pipeline, config.input_path, text_out)
        elif suffix == ".txt":
            text_path = None
            result = pipeline.run(config)
        else:
            raise PipelineStageError(
                f"Unsupported input type `{config.input_path.suffix or config.input_path.name}`.",
                stage="input",
                hint="Pass a segmented `.txt` file or an `.epub` to extract first.",
            )
    except Exception as exc:
        exit_with_command_error("build", exc)

    if text_path is not None:
        typer.echo(f"Segmented text: {text_path}")
        typer.echo(f"Review the text, then run `audiobind build {text_path}`.")
        return
    echo_run_summary(result)


@app.command("extract")
def extract_command(
    epub_path: Annotated[Path, typer.Argument(help="Path to source EPUB.")],
    text_out: Annotated[
        Path | None,
        typer.Option("--text-out", help="Segmented text output path."),
    ] = None,
) -> None:
    """Extract an EPUB into `# `-headed segmented text without synthesis."""

    try:
        text_path = _extract_to_text(AudiobindPipeline(), epub_path, text_out)
    except Exception as exc:
        exit_with_command_error("extract", exc)

    typer.echo(f"Segmented text: {text_path}")


@app.command("chapters")
def chapters_command(
    input_path: Annotated[Path, typer.Argument(help="Path to segmented `.txt` source.")],
) -> None:
    """List segmented chapter titles and paragraph counts."""

    try:
        book = AudiobindPipeline().list_chapters(input_path)
    except Exception as exc:
        exit_with_command_error("chapters", exc)

    echo_chapter_list(book)


@app.command("check-tools")
def check_tools_command() -> None:
    """Verify that ffmpeg and ffprobe can be resolved."""

    try:
        resolved = require_tools()
    except Exception as exc:
        exit_with_command_error("check-tools", exc)

    echo_tool_paths(resolved)


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
