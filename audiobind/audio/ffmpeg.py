"""Synchronous ffmpeg/ffprobe capability with typed results.

Responsibilities:
- Build deterministic argument lists for every transcoding operation the pipeline needs.
- Return `ToolResult` on success and raise `ToolCallError` with stderr on failure.
- Map missing binaries to `ToolUnavailableError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import subprocess

from ..errors import ToolUnavailableError
from ..parsing import normalize_optional_string
from ..runtime_tools import REQUIRED_TOOLS, require_executable, resolve_executable

SILENCE_SAMPLE_RATE = 24000
SILENCE_BITRATE = "48k"


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Completed external tool invocation.

    Attributes:
        tool: Tool name (`ffmpeg` or `ffprobe`).
        args: Arguments passed after the executable.
        returncode: Process exit status.
        stdout: Captured standard output.
        stderr: Captured standard error.
    """

    tool: str
    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


class ToolCallError(RuntimeError):
    """Raised when an external tool exits unsuccessfully or returns unusable output."""

    def __init__(self, tool: str, args: tuple[str, ...], returncode: int, stderr: str) -> None:
        self.tool = tool
        self.arguments = args
        self.returncode = returncode
        self.stderr = stderr
        summary = normalize_optional_string(stderr) or "no stderr output"
        super().__init__(f"`{tool}` exited with status {returncode}: {summary.splitlines()[-1]}")


class FFmpegTools:
    """Run ffmpeg and ffprobe with fixed, quiet argument conventions."""

    def __init__(self, ffmpeg: str | None = None, ffprobe: str | None = None) -> None:
        self._executables = {
            "ffmpeg": ffmpeg or resolve_executable("ffmpeg"),
            "ffprobe": ffprobe or resolve_executable("ffprobe"),
        }

    def check_available(self) -> dict[str, str]:
        """Verify the configured executables exist or raise `ToolUnavailableError`."""

        return {
            tool: require_executable(tool, self._executables[tool]) for tool in REQUIRED_TOOLS
        }

    def run(self, tool: str, args: list[str]) -> ToolResult:
        """Run one tool invocation and return its typed result.

        Raises:
            ToolUnavailableError: When the executable cannot be started.
            ToolCallError: When the process exits with a non-zero status.
        """

        command = [self._executables[tool], *args]
        try:
            completed = subprocess.run(
                command,
                check=False,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as exc:
            raise ToolUnavailableError(
                f"Required tool `{tool}` is not available on PATH.",
                hint=f"Install `{tool}` (part of FFmpeg) and rerun.",
            ) from exc

        stdout = completed.stdout or ""
        stderr = completed.stderr or ""
        if completed.returncode != 0:
            raise ToolCallError(tool, tuple(args), completed.returncode, stderr)
        return ToolResult(
            tool=tool,
            args=tuple(args),
            returncode=completed.returncode,
            stdout=stdout,
            stderr=stderr,
        )

    def generate_silence(self, output_path: Path, seconds: float) -> Path:
        """Render a mono silence pad matching the synthesized fragment format.

        An existing non-empty pad is reused as-is.
        """

        if output_path.is_file() and output_path.stat().st_size > 0:
            return output_path
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.run(
            "ffmpeg",
            [
                "-y",
                "-hide_banner",
                "-loglevel",
                "error",
                "-f",
                "lavfi",
                "-i",
                f"anullsrc=r={SILENCE_SAMPLE_RATE}:cl=mono",
                "-t",
                f"{seconds:g}",
                "-c:a",
                "libmp3lame",
                "-b:a",
                SILENCE_BITRATE,
                str(output_path),
            ],
        )
        return output_path

    def concat(
        self,
        list_path: Path,
        output_path: Path,
        *,
        codec: str | None = None,
        bitrate: str | None = None,
    ) -> ToolResult:
        """Concatenate a concat-demuxer list, re-encoding when `codec` is given."""

        args = [
            "-y",
            "-hide_banner",
            "-loglevel",
            "error",
            "-f",
            "concat",
            "-safe",
            "0",
            "-i",
            str(list_path),
            "-vn",
        ]
        if codec is None:
            args.extend(["-c", "copy"])
        else:
            args.extend(["-c:a", codec])
            if bitrate:
                args.extend(["-b:a", bitrate])
        args.append(str(output_path))
        return self.run("ffmpeg", args)

    def probe_duration_ms(self, path: Path) -> int:
        """Return the container duration of `path` in whole milliseconds."""

        args = [
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            str(path),
        ]
        result = self.run("ffprobe", args)
        raw = result.stdout.strip()
        try:
            seconds = float(raw)
        except ValueError as exc:
            raise ToolCallError(
                "ffprobe",
                tuple(args),
                result.returncode,
                f"unparseable duration output `{raw or 'empty'}` for `{path.name}`",
            ) from exc
        return int(round(seconds * 1000))

    def mux_metadata(self, input_path: Path, metadata_path: Path, output_path: Path) -> ToolResult:
        """Copy streams of `input_path` while taking chapters and metadata from an ffmetadata file."""

        return self.run(
            "ffmpeg",
            [
                "-y",
                "-hide_banner",
                "-loglevel",
                "error",
                "-i",
                str(input_path),
                "-i",
                str(metadata_path),
                "-map_metadata",
                "1",
                "-map_chapters",
                "1",
                "-c",
                "copy",
                str(output_path),
            ],
        )

    def write_tags(self, input_path: Path, output_path: Path, tags: dict[str, str]) -> ToolResult:
        """Copy the audio stream of `input_path` into `output_path` with metadata tags."""

        args = ["-y", "-hide_banner", "-loglevel", "error", "-i", str(input_path)]
        for key, value in tags.items():
            args.extend(["-metadata", f"{key}={value}"])
        args.extend(["-map", "0:a", "-c", "copy", str(output_path)])
        return self.run("ffmpeg", args)
