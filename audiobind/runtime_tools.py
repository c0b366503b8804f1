"""Deterministic runtime executable resolution helpers.

Responsibilities:
- Resolve external executable paths with deterministic bundled-first precedence.
- Fail fast with `ToolUnavailableError` when a required executable is missing.
"""

from __future__ import annotations

from pathlib import Path
import shutil
import sys

from .errors import ToolUnavailableError


REQUIRED_TOOLS = ("ffmpeg", "ffprobe")


def resolve_executable(command_name: str) -> str:
    """Resolve an executable with bundled-first precedence, then PATH.

    Resolution order:
    1. Bundled app directories (`./bin/<tool>` then `./<tool>` from app root).
    2. System `PATH`.
    3. Raw command name (allowing subprocess to raise a native missing-binary error).
    """

    normalized = command_name.strip()
    if not normalized:
        return command_name
    return locate_executable(normalized) or normalized


def locate_executable(command_name: str) -> str | None:
    """Return the bundled or PATH location of an executable, or `None` when absent."""

    for candidate in _bundled_candidates(command_name):
        if candidate.is_file():
            return str(candidate)
    return shutil.which(command_name)


def require_executable(command_name: str, executable: str | None = None) -> str:
    """Resolve an executable or raise `ToolUnavailableError` when it cannot be found.

    An explicit `executable` (a path or a bare command) is checked as given
    instead of being looked up by `command_name`.
    """

    if executable is None:
        resolved = locate_executable(command_name.strip())
    elif Path(executable).is_file():
        resolved = executable
    else:
        resolved = shutil.which(executable)
    if resolved is not None:
        return resolved
    raise ToolUnavailableError(
        f"Required tool `{command_name}` is not available on PATH.",
        hint=f"Install `{command_name}` (part of FFmpeg) and rerun.",
    )


def require_tools(command_names: tuple[str, ...] = REQUIRED_TOOLS) -> dict[str, str]:
    """Resolve every required executable, failing on the first missing one."""

    return {name: require_executable(name) for name in command_names}


def _bundled_candidates(command_name: str) -> list[Path]:
    """Return deterministic bundled candidate paths for one executable name."""

    app_root = _app_root()
    names = _candidate_names(command_name)
    candidates: list[Path] = []
    for name in names:
        candidates.append(app_root / "bin" / name)
        candidates.append(app_root / name)
    return candidates


def _candidate_names(command_name: str) -> tuple[str, ...]:
    """Return command name variants including Windows `.exe` fallback."""

    lowered = command_name.lower()
    if lowered.endswith(".exe"):
        return (command_name,)
    return (command_name, f"{command_name}.exe")


def _app_root() -> Path:
    """Resolve runtime application root for frozen and non-frozen execution."""

    frozen = bool(getattr(sys, "frozen", False))
    if frozen:
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]
