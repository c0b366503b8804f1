"""Configuration model and loaders for Audiobind.

Responsibilities:
- Define runtime configuration as a typed dataclass.
- Provide loader entry points for file- and environment-based configuration.
- Reject unknown keys and invalid values with actionable messages.

Key types:
- `AudiobindConfig`: normalized runtime settings for a pipeline run.
- `ConfigLoader`: static construction helpers for `AudiobindConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .parsing import normalize_optional_string, parse_permissive_boolean
from .tts.voices import (
    DEFAULT_PITCH,
    DEFAULT_RATE,
    DEFAULT_VOICE,
    DEFAULT_VOLUME,
    VoiceProfile,
)

_DEFAULT_OUTPUT_DIR = Path(".")
_DEFAULT_WORKSPACE_DIR = Path("./tmp")
_DEFAULT_WORKER_COUNT = 8
_DEFAULT_SILENCE_SECONDS = 1.0
_DEFAULT_CHAPTER_BITRATE = "69k"
_DEFAULT_SYNTHESIS_ATTEMPTS = 3


@dataclass(slots=True)
class AudiobindConfig:
    """Runtime configuration for one pipeline run.

    Attributes:
        input_path: Segmented source text.
        metadata_path: Optional OPF package document with bibliographic fields.
        cover_path: Optional cover image.
        output_dir: Directory receiving the final `.m4b`.
        workspace_dir: Base directory for per-book scratch workspaces.
        voice: Edge read-aloud voice identifier.
        rate: Relative speaking rate.
        pitch: Relative pitch.
        volume: Relative volume.
        worker_count: Size of the paragraph synthesis pool.
        silence_seconds: Pause inserted between consecutive paragraphs.
        chapter_bitrate: AAC bitrate of encoded chapter files.
        synthesis_attempts: Attempts per paragraph before it is dropped.
        keep_workspace_on_failure: Keep the workspace after a failed run for resume.
    """

    input_path: Path
    metadata_path: Path | None = None
    cover_path: Path | None = None
    output_dir: Path = _DEFAULT_OUTPUT_DIR
    workspace_dir: Path = _DEFAULT_WORKSPACE_DIR
    voice: str = DEFAULT_VOICE
    rate: str = DEFAULT_RATE
    pitch: str = DEFAULT_PITCH
    volume: str = DEFAULT_VOLUME
    worker_count: int = _DEFAULT_WORKER_COUNT
    silence_seconds: float = _DEFAULT_SILENCE_SECONDS
    chapter_bitrate: str = _DEFAULT_CHAPTER_BITRATE
    synthesis_attempts: int = _DEFAULT_SYNTHESIS_ATTEMPTS
    keep_workspace_on_failure: bool = True

    def validate(self) -> None:
        """Validate runtime configuration values before pipeline execution."""

        self._require_non_empty(self.voice, "voice")
        self._require_non_empty(self.rate, "rate")
        self._require_non_empty(self.pitch, "pitch")
        self._require_non_empty(self.volume, "volume")
        self._require_non_empty(self.chapter_bitrate, "chapter_bitrate")
        if self.worker_count <= 0:
            raise ValueError("`worker_count` must be a positive integer.")
        if self.synthesis_attempts <= 0:
            raise ValueError("`synthesis_attempts` must be a positive integer.")
        if self.silence_seconds < 0:
            raise ValueError("`silence_seconds` must not be negative.")

    def voice_profile(self) -> VoiceProfile:
        """Return the synthesis voice profile described by this config."""

        return VoiceProfile(
            voice=self.voice,
            rate=self.rate,
            pitch=self.pitch,
            volume=self.volume,
        )

    @staticmethod
    def _require_non_empty(value: str, field_name: str) -> None:
        """Validate that runtime string fields are not empty."""

        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"`{field_name}` must be a non-empty string.")


class ConfigLoader:
    """Factory methods for creating `AudiobindConfig` from external sources."""

    _REQUIRED_YAML_KEYS = frozenset({"input_path"})
    _SUPPORTED_YAML_KEYS = frozenset(
        {
            "input_path",
            "metadata_path",
            "cover_path",
            "output_dir",
            "workspace_dir",
            "voice",
            "rate",
            "pitch",
            "volume",
            "worker_count",
            "silence_seconds",
            "chapter_bitrate",
            "synthesis_attempts",
            "keep_workspace_on_failure",
        }
    )

    @staticmethod
    def from_yaml(path: Path, overrides: Mapping[str, Any] | None = None) -> AudiobindConfig:
        """Create a validated config from a YAML file.

        `overrides` (typically explicit CLI options) take precedence over file values.
        """

        path_text = path.read_text(encoding="utf-8")
        payload = dict(ConfigLoader._parse_yaml_payload(path_text, path))
        source_label = f"YAML `{path}`"
        ConfigLoader._validate_unknown_keys(payload, source_label)
        if overrides:
            payload.update({key: value for key, value in overrides.items() if value is not None})
        return ConfigLoader.from_mapping(payload, source_label=source_label)

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> AudiobindConfig:
        """Create a validated config from `AUDIOBIND_*` environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload: dict[str, Any] = {}
        for key in ConfigLoader._SUPPORTED_YAML_KEYS:
            env_key = f"AUDIOBIND_{key.upper()}"
            value = normalize_optional_string(env_map.get(env_key))
            if value is not None:
                payload[key] = value
        if "input_path" not in payload:
            raise ValueError("Environment variable `AUDIOBIND_INPUT_PATH` is required.")
        return ConfigLoader.from_mapping(payload, source_label="Environment")

    @staticmethod
    def from_mapping(payload: Mapping[str, Any], source_label: str) -> AudiobindConfig:
        """Build a validated config from a normalized mapping payload."""

        ConfigLoader._validate_yaml_keys(payload, source_label)

        config = AudiobindConfig(
            input_path=ConfigLoader._required_path(payload, "input_path", source_label),
            metadata_path=ConfigLoader._optional_path(payload, "metadata_path", source_label),
            cover_path=ConfigLoader._optional_path(payload, "cover_path", source_label),
            output_dir=ConfigLoader._optional_path(payload, "output_dir", source_label)
            or _DEFAULT_OUTPUT_DIR,
            workspace_dir=ConfigLoader._optional_path(payload, "workspace_dir", source_label)
            or _DEFAULT_WORKSPACE_DIR,
            voice=ConfigLoader._optional_non_empty_string(payload, "voice", source_label)
            or DEFAULT_VOICE,
            rate=ConfigLoader._optional_non_empty_string(payload, "rate", source_label)
            or DEFAULT_RATE,
            pitch=ConfigLoader._optional_non_empty_string(payload, "pitch", source_label)
            or DEFAULT_PITCH,
            volume=ConfigLoader._optional_non_empty_string(payload, "volume", source_label)
            or DEFAULT_VOLUME,
            worker_count=ConfigLoader._optional_positive_int(
                payload, "worker_count", source_label, default=_DEFAULT_WORKER_COUNT
            ),
            silence_seconds=ConfigLoader._optional_non_negative_float(
                payload, "silence_seconds", source_label, default=_DEFAULT_SILENCE_SECONDS
            ),
            chapter_bitrate=ConfigLoader._optional_non_empty_string(
                payload, "chapter_bitrate", source_label
            )
            or _DEFAULT_CHAPTER_BITRATE,
            synthesis_attempts=ConfigLoader._optional_positive_int(
                payload,
                "synthesis_attempts",
                source_label,
                default=_DEFAULT_SYNTHESIS_ATTEMPTS,
            ),
            keep_workspace_on_failure=ConfigLoader._optional_boolean(
                payload, "keep_workspace_on_failure", source_label, default=True
            ),
        )
        config.validate()
        return config

    @staticmethod
    def _parse_yaml_payload(raw_text: str, path: Path) -> Mapping[str, Any]:
        """Parse YAML text and enforce a mapping root payload."""

        try:
            payload = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` is not valid YAML: {exc}") from exc

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return payload

    @staticmethod
    def _validate_unknown_keys(payload: Mapping[str, Any], source_label: str) -> None:
        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            key_list = ", ".join(unknown)
            raise ValueError(f"{source_label} includes unsupported key(s): {key_list}.")

    @staticmethod
    def _validate_yaml_keys(payload: Mapping[str, Any], source_label: str) -> None:
        """Validate supported and required keys."""

        ConfigLoader._validate_unknown_keys(payload, source_label)
        missing = sorted(
            key for key in ConfigLoader._REQUIRED_YAML_KEYS if key not in payload
        )
        if missing:
            key_list = ", ".join(missing)
            raise ValueError(f"{source_label} is missing required key(s): {key_list}.")

    @staticmethod
    def _required_path(payload: Mapping[str, Any], key: str, source_label: str) -> Path:
        """Read a required non-empty path-like field from a payload."""

        value = ConfigLoader._optional_path(payload, key, source_label)
        if value is None:
            raise ValueError(f"{source_label} requires non-empty `{key}`.")
        return value

    @staticmethod
    def _optional_path(payload: Mapping[str, Any], key: str, source_label: str) -> Path | None:
        value = ConfigLoader._optional_non_empty_string(payload, key, source_label)
        if value is None:
            return None
        return Path(value)

    @staticmethod
    def _optional_non_empty_string(
        payload: Mapping[str, Any], key: str, source_label: str
    ) -> str | None:
        """Read an optional string field and normalize blank values to `None`."""

        if key not in payload:
            return None
        return normalize_optional_string(payload[key])

    @staticmethod
    def _optional_positive_int(
        payload: Mapping[str, Any], key: str, source_label: str, default: int
    ) -> int:
        """Read and validate a positive integer payload field."""

        if key not in payload:
            return default

        raw_value = payload[key]
        if isinstance(raw_value, bool):
            raise ValueError(f"{source_label} field `{key}` must be a positive integer.")
        if isinstance(raw_value, int):
            parsed = raw_value
        else:
            normalized = normalize_optional_string(raw_value)
            if normalized is None:
                return default
            try:
                parsed = int(normalized)
            except ValueError as exc:
                raise ValueError(
                    f"{source_label} field `{key}` must be a positive integer."
                ) from exc

        if parsed <= 0:
            raise ValueError(f"{source_label} field `{key}` must be a positive integer.")
        return parsed

    @staticmethod
    def _optional_non_negative_float(
        payload: Mapping[str, Any], key: str, source_label: str, default: float
    ) -> float:
        """Read and validate a non-negative number payload field."""

        if key not in payload:
            return default

        raw_value = payload[key]
        if isinstance(raw_value, bool):
            raise ValueError(f"{source_label} field `{key}` must be a non-negative number.")
        normalized = normalize_optional_string(raw_value)
        if normalized is None:
            return default
        try:
            parsed = float(normalized)
        except ValueError as exc:
            raise ValueError(
                f"{source_label} field `{key}` must be a non-negative number."
            ) from exc
        if parsed < 0:
            raise ValueError(f"{source_label} field `{key}` must be a non-negative number.")
        return parsed

    @staticmethod
    def _optional_boolean(
        payload: Mapping[str, Any], key: str, source_label: str, default: bool
    ) -> bool:
        """Read and validate a boolean field from a payload."""

        if key not in payload:
            return default

        parsed = parse_permissive_boolean(payload[key])
        if parsed is None:
            raise ValueError(
                f"{source_label} field `{key}` must be a boolean value "
                "(`true`/`false`, `1`/`0`, `yes`/`no`)."
            )
        return parsed
