"""TTS synthesizer interface and Edge read-aloud implementation.

Responsibilities:
- Define the protocol for paragraph-level speech synthesis.
- Provide an `edge-tts` backed synthesizer with bounded retries.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import threading
from time import sleep
from typing import Protocol

import edge_tts
from edge_tts.exceptions import NoAudioReceived

from ..errors import SynthesisError
from .voices import VoiceProfile


class SpeechSynthesizer(Protocol):
    """Protocol for TTS provider implementations."""

    def synthesize(self, text: str, voice: VoiceProfile) -> bytes:
        """Return encoded audio bytes for one paragraph; may be empty."""


class EdgeTTSSynthesizer:
    """Synthesize paragraphs with Microsoft Edge read-aloud voices."""

    _MAX_DETAIL_CHARS = 180

    def __init__(
        self,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        sleeper: Callable[[float], None] = sleep,
    ) -> None:
        """Initialize retry policy for transient service failures."""

        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self._sleeper = sleeper
        self.retry_attempt_count = 0
        self._retry_lock = threading.Lock()

    def synthesize(self, text: str, voice: VoiceProfile) -> bytes:
        """Synthesize one paragraph, retrying transport errors before giving up.

        An empty result (`NoAudioReceived`) is returned as `b""` rather than
        raised, so callers can drop it as an empty fragment.

        Raises:
            SynthesisError: When every attempt failed.
        """

        delay = self.backoff_seconds
        last_error: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return asyncio.run(self._stream_audio(text, voice))
            except NoAudioReceived:
                return b""
            except Exception as exc:
                last_error = exc
                if attempt < self.max_attempts:
                    with self._retry_lock:
                        self.retry_attempt_count += 1
                    self._sleeper(delay)
                    delay *= 2

        raise SynthesisError(
            f"Speech synthesis failed after {self.max_attempts} attempt(s): "
            f"{self._short_message(last_error)}",
            hint="Check network connectivity and the configured voice identifier.",
        ) from last_error

    async def _stream_audio(self, text: str, voice: VoiceProfile) -> bytes:
        """Collect streamed audio chunks for one paragraph."""

        communicate = edge_tts.Communicate(
            text,
            voice.voice,
            rate=voice.rate,
            volume=voice.volume,
            pitch=voice.pitch,
        )
        audio = bytearray()
        async for chunk in communicate.stream():
            if chunk["type"] == "audio":
                audio.extend(chunk["data"])
        return bytes(audio)

    def _short_message(self, exc: Exception | None) -> str:
        """Return a bounded single-line description of the last provider error."""

        if exc is None:
            return "unknown error"
        message = " ".join(str(exc).split()) or type(exc).__name__
        if len(message) > self._MAX_DETAIL_CHARS:
            return message[: self._MAX_DETAIL_CHARS - 3] + "..."
        return message
