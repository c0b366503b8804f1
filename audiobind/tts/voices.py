"""Voice profile models for synthesis configuration.

Responsibilities:
- Represent provider voice identity and prosody tuning.
- Decouple pipeline logic from provider-specific naming.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_VOICE = "en-US-BrianNeural"
DEFAULT_RATE = "+0%"
DEFAULT_PITCH = "+0Hz"
DEFAULT_VOLUME = "+0%"
DEFAULT_OUTPUT_FORMAT = "audio-24khz-48kbitrate-mono-mp3"


@dataclass(frozen=True, slots=True)
class VoiceProfile:
    """Declarative voice profile used by TTS providers.

    Attributes:
        voice: Provider-native voice identifier.
        rate: Relative speaking rate (`+0%`, `-10%`, ...).
        pitch: Relative pitch (`+0Hz`, `+5Hz`, ...).
        volume: Relative volume (`+0%`, `-20%`, ...).
        output_format: Provider audio format of every fragment (24 kHz mono MP3).
    """

    voice: str = DEFAULT_VOICE
    rate: str = DEFAULT_RATE
    pitch: str = DEFAULT_PITCH
    volume: str = DEFAULT_VOLUME
    output_format: str = DEFAULT_OUTPUT_FORMAT
