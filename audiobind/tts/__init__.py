"""Text-to-speech components.

This package contains the voice profile, the synthesizer protocol and its
Edge read-aloud implementation, the paragraph worker, and the bounded
fragment scheduler used by the pipeline synthesis stage.
"""

from .scheduler import FragmentScheduler
from .synthesizer import EdgeTTSSynthesizer, SpeechSynthesizer
from .voices import VoiceProfile
from .worker import SynthesisJob, SynthesisOutcome, SynthesisWorker

__all__ = [
    "EdgeTTSSynthesizer",
    "FragmentScheduler",
    "SpeechSynthesizer",
    "SynthesisJob",
    "SynthesisOutcome",
    "SynthesisWorker",
    "VoiceProfile",
]
