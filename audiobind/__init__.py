"""Top-level package for Audiobind.

This package turns `# `-segmented text (or an EPUB reduced to it) into a single
chaptered `.m4b` audiobook with chapter marks, bibliographic tags, and cover
art. The main orchestration entry point is `AudiobindPipeline`.
"""

from .pipeline import AudiobindPipeline

__all__ = ["AudiobindPipeline", "__version__"]

__version__ = "0.1.0"
