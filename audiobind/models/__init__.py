"""Shared typed data models for Audiobind.

This package contains dataclasses used across pipeline modules to avoid
cross-module coupling and circular imports.
"""

from .datatypes import (
    Book,
    BookMetadata,
    Chapter,
    ChapterAudio,
    ChapterMark,
    Fragment,
    RunResult,
    SynthesisReport,
)

__all__ = [
    "Book",
    "BookMetadata",
    "Chapter",
    "ChapterAudio",
    "ChapterMark",
    "Fragment",
    "RunResult",
    "SynthesisReport",
]
