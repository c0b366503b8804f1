"""Audio processing components.

This package contains the ffmpeg capability, chapter assembly, chapter
timeline rendering, container muxing, and final tagging.
"""

from .assembler import ChapterAssembler
from .container import ContainerAssembler
from .ffmpeg import FFmpegTools, ToolCallError, ToolResult
from .tags import Tagger, TagResult
from .timeline import ChapterTimelineBuilder

__all__ = [
    "ChapterAssembler",
    "ChapterTimelineBuilder",
    "ContainerAssembler",
    "FFmpegTools",
    "TagResult",
    "Tagger",
    "ToolCallError",
    "ToolResult",
]
