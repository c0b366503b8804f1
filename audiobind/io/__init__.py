"""Input/output components for Audiobind.

This package contains the scratch workspace, EPUB text extraction, and OPF
metadata reading used around the pipeline.
"""

from .epub_extractor import EpubTextExtractor
from .opf_metadata import read_opf_metadata
from .workspace import Workspace

__all__ = ["EpubTextExtractor", "Workspace", "read_opf_metadata"]
