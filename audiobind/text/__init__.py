"""Text segmentation components.

This package turns heading-delimited book text into ordered chapters and
provides deterministic title/filename normalization helpers.
"""

from .segmenter import Segmenter
from .slug import sanitize_filename, slugify_title

__all__ = ["Segmenter", "sanitize_filename", "slugify_title"]
