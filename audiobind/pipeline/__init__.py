"""Audiobind pipeline package.

This package contains orchestration and helper modules for stage execution,
workspace lifecycle, and stage telemetry.
"""

from .orchestrator import AudiobindPipeline

__all__ = ["AudiobindPipeline"]
