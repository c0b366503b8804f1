"""Shared pytest fixtures for the full Audiobind test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from audiobind.io.workspace import Workspace
from tests.fakes import FakeSynthesizer, FakeTools


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    """Provide a created scratch workspace under the test temp directory."""

    return Workspace(tmp_path / "workspace").create()


@pytest.fixture
def fake_tools() -> FakeTools:
    """Provide an ffmpeg/ffprobe fake reporting 1000 ms per file."""

    return FakeTools()


@pytest.fixture
def fake_synthesizer() -> FakeSynthesizer:
    """Provide a synthesizer fake that returns non-empty audio for every paragraph."""

    return FakeSynthesizer()


@pytest.fixture
def segmented_book(tmp_path: Path) -> Path:
    """Write a small two-chapter segmented text file."""

    path = tmp_path / "moon.txt"
    path.write_text(
        "# Intro\n"
        "It was a dark night.\n"
        "\n"
        "The moon was full.\n"
        "# Chapter One\n"
        "## A Subheading\n"
        "They set out at dawn.\n",
        encoding="utf-8",
    )
    return path
