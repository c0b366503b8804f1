"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
chapter listing rows, chapter-mark summaries, and tool resolution rows.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .errors import PipelineStageError
from .models.datatypes import Book, ChapterMark, RunResult


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def format_timestamp(milliseconds: int) -> str:
    """Format milliseconds as `H:MM:SS.mmm`."""

    seconds, millis = divmod(max(0, milliseconds), 1000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}.{millis:03d}"


def echo_chapter_list(book: Book) -> None:
    """Print compact deterministic chapter index/title/paragraph rows."""

    for chapter in sorted(book.chapters, key=lambda item: item.index):
        typer.echo(f"{chapter.index}. {chapter.title} ({len(chapter.paragraphs)} paragraphs)")


def echo_chapter_marks(marks: tuple[ChapterMark, ...] | list[ChapterMark]) -> None:
    """Print one row per embedded chapter mark."""

    for position, mark in enumerate(marks, start=1):
        typer.echo(
            f"{position}. {format_timestamp(mark.start_ms)} - "
            f"{format_timestamp(mark.end_ms)} {mark.title}"
        )


def echo_run_summary(result: RunResult) -> None:
    """Print the deliverable path, tag status, and resumed chapter count."""

    typer.echo(f"Audiobook: {result.output_path}")
    if not result.tagged:
        typer.secho(
            "Tagging failed; the untagged container was kept.",
            fg=typer.colors.YELLOW,
            err=True,
        )
    resumed = sum(1 for item in result.chapter_audio if item.resumed)
    typer.echo(f"Chapters: {len(result.chapter_audio)} (resumed: {resumed})")
    echo_chapter_marks(result.chapter_marks)


def echo_tool_paths(resolved: dict[str, str]) -> None:
    """Print resolved external tool paths."""

    for name in sorted(resolved):
        typer.echo(f"{name}: {resolved[name]}")
