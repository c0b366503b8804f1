"""Module entrypoint for running Audiobind as ``python -m audiobind``."""

from __future__ import annotations

from audiobind.cli import main


if __name__ == "__main__":
    main()
