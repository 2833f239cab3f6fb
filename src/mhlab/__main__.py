"""Module entry-point for `python -m mhlab`."""

from __future__ import annotations

from mhlab.cli.app import console_main


def main() -> None:  # pragma: no cover - thin wrapper
    console_main()


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
