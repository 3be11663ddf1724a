"""Helpers for writing GitHub Actions step outputs."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from pathlib import Path

__all__ = ["write_github_output"]


def _format_record(key: str, value: str) -> str:
    """Return a single ``GITHUB_OUTPUT`` record for ``key``.

    Single-line values use ``key=value``; anything containing a newline is
    wrapped in a random heredoc delimiter so release notes survive intact.
    """
    if "\n" not in value and "\r" not in value:
        return f"{key}={value}\n"
    delimiter = f"EOF_{uuid.uuid4().hex}"
    return f"{key}<<{delimiter}\n{value}\n{delimiter}\n"


def write_github_output(file: Path, values: Mapping[str, str]) -> None:
    """Append ``values`` to ``file`` in GitHub's output file syntax.

    Parameters
    ----------
    file:
        Path to the GitHub Actions output file (typically ``GITHUB_OUTPUT``).
    values:
        Mapping of output keys to string values. Keys are written in sorted
        order so repeated runs produce the same file.
    """

    file.parent.mkdir(parents=True, exist_ok=True)
    with file.open("a", encoding="utf-8") as handle:
        for key in sorted(values):
            handle.write(_format_record(key, str(values[key])))
