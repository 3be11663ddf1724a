"""Project release info onto the action's step outputs."""

from __future__ import annotations

from pathlib import Path

from .github_output import write_github_output
from .release_info import ReleaseInfo

__all__ = ["OUTPUT_KEYS", "project_outputs", "write_outputs"]

OUTPUT_KEYS = ("has-release", "version", "release-type", "release-notes")


def project_outputs(
    current: ReleaseInfo | None, previous: ReleaseInfo | None = None
) -> dict[str, str]:
    """Return the step outputs for the release known after a command.

    ``current`` is what the command left in ``release_info.json`` and
    ``previous`` what was restored before it ran. Values accumulate along the
    job chain, so a field the command did not rewrite keeps its restored
    value and a missing file leaves ``previous`` in force.

    Examples
    --------
    >>> project_outputs(None)["has-release"]
    'false'
    >>> project_outputs(
    ...     ReleaseInfo(has_release=True, version="1.3.0"),
    ...     ReleaseInfo(has_release=True, release_type="minor"),
    ... )["release-type"]
    'minor'
    """
    info = current.merged_over(previous) if current is not None else previous
    if info is None:
        info = ReleaseInfo(has_release=False)
    return {
        "has-release": "true" if info.has_release else "false",
        "version": info.version or "",
        "release-type": info.release_type or "",
        "release-notes": info.release_notes or "",
    }


def write_outputs(github_output: Path, outputs: dict[str, str]) -> None:
    """Append ``outputs`` to the ``GITHUB_OUTPUT`` file."""
    write_github_output(github_output, outputs)
