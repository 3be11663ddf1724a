"""Append a short Markdown summary of the run to the job summary page."""

from __future__ import annotations

from pathlib import Path

__all__ = ["write_step_summary"]


def write_step_summary(
    summary_path: Path,
    *,
    command: str,
    outputs: dict[str, str],
    artifact_name: str,
    artifact_path: Path | None,
) -> None:
    """Append release details for ``command`` to ``GITHUB_STEP_SUMMARY``."""
    lines = [
        f"## autopub {command}\n",
        f"- Release pending: {outputs['has-release']}\n",
    ]
    if outputs.get("version"):
        lines.append(f"- Version: {outputs['version']}\n")
    if outputs.get("release-type"):
        lines.append(f"- Release type: {outputs['release-type']}\n")
    if artifact_path is not None:
        lines.append(f"- Artifact staged for upload: `{artifact_name}`\n")

    prefix = "\n" if summary_path.exists() and summary_path.stat().st_size > 0 else ""
    summary_path.parent.mkdir(parents=True, exist_ok=True)
    with summary_path.open("a", encoding="utf-8") as handle:
        handle.write(prefix)
        handle.writelines(lines)
