#!/usr/bin/env -S uv run --script
# /// script
# requires-python = ">=3.11"
# dependencies = [
#   "cyclopts>=3.24.0,<4.0.0",
#   "plumbum>=1.8,<2.0",
# ]
# ///

"""Command-line entry point for the autopub action.

Every action input arrives as an ``INPUT_*`` environment variable set by the
composite action, so the script normally runs without arguments.

Examples
--------
Run a release check locally::

    export GITHUB_OUTPUT="$(mktemp)"
    INPUT_COMMAND=check uv run scripts/autopub_action.py

The same inputs may be passed as options::

    uv run scripts/autopub_action.py --command prepare --artifact-name autopub-data
"""

from __future__ import annotations

import os
import sys
import typing as typ
from pathlib import Path

import cyclopts
from autopub_common import (
    AutopubActionError,
    require_env_path,
    resolve_config,
    run_action,
)
from autopub_common import workflow_commands as wf
from cyclopts import App, Parameter

app: App = App(
    help="Run an autopub command inside a GitHub Actions job.",
    config=cyclopts.config.Env("INPUT_", command=False),
)


@app.default
def main(
    *,
    command: typ.Annotated[
        str, Parameter(help="check, prepare, build or publish.")
    ] = "",
    github_token: str = "",
    pypi_token: str = "",
    autopub_version: str = "latest",
    git_username: str = "",
    git_email: str = "",
    extra_plugins: str = "",
    upload_artifact: str = "true",
    download_artifact: str = "true",
    artifact_name: str = "autopub-data",
    publish_repository: str = "",
    fail_on_missing: str = "false",
) -> None:
    """Resolve inputs, run the autopub command and export step outputs.

    Boolean inputs are accepted as the strings ``"true"``/``"false"`` so the
    values forwarded by GitHub Actions are validated in one place.

    Notes
    -----
    ``GITHUB_OUTPUT`` must point to the workflow output file.
    ``GITHUB_WORKSPACE``, ``RUNNER_TEMP`` and ``GITHUB_STEP_SUMMARY`` are
    honoured when set.
    """
    inputs = {
        "command": command,
        "github-token": github_token,
        "pypi-token": pypi_token,
        "autopub-version": autopub_version,
        "git-username": git_username,
        "git-email": git_email,
        "extra-plugins": extra_plugins,
        "upload-artifact": upload_artifact,
        "download-artifact": download_artifact,
        "artifact-name": artifact_name,
        "publish-repository": publish_repository,
        "fail-on-missing": fail_on_missing,
    }
    try:
        github_output = require_env_path("GITHUB_OUTPUT")
        config = resolve_config(inputs, os.environ)
        summary_env = os.environ.get("GITHUB_STEP_SUMMARY")
        result = run_action(
            config,
            github_output,
            step_summary=Path(summary_env) if summary_env else None,
        )
    except AutopubActionError as exc:
        wf.error(str(exc), title=exc.title)
        raise SystemExit(1) from exc

    state = "skipped" if result.skipped else "finished"
    print(
        f"autopub {result.command} {state}; has-release={result.outputs['has-release']}.",
        file=sys.stderr,
    )


if __name__ == "__main__":
    app()
