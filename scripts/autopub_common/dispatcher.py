"""Translate an action command into a single autopub process invocation."""

from __future__ import annotations

import dataclasses
import sys
import typing as typ
from pathlib import Path

from plumbum import local
from plumbum.commands import CommandNotFound, ProcessExecutionError

from .errors import CommandFailedError, MissingCredentialError

if typ.TYPE_CHECKING:
    from .inputs import ActionConfig, Command

__all__ = [
    "TOKEN_COMMANDS",
    "CommandResult",
    "build_environment",
    "dispatch",
    "require_credentials",
]

TOKEN_COMMANDS: frozenset[str] = frozenset({"check", "publish"})


@dataclasses.dataclass(frozen=True, slots=True)
class CommandResult:
    """Exit status and captured streams of an autopub run."""

    command: str
    exit_code: int
    stdout: str
    stderr: str

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        return "\n".join(part.rstrip() for part in (self.stdout, self.stderr) if part)


def require_credentials(command: Command, config: ActionConfig) -> None:
    """Fail before invoking autopub when ``command`` lacks a required token.

    ``publish`` creates the GitHub release, so it always needs the GitHub
    token. The PyPI token stays optional because trusted publishing can
    authenticate without it.
    """
    if command == "publish" and not config.github_token:
        message = (
            "The 'publish' command requires 'github-token'; "
            "pass ${{ secrets.GITHUB_TOKEN }} or a personal access token"
        )
        raise MissingCredentialError(message)


def build_environment(
    command: Command, config: ActionConfig, base_env: typ.Mapping[str, str]
) -> dict[str, str]:
    """Return the environment autopub runs with.

    Examples
    --------
    >>> env = build_environment("build", config, {})  # doctest: +SKIP
    >>> env["GIT_AUTHOR_NAME"]  # doctest: +SKIP
    'github-actions[bot]'
    """
    env = dict(base_env)
    env.update(
        {
            "GIT_AUTHOR_NAME": config.git_username,
            "GIT_COMMITTER_NAME": config.git_username,
            "GIT_AUTHOR_EMAIL": config.git_email,
            "GIT_COMMITTER_EMAIL": config.git_email,
        }
    )
    if config.pypi_token:
        env["PYPI_TOKEN"] = config.pypi_token
        env["UV_PUBLISH_TOKEN"] = config.pypi_token
    if config.publish_repository:
        env["AUTOPUB_PUBLISH_REPOSITORY"] = config.publish_repository
        env["UV_PUBLISH_URL"] = config.publish_repository
    if command in TOKEN_COMMANDS and config.github_token:
        env["GITHUB_TOKEN"] = config.github_token
    return env


def dispatch(
    command: Command,
    config: ActionConfig,
    executable: Path,
    *,
    base_env: typ.Mapping[str, str] | None = None,
) -> CommandResult:
    """Run ``autopub <command>`` inside the workspace.

    The tool's stdout and stderr are echoed line by line while it runs, so
    its diagnostics reach the job log even if the job is cancelled. A non-zero
    exit is returned, not raised; only the caller knows whether it is the
    tolerated "no release file" case.

    Raises
    ------
    MissingCredentialError
        Raised before the process starts when a required token is absent.
    CommandFailedError
        Raised when the executable cannot be started at all.
    """
    require_credentials(command, config)
    env = build_environment(
        command, config, local.env.getdict() if base_env is None else base_env
    )
    stdout: list[str] = []
    stderr: list[str] = []
    try:
        tool = local[str(executable)]
        with local.cwd(config.workspace):
            proc = tool[command].with_env(**env).popen()
        for out_line, err_line in proc.iter_lines(retcode=None):
            if out_line is not None:
                stdout.append(out_line.rstrip("\n"))
                print(stdout[-1], flush=True)
            if err_line is not None:
                stderr.append(err_line.rstrip("\n"))
                print(stderr[-1], file=sys.stderr, flush=True)
    except (CommandNotFound, ProcessExecutionError, OSError) as exc:
        message = f"Could not run autopub {command}: {exc}"
        raise CommandFailedError(message) from exc

    return CommandResult(
        command,
        proc.returncode,
        "".join(f"{line}\n" for line in stdout),
        "".join(f"{line}\n" for line in stderr),
    )
