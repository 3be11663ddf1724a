"""Install autopub into a job-local virtual environment with ``uv``."""

from __future__ import annotations

import dataclasses
import json
import os
import typing as typ
from pathlib import Path

from plumbum import local
from plumbum.commands import CommandNotFound, ProcessExecutionError

from . import workflow_commands as wf
from .errors import InstallError

if typ.TYPE_CHECKING:
    from plumbum.commands.base import BaseCommand

    from .inputs import VersionSpec

__all__ = ["INSTALL_MARKER", "InstalledTool", "install_tool", "tool_executable"]

INSTALL_MARKER = "autopub-action-install.json"


@dataclasses.dataclass(frozen=True, slots=True)
class InstalledTool:
    """Location of an installed autopub executable."""

    executable: Path
    requirements: tuple[str, ...]
    reused: bool = False


def _bin_dir(env_dir: Path) -> Path:
    return env_dir / ("Scripts" if os.name == "nt" else "bin")


def _exe(name: str) -> str:
    return f"{name}.exe" if os.name == "nt" else name


def tool_executable(env_dir: Path, name: str = "autopub") -> Path:
    """Return the path ``name`` is installed to inside ``env_dir``."""
    return _bin_dir(env_dir) / _exe(name)


def _marker_payload(
    requirements: tuple[str, ...], spec: VersionSpec
) -> dict[str, object]:
    return {
        "requirements": list(requirements),
        "prerelease": spec.allows_prerelease,
    }


def _already_installed(env_dir: Path, payload: dict[str, object]) -> bool:
    marker = env_dir / INSTALL_MARKER
    if not marker.is_file() or not tool_executable(env_dir).exists():
        return False
    try:
        recorded = json.loads(marker.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return False
    return recorded == payload


def _run_uv(uv: BaseCommand, args: list[str], action: str) -> None:
    try:
        retcode, stdout, stderr = uv[tuple(args)].run(retcode=None)
    except (CommandNotFound, ProcessExecutionError, OSError) as exc:
        message = f"Failed to {action}: {exc}"
        raise InstallError(message) from exc
    if stdout:
        wf.info(stdout.rstrip())
    if retcode != 0:
        detail = (stderr or stdout or "").strip()
        message = f"Failed to {action} (uv exited with {retcode})"
        if detail:
            message = f"{message}:\n{detail}"
        raise InstallError(message)
    if stderr:
        wf.info(stderr.rstrip())


def install_tool(
    spec: VersionSpec,
    env_dir: Path,
    *,
    plugins: typ.Sequence[str] = (),
    uv: BaseCommand | None = None,
) -> InstalledTool:
    """Install autopub and ``plugins`` into ``env_dir``.

    Parameters
    ----------
    spec : VersionSpec
        Release channel or pinned version to install.
    env_dir : Path
        Virtual environment directory; created when missing.
    plugins : Sequence[str]
        Extra requirements installed alongside autopub.
    uv : BaseCommand | None
        ``uv`` command to drive; defaults to the one on ``PATH``.

    Returns
    -------
    InstalledTool
        The autopub executable and the requirement list that was installed.

    Raises
    ------
    InstallError
        Raised when ``uv`` is unavailable or any installation step fails,
        including a pinned version that does not exist.

    Examples
    --------
    >>> install_tool(parse_version_spec("latest"), Path("/tmp/venv"))  # doctest: +SKIP
    InstalledTool(executable=PosixPath('/tmp/venv/bin/autopub'), ...)
    """
    requirements = (spec.requirement(), *plugins)
    payload = _marker_payload(requirements, spec)
    executable = tool_executable(env_dir)

    if _already_installed(env_dir, payload):
        wf.info(f"autopub already installed in {env_dir}; skipping install.")
        return InstalledTool(executable, requirements, reused=True)

    if uv is None:
        try:
            uv = local["uv"]
        except CommandNotFound as exc:
            message = "uv is required to install autopub but was not found on PATH"
            raise InstallError(message) from exc

    with wf.group(f"Installing {', '.join(requirements)}"):
        if not tool_executable(env_dir, "python").exists():
            _run_uv(uv, ["venv", str(env_dir)], "create the autopub environment")
        install_args = [
            "pip",
            "install",
            "--python",
            str(tool_executable(env_dir, "python")),
        ]
        if spec.allows_prerelease:
            install_args.extend(["--prerelease", "allow"])
        if spec.channel != "pinned":
            # An unpinned requirement is already satisfied by any installed
            # autopub, so the channel switch needs an explicit upgrade.
            install_args.extend(["--upgrade-package", "autopub"])
        install_args.extend(requirements)
        _run_uv(uv, install_args, f"install {' '.join(requirements)}")

    if not executable.exists():
        message = f"autopub executable missing after install: {executable}"
        raise InstallError(message)

    (env_dir / INSTALL_MARKER).write_text(
        json.dumps(payload, indent=2), encoding="utf-8"
    )
    return InstalledTool(executable, requirements)
