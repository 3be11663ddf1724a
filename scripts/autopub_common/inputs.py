"""Resolve and validate the action inputs.

The composite action forwards every ``inputs.*`` value to the script as an
``INPUT_*`` environment variable. By the time they reach
:func:`resolve_config` they are plain strings keyed by their hyphenated
input names; this module turns them into an immutable :class:`ActionConfig`
without touching the filesystem or the network.

Usage
-----
Resolve a configuration for a ``check`` run::

    import os
    from autopub_common.inputs import resolve_config

    config = resolve_config({"command": "check"}, os.environ)
    print(config.state_dir)
"""

from __future__ import annotations

import dataclasses
import re
import typing as typ
from pathlib import Path

from .environment import runner_temp, workspace_root
from .errors import ConfigurationError
from .release_info import STATE_DIRNAME

__all__ = [
    "COMMANDS",
    "DEFAULT_ARTIFACT_NAME",
    "ActionConfig",
    "VersionSpec",
    "parse_bool",
    "parse_plugins",
    "parse_version_spec",
    "resolve_config",
]

Command = typ.Literal["check", "prepare", "build", "publish"]

COMMANDS: tuple[Command, ...] = ("check", "prepare", "build", "publish")
DEFAULT_ARTIFACT_NAME = "autopub-data"
DEFAULT_GIT_USERNAME = "github-actions[bot]"
DEFAULT_GIT_EMAIL = "41898282+github-actions[bot]@users.noreply.github.com"

LATEST = "latest"
PRE_RELEASE = "pre-release"

_PIN_PATTERN = re.compile(
    r"\d+(?:\.\d+)*(?:(?:a|b|rc)\d+)?(?:\.post\d+)?(?:\.dev\d+)?"
)


@dataclasses.dataclass(frozen=True, slots=True)
class VersionSpec:
    """Describe which autopub release to install.

    Attributes
    ----------
    channel : str
        ``"latest"``, ``"pre-release"`` or ``"pinned"``.
    version : str | None
        Exact version when :attr:`channel` is ``"pinned"``.

    Examples
    --------
    >>> parse_version_spec("1.2.3")
    VersionSpec(channel='pinned', version='1.2.3')
    >>> parse_version_spec("").requirement()
    'autopub'
    """

    channel: typ.Literal["latest", "pre-release", "pinned"]
    version: str | None = None

    @property
    def allows_prerelease(self) -> bool:
        return self.channel == PRE_RELEASE

    def requirement(self, package: str = "autopub") -> str:
        """Return the requirement specifier passed to the installer."""
        if self.channel == "pinned":
            return f"{package}=={self.version}"
        return package


@dataclasses.dataclass(frozen=True, slots=True)
class ActionConfig:
    """Validated configuration for a single action invocation.

    Parameters
    ----------
    command : str
        autopub command to run.
    workspace : Path
        Repository checkout the command operates on.
    runner_temp : Path
        Job-scoped scratch directory holding the tool environment and the
        artifact slots.
    version_spec : VersionSpec
        Which autopub release to install.
    extra_plugins : tuple[str, ...]
        Additional requirements installed next to autopub.
    """

    command: Command
    workspace: Path
    runner_temp: Path
    version_spec: VersionSpec = VersionSpec(LATEST)
    github_token: str | None = None
    pypi_token: str | None = None
    git_username: str = DEFAULT_GIT_USERNAME
    git_email: str = DEFAULT_GIT_EMAIL
    extra_plugins: tuple[str, ...] = ()
    upload_artifact: bool = True
    download_artifact: bool = True
    artifact_name: str = DEFAULT_ARTIFACT_NAME
    publish_repository: str | None = None
    fail_on_missing: bool = False

    @property
    def state_dir(self) -> Path:
        return self.workspace / STATE_DIRNAME

    @property
    def tool_env_dir(self) -> Path:
        return self.runner_temp / "autopub-action" / "venv"

    @property
    def artifact_root(self) -> Path:
        return self.runner_temp / "autopub-artifacts"


def parse_bool(value: str | None, *, name: str, default: bool) -> bool:
    """Interpret a ``"true"``/``"false"`` action input.

    Examples
    --------
    >>> parse_bool("TRUE", name="upload-artifact", default=False)
    True
    >>> parse_bool("", name="upload-artifact", default=True)
    True
    """
    if value is None:
        return default
    normalised = value.strip().lower()
    if not normalised:
        return default
    if normalised == "true":
        return True
    if normalised == "false":
        return False
    message = f"Input '{name}' must be 'true' or 'false', got {value!r}"
    raise ConfigurationError(message)


def parse_version_spec(value: str | None) -> VersionSpec:
    """Return the install channel described by ``autopub-version``."""
    normalised = (value or "").strip()
    if not normalised or normalised.lower() == LATEST:
        return VersionSpec(LATEST)
    if normalised.lower() == PRE_RELEASE:
        return VersionSpec(PRE_RELEASE)
    if _PIN_PATTERN.fullmatch(normalised):
        return VersionSpec("pinned", normalised)
    message = (
        f"Input 'autopub-version' must be 'latest', 'pre-release' or an exact "
        f"version such as '1.2.0', got {value!r}"
    )
    raise ConfigurationError(message)


def parse_plugins(value: str | None) -> tuple[str, ...]:
    """Split ``extra-plugins`` on commas, trimming and de-duplicating.

    Examples
    --------
    >>> parse_plugins(" autopub-github , ,autopub-github,autopub-pdm ")
    ('autopub-github', 'autopub-pdm')
    """
    plugins: list[str] = []
    for item in (value or "").split(","):
        if (plugin := item.strip()) and plugin not in plugins:
            plugins.append(plugin)
    return tuple(plugins)


def _parse_command(value: str | None) -> Command:
    normalised = (value or "").strip().lower()
    if not normalised:
        message = "Input 'command' is required"
        raise ConfigurationError(message)
    if normalised not in COMMANDS:
        allowed = ", ".join(COMMANDS)
        message = f"Unknown command {value!r}; expected one of {allowed}"
        raise ConfigurationError(message)
    return typ.cast(Command, normalised)


def _parse_artifact_name(value: str | None) -> str:
    name = (value or "").strip() or DEFAULT_ARTIFACT_NAME
    if "/" in name or "\\" in name or name in {".", ".."}:
        message = f"Input 'artifact-name' must be a plain name, got {value!r}"
        raise ConfigurationError(message)
    return name


def _optional(value: str | None) -> str | None:
    return (value or "").strip() or None


def resolve_config(
    inputs: typ.Mapping[str, str | None], environ: typ.Mapping[str, str]
) -> ActionConfig:
    """Validate ``inputs`` and return the resolved configuration.

    Parameters
    ----------
    inputs:
        Action inputs keyed by their hyphenated names (``"github-token"``).
    environ:
        Process environment supplying ``GITHUB_WORKSPACE`` and
        ``RUNNER_TEMP``.

    Raises
    ------
    ConfigurationError
        Raised for an unknown command, malformed boolean or version input, or
        an unusable artifact name.
    """
    return ActionConfig(
        command=_parse_command(inputs.get("command")),
        workspace=workspace_root(environ),
        runner_temp=runner_temp(environ),
        version_spec=parse_version_spec(inputs.get("autopub-version")),
        github_token=_optional(inputs.get("github-token")),
        pypi_token=_optional(inputs.get("pypi-token")),
        git_username=_optional(inputs.get("git-username")) or DEFAULT_GIT_USERNAME,
        git_email=_optional(inputs.get("git-email")) or DEFAULT_GIT_EMAIL,
        extra_plugins=parse_plugins(inputs.get("extra-plugins")),
        upload_artifact=parse_bool(
            inputs.get("upload-artifact"), name="upload-artifact", default=True
        ),
        download_artifact=parse_bool(
            inputs.get("download-artifact"), name="download-artifact", default=True
        ),
        artifact_name=_parse_artifact_name(inputs.get("artifact-name")),
        publish_repository=_optional(inputs.get("publish-repository")),
        fail_on_missing=parse_bool(
            inputs.get("fail-on-missing"), name="fail-on-missing", default=False
        ),
    )
