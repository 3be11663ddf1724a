"""Public interface for the autopub action helpers."""

from .artifacts import ArtifactBridge, ArtifactStore
from .dispatcher import CommandResult, build_environment, dispatch
from .environment import require_env_path
from .errors import (
    ArtifactError,
    ArtifactNotFoundError,
    AutopubActionError,
    CommandFailedError,
    ConfigurationError,
    InstallError,
    MissingCredentialError,
    ReleaseInfoError,
)
from .inputs import COMMANDS, ActionConfig, VersionSpec, resolve_config
from .installer import InstalledTool, install_tool
from .outputs import OUTPUT_KEYS, project_outputs
from .release_info import ReleaseInfo
from .runner import RunResult, run_action

__all__ = [
    "COMMANDS",
    "OUTPUT_KEYS",
    "ActionConfig",
    "ArtifactBridge",
    "ArtifactError",
    "ArtifactNotFoundError",
    "ArtifactStore",
    "AutopubActionError",
    "CommandFailedError",
    "CommandResult",
    "ConfigurationError",
    "InstallError",
    "InstalledTool",
    "MissingCredentialError",
    "ReleaseInfo",
    "ReleaseInfoError",
    "RunResult",
    "VersionSpec",
    "build_environment",
    "dispatch",
    "install_tool",
    "project_outputs",
    "require_env_path",
    "resolve_config",
    "run_action",
]
