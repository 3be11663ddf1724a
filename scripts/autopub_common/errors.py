"""Exception hierarchy for the autopub action."""

from __future__ import annotations

__all__ = [
    "ArtifactError",
    "ArtifactNotFoundError",
    "AutopubActionError",
    "CommandFailedError",
    "ConfigurationError",
    "InstallError",
    "MissingCredentialError",
    "ReleaseInfoError",
]


class AutopubActionError(RuntimeError):
    """Base class for every failure surfaced by the action."""

    title = "autopub failure"


class ConfigurationError(AutopubActionError):
    """Raised when an action input is missing or invalid."""

    title = "Configuration Error"


class InstallError(AutopubActionError):
    """Raised when autopub or one of its plugins cannot be installed."""

    title = "Install Failure"


class MissingCredentialError(AutopubActionError):
    """Raised when a command needs a token that was not supplied."""

    title = "Missing Credential"


class CommandFailedError(AutopubActionError):
    """Raised when the autopub process exits unsuccessfully."""

    title = "autopub Command Failed"

    def __init__(
        self, message: str, *, exit_code: int | None = None, output: str = ""
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.output = output


class ArtifactError(AutopubActionError):
    """Raised when the ``.autopub`` artifact cannot be packed or restored."""

    title = "Artifact Failure"


class ArtifactNotFoundError(ArtifactError):
    """Raised when the state a command depends on was never handed over."""

    title = "Artifact Not Found"


class ReleaseInfoError(AutopubActionError):
    """Raised when ``release_info.json`` is unreadable or inconsistent."""

    title = "Invalid Release Info"
