"""Environment helpers shared by the action scripts."""

from __future__ import annotations

import os
import tempfile
import typing as typ
from pathlib import Path

from .errors import ConfigurationError

__all__ = ["require_env_path", "runner_temp", "workspace_root"]


def require_env_path(
    name: str, environ: typ.Mapping[str, str] | None = None
) -> Path:
    """Return ``Path`` value for ``name`` or raise :class:`ConfigurationError`.

    Parameters
    ----------
    name:
        Name of the environment variable to fetch.
    environ:
        Mapping to read from; defaults to :data:`os.environ`.

    Raises
    ------
    ConfigurationError
        Raised when the environment variable is unset or empty.
    """
    source = os.environ if environ is None else environ
    value = source.get(name)
    if not value:
        message = f"Environment variable '{name}' is not set."
        raise ConfigurationError(message)
    return Path(value)


def workspace_root(environ: typ.Mapping[str, str]) -> Path:
    """Return the checked-out repository root, defaulting to the cwd."""
    return Path(environ.get("GITHUB_WORKSPACE") or Path.cwd())


def runner_temp(environ: typ.Mapping[str, str]) -> Path:
    """Return the job-scoped scratch directory used for the tool and artifacts."""
    return Path(environ.get("RUNNER_TEMP") or tempfile.gettempdir())
