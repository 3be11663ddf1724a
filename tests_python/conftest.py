"""Shared fixtures for the autopub action test suite."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parent.parent
MODULE_DIR = REPO_ROOT / "scripts"


def _import_from_scripts(name: str) -> object:
    sys_path = str(MODULE_DIR)

    sys.path.insert(0, sys_path)
    try:
        return importlib.import_module(name)
    finally:
        sys.path.remove(sys_path)


@pytest.fixture(scope="session")
def autopub_common() -> object:
    """Load the action helper package once for reuse across tests."""
    return _import_from_scripts("autopub_common")


@pytest.fixture(scope="session")
def autopub_cli(autopub_common: object) -> object:
    """Load the cyclopts entry point module."""
    return _import_from_scripts("autopub_action")


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create an isolated workspace and set ``GITHUB_WORKSPACE`` accordingly."""
    root = tmp_path / "workspace"
    root.mkdir()
    monkeypatch.setenv("GITHUB_WORKSPACE", str(root))
    return root


@pytest.fixture
def runner_temp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Provide a job-scoped scratch directory as ``RUNNER_TEMP``."""
    root = tmp_path / "runner-temp"
    root.mkdir()
    monkeypatch.setenv("RUNNER_TEMP", str(root))
    return root


@pytest.fixture
def github_output(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ``GITHUB_OUTPUT`` at a fresh file."""
    path = tmp_path / "github" / "output.txt"
    monkeypatch.setenv("GITHUB_OUTPUT", str(path))
    return path
