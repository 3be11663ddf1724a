"""Shared helpers for the autopub action test suites."""

from __future__ import annotations

import json
import stat
import sys
import typing as typ
from pathlib import Path
from textwrap import dedent

__all__ = [
    "FakeUv",
    "decode_output_file",
    "read_tool_log",
    "write_fake_autopub",
    "write_release_file",
]

FAKE_AUTOPUB_SOURCE = dedent(
    '''
    """Stand-in for the autopub CLI used by the test suite."""

    import json
    import os
    import re
    import sys
    from pathlib import Path

    command = sys.argv[1]
    state_dir = Path.cwd() / ".autopub"
    info_path = state_dir / "release_info.json"
    watched = (
        "GITHUB_TOKEN",
        "PYPI_TOKEN",
        "GIT_AUTHOR_NAME",
        "GIT_AUTHOR_EMAIL",
        "AUTOPUB_PUBLISH_REPOSITORY",
    )
    with Path(os.environ["FAKE_AUTOPUB_LOG"]).open("a", encoding="utf-8") as log:
        log.write(
            json.dumps(
                {
                    "command": command,
                    "cwd": str(Path.cwd()),
                    "env": {key: os.environ.get(key) for key in watched},
                }
            )
            + "\\n"
        )

    forced_exit = os.environ.get("FAKE_AUTOPUB_EXIT")
    if forced_exit is not None:
        print(f"forced failure in {command}", file=sys.stderr)
        sys.exit(int(forced_exit))

    if command == "check":
        release_file = Path.cwd() / "RELEASE.md"
        state_dir.mkdir(exist_ok=True)
        if not release_file.is_file():
            info_path.write_text(json.dumps({"has_release": False}))
            print("No RELEASE.md found", file=sys.stderr)
            sys.exit(1)
        text = release_file.read_text(encoding="utf-8")
        match = re.search(r"^release type: (\\w+)", text, re.MULTILINE | re.IGNORECASE)
        if match is None:
            info_path.write_text(json.dumps({"has_release": True}))
            print("RELEASE.md is missing a release type", file=sys.stderr)
            sys.exit(1)
        notes = text[match.end():].strip()
        info_path.write_text(
            json.dumps(
                {
                    "has_release": True,
                    "release_type": match.group(1).lower(),
                    "release_notes": notes,
                }
            )
        )
        print("Release file is valid")
    elif command == "prepare":
        info = json.loads(info_path.read_text())
        bump = {"major": "2.0.0", "minor": "1.3.0", "patch": "1.2.4"}
        info["version"] = bump[info["release_type"]]
        info_path.write_text(json.dumps(info))
        print(f"Prepared {info['version']}")
    elif command == "build":
        if os.environ.get("FAKE_AUTOPUB_DROP_INFO"):
            info_path.unlink()
        print("Built distributions")
    elif command == "publish":
        print("Published")
    '''
)


def write_fake_autopub(directory: Path) -> Path:
    """Write an executable fake ``autopub`` into ``directory`` and return it."""
    directory.mkdir(parents=True, exist_ok=True)
    script = directory / "fake_autopub.py"
    script.write_text(FAKE_AUTOPUB_SOURCE, encoding="utf-8")
    launcher = directory / "autopub"
    launcher.write_text(
        f'#!/bin/sh\nexec "{sys.executable}" "{script}" "$@"\n', encoding="utf-8"
    )
    launcher.chmod(launcher.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP)
    return launcher


def write_release_file(workspace: Path, release_type: str, notes: str) -> Path:
    """Create a ``RELEASE.md`` declaring ``release_type``."""
    path = workspace / "RELEASE.md"
    path.write_text(f"Release type: {release_type}\n\n{notes}\n", encoding="utf-8")
    return path


def read_tool_log(path: Path) -> list[dict[str, typ.Any]]:
    """Return the invocations recorded by the fake autopub."""
    if not path.exists():
        return []
    return [
        json.loads(line)
        for line in path.read_text(encoding="utf-8").splitlines()
        if line
    ]


def decode_output_file(path: Path) -> dict[str, str]:
    """Parse GitHub output records written with ``write_github_output``.

    Parameters
    ----------
    path : Path
        Path to the output file containing GitHub workflow output records.

    Returns
    -------
    dict[str, str]
        Mapping of output keys to their decoded string values.
    """

    lines = path.read_text(encoding="utf-8").splitlines()
    values: dict[str, str] = {}
    index = 0
    while index < len(lines):
        line = lines[index]
        if "<<" in line:
            key, delimiter = line.split("<<", 1)
            index += 1
            buffer: list[str] = []
            while index < len(lines) and lines[index] != delimiter:
                buffer.append(lines[index])
                index += 1
            values[key] = "\n".join(buffer)
            index += 1  # Skip the delimiter terminator.
            continue
        if "=" in line:
            key, value = line.split("=", 1)
            values[key] = value
        index += 1
    return values


class _FakeBoundUv:
    def __init__(self, owner: FakeUv, args: tuple[str, ...]) -> None:
        self._owner = owner
        self._args = args

    def run(self, retcode: int | None = 0) -> tuple[int, str, str]:
        return self._owner.handle(self._args)


class FakeUv:
    """Record ``uv`` invocations and emulate their effect on disk.

    Parameters
    ----------
    executable_for:
        Callable mapping ``(env_dir, name)`` to the path the installer expects.
    missing_versions:
        Pinned versions that make ``uv pip install`` fail as if unresolvable.
    """

    def __init__(
        self,
        executable_for: typ.Callable[[Path, str], Path],
        *,
        missing_versions: typ.Collection[str] = (),
    ) -> None:
        self.calls: list[tuple[str, ...]] = []
        self._executable_for = executable_for
        self._missing = set(missing_versions)

    def __getitem__(self, args: str | tuple[str, ...]) -> _FakeBoundUv:
        if isinstance(args, str):
            args = (args,)
        return _FakeBoundUv(self, tuple(args))

    def handle(self, args: tuple[str, ...]) -> tuple[int, str, str]:
        self.calls.append(args)
        if args[0] == "venv":
            self._touch(self._executable_for(Path(args[1]), "python"))
            return 0, "", f"Creating virtual environment at: {args[1]}\n"
        if args[:2] == ("pip", "install"):
            for requirement in args:
                if requirement.startswith("autopub==") and (
                    requirement.removeprefix("autopub==") in self._missing
                ):
                    return (
                        1,
                        "",
                        f"No solution found when resolving dependencies: {requirement}\n",
                    )
            python = Path(args[args.index("--python") + 1])
            env_dir = python.parent.parent
            self._touch(self._executable_for(env_dir, "autopub"))
            return 0, f"Installed {len(args) - 4} package(s)\n", ""
        return 2, "", f"unexpected uv call {args!r}\n"

    @staticmethod
    def _touch(path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("", encoding="utf-8")
        path.chmod(path.stat().st_mode | stat.S_IXUSR)
