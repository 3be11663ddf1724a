"""Structured release record shared between autopub command phases.

``autopub check`` writes ``.autopub/release_info.json``; ``prepare`` extends
it with the computed version and ``build``/``publish`` only read it. The file
is the one message passed between jobs, so it is loaded into an immutable
:class:`ReleaseInfo` and validated before anything acts on it.

Usage
-----
Read the record restored from a previous job::

    from pathlib import Path
    from autopub_common.release_info import ReleaseInfo, release_info_path

    info = ReleaseInfo.load(release_info_path(Path(".autopub")))
    if info is not None and info.has_release:
        print(info.release_type)
"""

from __future__ import annotations

import dataclasses
import json
import typing as typ
from pathlib import Path

from .errors import ReleaseInfoError

__all__ = [
    "RELEASE_INFO_FILENAME",
    "RELEASE_TYPES",
    "STATE_DIRNAME",
    "ReleaseInfo",
    "release_info_path",
]

STATE_DIRNAME = ".autopub"
RELEASE_INFO_FILENAME = "release_info.json"
RELEASE_TYPES = frozenset({"major", "minor", "patch"})

_OPTIONAL_FIELDS = ("version", "release_type", "release_notes")


def release_info_path(state_dir: Path) -> Path:
    """Return the location of ``release_info.json`` inside ``state_dir``."""
    return state_dir / RELEASE_INFO_FILENAME


@dataclasses.dataclass(frozen=True, slots=True)
class ReleaseInfo:
    """Release details computed by autopub.

    Parameters
    ----------
    has_release : bool
        Whether a release file was found and validated.
    version : str | None, optional
        Version computed by ``prepare``.
    release_type : str | None, optional
        One of ``major``, ``minor`` or ``patch``.
    release_notes : str | None, optional
        Free-form notes taken from the release file.

    Raises
    ------
    ReleaseInfoError
        Raised when ``version`` or ``release_type`` accompany a record without
        a release, or when ``release_type`` is not a known bump.

    Examples
    --------
    >>> ReleaseInfo(has_release=True, release_type="patch").release_type
    'patch'
    >>> ReleaseInfo(has_release=False, version="1.0.0")  # doctest: +SKIP
    Traceback (most recent call last):
    ReleaseInfoError: ...
    """

    has_release: bool
    version: str | None = None
    release_type: str | None = None
    release_notes: str | None = None

    def __post_init__(self) -> None:
        if not self.has_release and (
            self.version is not None or self.release_type is not None
        ):
            message = (
                "release_info.json sets version or release_type "
                "without has_release"
            )
            raise ReleaseInfoError(message)
        if self.release_type is not None and self.release_type not in RELEASE_TYPES:
            allowed = ", ".join(sorted(RELEASE_TYPES))
            message = (
                f"Unknown release_type {self.release_type!r}; expected one of {allowed}"
            )
            raise ReleaseInfoError(message)

    @classmethod
    def from_mapping(cls, data: typ.Mapping[str, object]) -> ReleaseInfo:
        """Build a record from decoded JSON, ignoring unknown keys."""
        has_release = data.get("has_release")
        if not isinstance(has_release, bool):
            message = "release_info.json must define a boolean 'has_release'"
            raise ReleaseInfoError(message)
        fields: dict[str, str | None] = {}
        for name in _OPTIONAL_FIELDS:
            value = data.get(name)
            if value is not None and not isinstance(value, str):
                message = f"release_info.json field '{name}' must be a string"
                raise ReleaseInfoError(message)
            fields[name] = value or None
        return cls(has_release=has_release, **fields)

    @classmethod
    def load(cls, path: Path) -> ReleaseInfo | None:
        """Return the record stored at ``path`` or ``None`` when absent."""
        if not path.is_file():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            message = f"Cannot read {path}: {exc}"
            raise ReleaseInfoError(message) from exc
        if not isinstance(data, dict):
            message = f"{path} must contain a JSON object"
            raise ReleaseInfoError(message)
        return cls.from_mapping(data)

    def to_mapping(self) -> dict[str, object]:
        """Return the JSON representation, omitting unset optional fields."""
        data: dict[str, object] = {"has_release": self.has_release}
        for name in _OPTIONAL_FIELDS:
            if (value := getattr(self, name)) is not None:
                data[name] = value
        return data

    def write(self, path: Path) -> None:
        """Persist the record to ``path``."""
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(self.to_mapping(), indent=2, sort_keys=True)
        path.write_text(f"{payload}\n", encoding="utf-8")

    def merged_over(self, previous: ReleaseInfo | None) -> ReleaseInfo:
        """Return this record with unset fields filled in from ``previous``.

        Outputs accumulate along the job chain: a later command that rewrites
        only some fields must not clear what an earlier one established. A
        record without a release never inherits version details.
        """
        if previous is None or not self.has_release:
            return self
        return dataclasses.replace(
            self,
            **{
                name: getattr(previous, name)
                for name in _OPTIONAL_FIELDS
                if getattr(self, name) is None
            },
        )
