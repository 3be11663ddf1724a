"""Checksum manifest describing an artifact payload."""

from __future__ import annotations

import dataclasses
import hashlib
import json
import typing as typ
from pathlib import Path

from ..errors import ArtifactError

__all__ = ["MANIFEST_VERSION", "ArtifactManifest", "file_digest"]

MANIFEST_VERSION = 1


def file_digest(path: Path, algorithm: str = "sha256") -> str:
    """Return the hex digest of ``path`` using ``algorithm``."""
    hasher = hashlib.new(algorithm)
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(8192), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def _iter_files(root: Path) -> typ.Iterator[Path]:
    for path in sorted(root.rglob("*")):
        if path.is_file():
            yield path


@dataclasses.dataclass(frozen=True, slots=True)
class ArtifactManifest:
    """Relative path, size and SHA-256 digest of every payload file."""

    files: dict[str, tuple[int, str]]

    @classmethod
    def scan(cls, payload_dir: Path) -> ArtifactManifest:
        """Describe the current contents of ``payload_dir``."""
        return cls(
            {
                path.relative_to(payload_dir).as_posix(): (
                    path.stat().st_size,
                    file_digest(path),
                )
                for path in _iter_files(payload_dir)
            }
        )

    @classmethod
    def load(cls, path: Path) -> ArtifactManifest:
        """Read a manifest written by :meth:`write`."""
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if data.get("version") != MANIFEST_VERSION:
                message = f"Unsupported artifact manifest version in {path}"
                raise ArtifactError(message)
            files = {
                name: (int(entry["size"]), str(entry["sha256"]))
                for name, entry in data["files"].items()
            }
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            message = f"Artifact manifest {path} is unreadable: {exc}"
            raise ArtifactError(message) from exc
        return cls(files)

    def write(self, path: Path) -> None:
        data = {
            "version": MANIFEST_VERSION,
            "files": {
                name: {"size": size, "sha256": digest}
                for name, (size, digest) in sorted(self.files.items())
            },
        }
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")

    def verify(self, payload_dir: Path) -> None:
        """Raise :class:`ArtifactError` unless ``payload_dir`` matches exactly."""
        actual = ArtifactManifest.scan(payload_dir).files
        if missing := sorted(set(self.files) - set(actual)):
            message = f"Artifact payload is missing file(s): {', '.join(missing)}"
            raise ArtifactError(message)
        if unexpected := sorted(set(actual) - set(self.files)):
            message = (
                f"Artifact payload has unexpected file(s): {', '.join(unexpected)}"
            )
            raise ArtifactError(message)
        if changed := sorted(
            name for name, entry in self.files.items() if actual[name] != entry
        ):
            message = f"Artifact payload checksum mismatch: {', '.join(changed)}"
            raise ArtifactError(message)
