"""Named artifact slots exchanged through GitHub's artifact actions.

Each slot is a directory ``<root>/<name>`` holding a ``payload/`` copy of the
state directory and a ``manifest.json`` describing it. The composite action
uploads a slot with ``actions/upload-artifact`` after packing and downloads it
into the same location with ``actions/download-artifact`` before restoring.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path

from ..errors import ArtifactError, ArtifactNotFoundError
from .manifest import ArtifactManifest, file_digest

__all__ = [
    "MANIFEST_FILENAME",
    "PAYLOAD_DIRNAME",
    "RESTORE_RECORD_SUFFIX",
    "ArtifactStore",
]

PAYLOAD_DIRNAME = "payload"
MANIFEST_FILENAME = "manifest.json"
RESTORE_RECORD_SUFFIX = ".restored.json"


def _replace_tree(source: Path, destination: Path) -> None:
    """Make ``destination`` an exact copy of ``source``."""
    staging = destination.with_name(f"{destination.name}.restore-tmp")
    if staging.exists():
        shutil.rmtree(staging)
    shutil.copytree(source, staging)
    if destination.exists():
        shutil.rmtree(destination)
    staging.rename(destination)


class ArtifactStore:
    """Directory of named artifact slots rooted at ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def slot(self, name: str) -> Path:
        return self.root / name

    def exists(self, name: str) -> bool:
        return (self.slot(name) / MANIFEST_FILENAME).is_file()

    def pack(self, name: str, source_dir: Path) -> Path:
        """Copy ``source_dir`` into slot ``name`` and return the slot path.

        Any previous contents of the slot are replaced.

        Raises
        ------
        ArtifactError
            Raised when ``source_dir`` does not exist.
        """
        if not source_dir.is_dir():
            message = f"Cannot package missing state directory {source_dir}"
            raise ArtifactError(message)
        slot = self.slot(name)
        self.discard(name)
        payload = slot / PAYLOAD_DIRNAME
        shutil.copytree(source_dir, payload)
        ArtifactManifest.scan(payload).write(slot / MANIFEST_FILENAME)
        return slot

    def unpack(self, name: str, destination: Path) -> ArtifactManifest:
        """Verify slot ``name`` and restore its payload over ``destination``.

        Restoring the same slot repeatedly leaves ``destination`` with the
        same bytes each time; files not in the payload are removed.

        Raises
        ------
        ArtifactNotFoundError
            Raised when the slot was never downloaded.
        ArtifactError
            Raised when the payload does not match its manifest.
        """
        slot = self.slot(name)
        if not self.exists(name):
            message = (
                f"Artifact '{name}' was not found at {slot}. Check that "
                "'artifact-name' matches the job that ran 'check', that the "
                "job declares 'needs:' on it, and that 'check' found a release."
            )
            raise ArtifactNotFoundError(message)
        manifest = ArtifactManifest.load(slot / MANIFEST_FILENAME)
        payload = slot / PAYLOAD_DIRNAME
        if not payload.is_dir():
            payload.mkdir(parents=True)
        manifest.verify(payload)
        destination.parent.mkdir(parents=True, exist_ok=True)
        _replace_tree(payload, destination)
        self._restore_record(name).write_text(
            json.dumps(self._restore_stamp(name, destination)), encoding="utf-8"
        )
        return manifest

    def already_restored(self, name: str, destination: Path) -> bool:
        """Return whether the current slot ``name`` was unpacked to ``destination``.

        The record survives repeated downloads of an identical artifact, so a
        later consumer in the same job can keep state written since then.
        """
        record = self._restore_record(name)
        if not self.exists(name) or not record.is_file():
            return False
        try:
            recorded = json.loads(record.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return False
        return recorded == self._restore_stamp(name, destination)

    def discard(self, name: str) -> None:
        """Remove slot ``name`` if present."""
        self._restore_record(name).unlink(missing_ok=True)
        slot = self.slot(name)
        if slot.exists():
            shutil.rmtree(slot)

    def _restore_record(self, name: str) -> Path:
        return self.root / f"{name}{RESTORE_RECORD_SUFFIX}"

    def _restore_stamp(self, name: str, destination: Path) -> dict[str, str]:
        return {
            "manifest": file_digest(self.slot(name) / MANIFEST_FILENAME),
            "destination": str(destination.resolve()),
        }
