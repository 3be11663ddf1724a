"""Artifact hand-off between autopub jobs."""

from .bridge import PRODUCER_COMMAND, ArtifactBridge, BridgeState
from .manifest import ArtifactManifest, file_digest
from .store import MANIFEST_FILENAME, PAYLOAD_DIRNAME, ArtifactStore

__all__ = [
    "MANIFEST_FILENAME",
    "PAYLOAD_DIRNAME",
    "PRODUCER_COMMAND",
    "ArtifactBridge",
    "ArtifactManifest",
    "ArtifactStore",
    "BridgeState",
    "file_digest",
]
