"""Hand the ``.autopub`` state directory from ``check`` to later jobs.

GitHub Actions jobs run on disjoint filesystems, so whatever ``check``
computes is invisible to the ``prepare``/``build``/``publish`` jobs unless it
travels as an artifact. The bridge has exactly one producer (``check``) and
any number of consumers:

``not-loaded``
    Nothing restored yet.
``loaded``
    A consumer restored the artifact, or ``check`` is about to run.
``persisted``
    ``check`` packed the state directory into its slot.
``done``
    The invocation finished with nothing further to hand over.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ..errors import ArtifactError, ArtifactNotFoundError
from ..release_info import ReleaseInfo, release_info_path
from .store import ArtifactStore

__all__ = ["PRODUCER_COMMAND", "ArtifactBridge", "BridgeState"]

BridgeState = typ.Literal["not-loaded", "loaded", "persisted", "done"]

PRODUCER_COMMAND = "check"


class ArtifactBridge:
    """Track artifact hand-off for a single command invocation.

    Parameters
    ----------
    command : str
        The autopub command this invocation runs.
    state_dir : Path
        Workspace ``.autopub`` directory.
    store : ArtifactStore
        Slot store shared with the composite action's upload/download steps.
    name : str
        Artifact name from the ``artifact-name`` input.

    Examples
    --------
    >>> bridge = ArtifactBridge("prepare", state_dir, store, "autopub-data")  # doctest: +SKIP
    >>> bridge.restore().release_type  # doctest: +SKIP
    'minor'
    """

    def __init__(
        self, command: str, state_dir: Path, store: ArtifactStore, name: str
    ) -> None:
        self.command = command
        self.state_dir = state_dir
        self.store = store
        self.name = name
        self.state: BridgeState = "not-loaded"

    @property
    def is_producer(self) -> bool:
        return self.command == PRODUCER_COMMAND

    @property
    def slot(self) -> Path:
        return self.store.slot(self.name)

    @property
    def reuses_local_state(self) -> bool:
        """Whether :meth:`restore` would keep ``state_dir`` instead of unpacking."""
        return (
            not self.is_producer
            and release_info_path(self.state_dir).is_file()
            and self.store.already_restored(self.name, self.state_dir)
        )

    def begin_check(self) -> None:
        """Clear stale state so only ``check``'s fresh result is consulted."""
        self._require_producer("start a fresh release check")
        release_info_path(self.state_dir).unlink(missing_ok=True)
        self.state = "loaded"

    def restore(self) -> ReleaseInfo:
        """Restore the artifact into ``state_dir`` and return its record.

        When this job already restored the same artifact into ``state_dir``
        and the release info is still there, the local state is kept as is:
        it carries what earlier consumers (``prepare``) added on top of it.

        Raises
        ------
        ArtifactNotFoundError
            Raised when the artifact is absent or carries no release info.
        ArtifactError
            Raised when called from ``check`` or the payload is corrupt.
        """
        if self.is_producer:
            message = "'check' produces the artifact and never restores it"
            raise ArtifactError(message)
        if self.reuses_local_state:
            return self.require_local_state()
        self.store.unpack(self.name, self.state_dir)
        self.state = "loaded"
        return self.require_local_state()

    def require_local_state(self) -> ReleaseInfo:
        """Return the record already in ``state_dir`` or fail closed."""
        info = ReleaseInfo.load(release_info_path(self.state_dir))
        if info is None:
            message = (
                f"No release info at {release_info_path(self.state_dir)}; "
                f"'{self.command}' needs the state produced by 'check'. Enable "
                f"'download-artifact' or run 'check' earlier in this job."
            )
            raise ArtifactNotFoundError(message)
        self.state = "loaded"
        return info

    def persist(self, info: ReleaseInfo) -> Path | None:
        """Pack ``state_dir`` for upload when ``info`` describes a release.

        Returns the slot path to upload, or ``None`` when there is no release
        to hand over, in which case any stale slot is removed.
        """
        self._require_producer("upload the artifact")
        if self.state != "loaded":
            message = f"Cannot persist artifact from state '{self.state}'"
            raise ArtifactError(message)
        if not info.has_release:
            self.store.discard(self.name)
            self.state = "done"
            return None
        slot = self.store.pack(self.name, self.state_dir)
        self.state = "persisted"
        return slot

    def finish(self) -> None:
        self.state = "done"

    def _require_producer(self, action: str) -> None:
        if not self.is_producer:
            message = (
                f"Only 'check' may {action}; '{self.command}' is a consumer "
                f"of artifact '{self.name}'"
            )
            raise ArtifactError(message)
