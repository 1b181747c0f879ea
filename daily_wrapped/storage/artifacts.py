"""
Binary artifact storage.

Artifacts (rendered wrapped cards) are opaque blobs. Each one is owned by
exactly one snapshot, which holds its reference.
"""

import logging
import uuid
from pathlib import Path
from typing import Optional

from daily_wrapped.core.errors import ArtifactStoreError

logger = logging.getLogger(__name__)

DEFAULT_ARTIFACT_DIR = ".daily-wrapped-artifacts"


class ArtifactStore:
    """Interface for blob storage backing snapshot artifacts."""

    def put(self, data: bytes) -> str:
        """Store `data` and return an opaque reference to it."""
        raise NotImplementedError

    def delete(self, ref: str) -> None:
        """Release the artifact behind `ref`.

        Raises:
            ArtifactStoreError: If the artifact cannot be released
        """
        raise NotImplementedError

    def locate(self, ref: str) -> Optional[str]:
        """Return a location for `ref` (path or URL), or None if missing."""
        raise NotImplementedError

    def read(self, ref: str) -> bytes:
        """Return the bytes stored for `ref`.

        Raises:
            ArtifactStoreError: If the artifact cannot be read
        """
        raise NotImplementedError


class LocalArtifactStore(ArtifactStore):
    """Artifact store keeping each blob as a file in one directory.

    References are uuid4 hex strings; nothing outside the directory can be
    addressed through a reference.
    """

    def __init__(self, root: str = DEFAULT_ARTIFACT_DIR):
        self.root = Path(root)

    def put(self, data: bytes) -> str:
        self.root.mkdir(parents=True, exist_ok=True)
        ref = uuid.uuid4().hex
        self._path_for(ref).write_bytes(data)
        logger.debug("Stored artifact %s (%d bytes)", ref, len(data))
        return ref

    def delete(self, ref: str) -> None:
        path = self._path_for(ref)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise ArtifactStoreError(f"Artifact not found: {ref}", artifact_ref=ref) from e
        except OSError as e:
            raise ArtifactStoreError(f"Unable to delete artifact {ref}: {e}", artifact_ref=ref) from e
        logger.debug("Deleted artifact %s", ref)

    def locate(self, ref: str) -> Optional[str]:
        path = self._path_for(ref)
        return str(path.resolve()) if path.exists() else None

    def read(self, ref: str) -> bytes:
        try:
            return self._path_for(ref).read_bytes()
        except FileNotFoundError as e:
            raise ArtifactStoreError(f"Artifact not found: {ref}", artifact_ref=ref) from e

    def _path_for(self, ref: str) -> Path:
        try:
            canonical = uuid.UUID(hex=ref).hex
        except (TypeError, ValueError, AttributeError) as e:
            raise ArtifactStoreError(f"Invalid artifact reference: {ref!r}", artifact_ref=ref) from e
        if canonical != ref:
            raise ArtifactStoreError(f"Invalid artifact reference: {ref!r}", artifact_ref=ref)
        return self.root / f"{ref}.bin"
