"""
Artifact stores.

Everything the system persists (tokenized documents, postings, manifest)
goes through an ArtifactStore handed in by the caller, addressed by a
relative name such as ``corpus/<version>/postings.bin.zst``.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from ngram_search.config import get_config
from ngram_search.errors import ArtifactNotFoundError

logger = logging.getLogger(__name__)


@runtime_checkable
class ArtifactStore(Protocol):
    """Byte-level storage of named artifacts."""

    def write_bytes(self, name: str, data: bytes) -> None:
        ...

    def read_bytes(self, name: str) -> bytes:
        ...

    def exists(self, name: str) -> bool:
        ...


class LocalArtifactStore:
    """
    Artifact store backed by a local directory.

    Writes go to a temporary sibling file first and are renamed into place,
    so readers never observe a partially written artifact.
    """

    def __init__(self, base_path: Optional[Path] = None):
        """
        Initialize local store.

        Args:
            base_path: Root directory (defaults to config.storage.base_path)
        """
        self.base_path = Path(base_path or get_config().storage.base_path)

    def path_for(self, name: str) -> Path:
        """Filesystem path of an artifact."""
        path = (self.base_path / name).resolve()
        root = self.base_path.resolve()
        if root != path and root not in path.parents:
            raise ValueError(f"Artifact name escapes the store root: {name}")
        return path

    def write_bytes(self, name: str, data: bytes) -> None:
        path = self.path_for(name)
        path.parent.mkdir(parents=True, exist_ok=True)

        temp_path = path.with_name(path.name + ".tmp")
        temp_path.write_bytes(data)
        os.replace(temp_path, path)

        logger.debug(f"Wrote {len(data):,} bytes to {path}")

    def read_bytes(self, name: str) -> bytes:
        path = self.path_for(name)
        if not path.exists():
            raise ArtifactNotFoundError(f"Artifact not found: {path}")
        return path.read_bytes()

    def exists(self, name: str) -> bool:
        return self.path_for(name).exists()

    def __repr__(self) -> str:
        return f"LocalArtifactStore({str(self.base_path)!r})"


class MemoryArtifactStore:
    """In-memory artifact store, mainly for tests and embedding."""

    def __init__(self):
        self.artifacts: dict[str, bytes] = {}

    def write_bytes(self, name: str, data: bytes) -> None:
        self.artifacts[name] = bytes(data)

    def read_bytes(self, name: str) -> bytes:
        try:
            return self.artifacts[name]
        except KeyError:
            raise ArtifactNotFoundError(f"Artifact not found: {name}") from None

    def exists(self, name: str) -> bool:
        return name in self.artifacts
