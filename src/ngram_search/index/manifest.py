"""
Manifest system for atomic versioning of corpora.

Each published version records its artifact names together with xxh3-64
checksums, so a loader can tell when the documents and postings on disk no
longer belong together.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

import xxhash

from ngram_search.errors import CorpusIntegrityError
from ngram_search.storage import ArtifactStore, CorpusLayout

logger = logging.getLogger(__name__)


def checksum(data: bytes) -> str:
    """xxh3-64 hex digest of an artifact payload."""
    return xxhash.xxh3_64_hexdigest(data)


class CorpusVersion:
    """
    Represents a single published version of the corpus.
    """

    def __init__(
        self,
        version: str,
        documents: str,
        postings: str,
        documents_checksum: str,
        postings_checksum: str,
        num_documents: int,
        num_tokens: int,
        ngram_size: int,
        include_final_window: bool = False,
        created_at: str | None = None,
    ):
        """
        Initialize corpus version.

        Args:
            version: Version identifier (e.g., "2025-10-24T12:00:00Z")
            documents: Artifact name of the document snapshot
            postings: Artifact name of the posting store
            documents_checksum: xxh3-64 of the document artifact
            postings_checksum: xxh3-64 of the postings artifact
            num_documents: Number of documents in the snapshot
            num_tokens: Number of distinct tokens in the index
            ngram_size: N-gram size used at build time
            include_final_window: Window convention used at build time
            created_at: ISO timestamp of creation (defaults to now)
        """
        self.version = version
        self.documents = documents
        self.postings = postings
        self.documents_checksum = documents_checksum
        self.postings_checksum = postings_checksum
        self.num_documents = num_documents
        self.num_tokens = num_tokens
        self.ngram_size = ngram_size
        self.include_final_window = include_final_window
        self.created_at = created_at or datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "version": self.version,
            "documents": self.documents,
            "postings": self.postings,
            "documents_checksum": self.documents_checksum,
            "postings_checksum": self.postings_checksum,
            "num_documents": self.num_documents,
            "num_tokens": self.num_tokens,
            "ngram_size": self.ngram_size,
            "include_final_window": self.include_final_window,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CorpusVersion":
        """Create from dictionary."""
        return cls(
            version=data["version"],
            documents=data["documents"],
            postings=data["postings"],
            documents_checksum=data["documents_checksum"],
            postings_checksum=data["postings_checksum"],
            num_documents=int(data["num_documents"]),
            num_tokens=int(data["num_tokens"]),
            ngram_size=int(data["ngram_size"]),
            include_final_window=bool(data.get("include_final_window", False)),
            created_at=data.get("created_at"),
        )

    def verify_checksums(self, documents_data: bytes, postings_data: bytes) -> None:
        """
        Compare artifact payloads against the recorded checksums.

        Raises:
            CorpusIntegrityError: If either payload differs from what was published
        """
        if checksum(documents_data) != self.documents_checksum:
            raise CorpusIntegrityError(
                f"Documents artifact {self.documents} does not match version {self.version}"
            )
        if checksum(postings_data) != self.postings_checksum:
            raise CorpusIntegrityError(
                f"Postings artifact {self.postings} does not match version {self.version}"
            )

    def __repr__(self) -> str:
        return f"CorpusVersion({self.version!r}, documents={self.num_documents})"


class Manifest:
    """
    Manage the corpus manifest.
    """

    def __init__(self, artifacts: ArtifactStore, layout: Optional[CorpusLayout] = None):
        """
        Initialize manifest manager.

        Args:
            artifacts: Artifact store holding the manifest
            layout: Artifact naming scheme
        """
        self.artifacts = artifacts
        self.layout = layout or CorpusLayout()
        self.current_version: str | None = None
        self.versions: list[CorpusVersion] = []

    def load(self) -> None:
        """Load manifest from the artifact store."""
        name = self.layout.manifest
        if not self.artifacts.exists(name):
            logger.info("No manifest found, starting fresh")
            self.current_version = None
            self.versions = []
            return

        logger.info(f"Loading manifest from {name}")

        try:
            data = json.loads(self.artifacts.read_bytes(name).decode("utf-8"))
            if not isinstance(data, dict):
                raise TypeError(f"expected a JSON object, got {type(data).__name__}")
            self.current_version = data.get("current_version")
            self.versions = [CorpusVersion.from_dict(v) for v in data.get("versions", [])]
        except (ValueError, KeyError, TypeError) as e:
            raise CorpusIntegrityError(f"Invalid manifest {name}: {e}") from e

        logger.info(
            f"Loaded manifest: current_version={self.current_version}, "
            f"{len(self.versions)} versions"
        )

    def save(self) -> None:
        """Save manifest (the artifact store writes atomically)."""
        data = {
            "current_version": self.current_version,
            "versions": [v.to_dict() for v in self.versions],
        }
        payload = json.dumps(data, indent=2).encode("utf-8")
        self.artifacts.write_bytes(self.layout.manifest, payload)

        logger.info(f"Saved manifest: {len(self.versions)} versions")

    def add_version(self, version: CorpusVersion) -> None:
        """
        Add a new version to the manifest.

        Args:
            version: Corpus version to add
        """
        existing = self.get_version(version.version)
        if existing:
            logger.warning(f"Version {version.version} already exists, replacing")
            self.versions = [v for v in self.versions if v.version != version.version]

        self.versions.append(version)
        logger.info(f"Added version {version.version} to manifest")

    def set_current_version(self, version: str) -> None:
        """
        Set the current version (atomic flip).

        Args:
            version: Version identifier to set as current
        """
        if not self.get_version(version):
            raise ValueError(f"Version {version} not found in manifest")

        old_version = self.current_version
        self.current_version = version

        logger.info(f"Set current version: {old_version} → {version}")

    def get_version(self, version: str) -> CorpusVersion | None:
        """
        Get a specific version.

        Returns:
            CorpusVersion if found, None otherwise
        """
        for v in self.versions:
            if v.version == version:
                return v
        return None

    def get_current_version(self) -> CorpusVersion | None:
        """Get the current version, or None if nothing was published."""
        if self.current_version is None:
            return None
        return self.get_version(self.current_version)

    def publish_version(self, version: CorpusVersion) -> None:
        """
        Publish a version (add to manifest, set as current, save).

        Args:
            version: Corpus version whose artifacts are already written
        """
        logger.info(f"Publishing version {version.version}")

        self.add_version(version)
        self.set_current_version(version.version)
        self.save()

        logger.info(f"Published version {version.version}")
