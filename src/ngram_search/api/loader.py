"""
Corpus loader.

Loads a published corpus version into memory and keeps it as the active
snapshot. Reloading builds a complete new snapshot first and then replaces
the reference, so callers holding the previous Corpus keep a consistent view.
"""

import logging
from typing import Optional

from ngram_search.errors import CorpusIntegrityError
from ngram_search.index import Corpus, CorpusVersion, Manifest, PostingStore
from ngram_search.storage import ArtifactStore, CorpusLayout, documents_from_bytes

from .query import SearchService

logger = logging.getLogger(__name__)


class CorpusLoader:
    """
    Load and hold the active corpus snapshot.
    """

    def __init__(self, artifacts: ArtifactStore, layout: Optional[CorpusLayout] = None):
        """
        Initialize the loader.

        Args:
            artifacts: Artifact store holding manifest, documents and postings
            layout: Artifact naming scheme
        """
        self.artifacts = artifacts
        self.layout = layout or CorpusLayout()
        self.manifest = Manifest(artifacts, self.layout)

        self._corpus: Corpus | None = None
        self._service: SearchService | None = None

        logger.info(f"CorpusLoader initialized with artifacts={artifacts!r}")

    def load(self, version: str | None = None) -> Corpus:
        """
        Load a corpus version (the manifest's current one by default).

        Both artifacts are checked against the manifest checksums and every
        posted id against the collection before the snapshot becomes active.

        Args:
            version: Version identifier to load

        Returns:
            The loaded Corpus

        Raises:
            ValueError: If nothing is published or the version is unknown
            CorpusIntegrityError: If the artifacts do not match the manifest
        """
        self.manifest.load()

        if version is None:
            corpus_version = self.manifest.get_current_version()
            if corpus_version is None:
                raise ValueError("No corpus published yet. Run the index step first.")
        else:
            corpus_version = self.manifest.get_version(version)
            if corpus_version is None:
                raise ValueError(f"Version {version} not found in manifest")

        corpus = self._load_version(corpus_version)

        # Single reference swap
        self._corpus, self._service = corpus, SearchService(corpus)

        logger.info(f"Active corpus: {corpus}")
        return corpus

    def reload(self) -> Corpus:
        """Load the manifest's current version, replacing the active snapshot."""
        return self.load()

    def _load_version(self, corpus_version: CorpusVersion) -> Corpus:
        logger.info(f"Loading corpus version {corpus_version.version}...")

        documents_data = self.artifacts.read_bytes(corpus_version.documents)
        postings_data = self.artifacts.read_bytes(corpus_version.postings)
        corpus_version.verify_checksums(documents_data, postings_data)

        documents = documents_from_bytes(documents_data)
        postings = PostingStore.from_bytes(postings_data)
        logger.info(f"Loaded {len(documents)} documents and {len(postings)} tokens")

        if len(documents) != corpus_version.num_documents:
            raise CorpusIntegrityError(
                f"Version {corpus_version.version} records {corpus_version.num_documents} "
                f"documents, artifact holds {len(documents)}"
            )

        corpus = Corpus(
            documents=documents,
            postings=postings,
            ngram_size=corpus_version.ngram_size,
            version=corpus_version.version,
            include_final_window=corpus_version.include_final_window,
        )
        corpus.verify()
        return corpus

    @property
    def corpus(self) -> Corpus:
        """Get the active corpus (must be loaded first)."""
        if self._corpus is None:
            raise RuntimeError("Corpus not loaded. Call load() first.")
        return self._corpus

    @property
    def service(self) -> SearchService:
        """Search service bound to the active corpus (must be loaded first)."""
        if self._service is None:
            raise RuntimeError("Corpus not loaded. Call load() first.")
        return self._service


# Global loader instance
_loader: CorpusLoader | None = None


def init_loader(artifacts: ArtifactStore) -> CorpusLoader:
    """
    Initialize the global loader and load the current corpus.

    Args:
        artifacts: Artifact store holding the corpus

    Returns:
        Loaded CorpusLoader
    """
    global _loader
    loader = CorpusLoader(artifacts)
    loader.load()
    _loader = loader
    return _loader


def get_loader() -> CorpusLoader:
    """
    Get the global loader.

    Raises:
        RuntimeError: If init_loader() has not been called
    """
    if _loader is None:
        raise RuntimeError("Loader not initialized. Call init_loader() first.")
    return _loader


def reset_loader() -> None:
    """Reset the global loader (mainly for testing)."""
    global _loader
    _loader = None
