"""
Storage layer for corpus artifacts.

Handles artifact stores, artifact naming and the document Parquet codec.
"""

from .artifacts import ArtifactStore, LocalArtifactStore, MemoryArtifactStore
from .document_store import DocumentStore, documents_from_bytes, documents_to_bytes
from .layout import CorpusLayout

__all__ = [
    "ArtifactStore",
    "LocalArtifactStore",
    "MemoryArtifactStore",
    "CorpusLayout",
    "DocumentStore",
    "documents_from_bytes",
    "documents_to_bytes",
]
