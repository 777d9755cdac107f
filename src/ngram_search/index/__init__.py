"""
Index building and management.

Handles the posting store, corpus snapshots, the builder and the manifest.
"""

from .builder import IndexBuilder, build
from .corpus import Corpus
from .manifest import CorpusVersion, Manifest, checksum
from .postings import Lane, PostingList, PostingStore

__all__ = [
    "IndexBuilder",
    "build",
    "Corpus",
    "CorpusVersion",
    "Manifest",
    "checksum",
    "Lane",
    "PostingList",
    "PostingStore",
]
