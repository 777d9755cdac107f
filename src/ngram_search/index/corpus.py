"""
Corpus: a document collection paired with the index built from it.

Both halves travel together with the version they were published under, so
a query never runs against an index built from another collection.
"""

import logging
from typing import Optional

from ngram_search.errors import CorpusIntegrityError
from ngram_search.ingestion import DocumentCollection

from .postings import PostingStore

logger = logging.getLogger(__name__)


class Corpus:
    """
    Immutable snapshot of documents + postings.
    """

    __slots__ = ("version", "documents", "postings", "ngram_size", "include_final_window")

    def __init__(
        self,
        documents: DocumentCollection,
        postings: PostingStore,
        ngram_size: int,
        version: Optional[str] = None,
        include_final_window: bool = False,
    ):
        """
        Initialize corpus.

        Args:
            documents: Document collection the postings were built from
            postings: Posting store (frozen on assignment)
            ngram_size: N-gram size used for the content tokens
            version: Published version identifier, if any
            include_final_window: Window convention used for the content tokens
        """
        self.documents = documents
        self.postings = postings.freeze()
        self.ngram_size = ngram_size
        self.version = version
        self.include_final_window = include_final_window

    def verify(self) -> None:
        """
        Check that every posted id belongs to the collection.

        Raises:
            CorpusIntegrityError: If a posting list references an unknown id
        """
        known = set(self.documents.ids())
        unknown = sorted(set(self.postings.document_ids()) - known)
        if unknown:
            raise CorpusIntegrityError(
                f"Index references {len(unknown)} document id(s) absent from the "
                f"collection: {unknown[:10]}"
            )
        logger.debug(f"Corpus {self.version} verified: {len(known)} documents")

    def stats(self) -> dict:
        """Summary statistics."""
        return {
            "version": self.version,
            "ngram_size": self.ngram_size,
            "num_documents": len(self.documents),
            **self.postings.stats(),
        }

    def __repr__(self) -> str:
        return (
            f"Corpus(version={self.version!r}, documents={len(self.documents)}, "
            f"tokens={len(self.postings)}, n={self.ngram_size})"
        )
