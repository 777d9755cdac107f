"""
Exception types raised by the search engine.

Lookup misses (unknown token, empty query, empty intersection) are not errors
and never raise; they produce an empty result.
"""


class NgramSearchError(Exception):
    """Base class for all ngram-search errors."""


class InvalidDocumentError(NgramSearchError, ValueError):
    """A document record is malformed or conflicts with another record."""


class DocumentIdRangeError(NgramSearchError, ValueError):
    """A document identifier (or the collection size) exceeds the id range."""


class CorpusIntegrityError(NgramSearchError):
    """The document collection and the index disagree, or an artifact is corrupt."""


class ArtifactNotFoundError(NgramSearchError, FileNotFoundError):
    """A requested artifact does not exist in the artifact store."""
