"""
Document ingestion.

Handles identifiers, document records and tokenization of raw input.
"""

from .documents import Document, DocumentCollection
from .ids import DocumentId, check_collection_size
from .processor import DocumentProcessor

__all__ = [
    "Document",
    "DocumentCollection",
    "DocumentId",
    "DocumentProcessor",
    "check_collection_size",
]
