"""
Document records and the in-memory document collection.

A Document keeps its content pre-tokenized so the index builder never has to
retokenize. The collection owns the records; the posting store only ever
holds their identifiers.
"""

import logging
from typing import Iterable, Iterator, Optional

from ngram_search.errors import InvalidDocumentError

from .ids import DocumentId, check_collection_size

logger = logging.getLogger(__name__)


class Document:
    """
    A single searchable document.
    """

    __slots__ = ("id", "title", "author", "content", "raw_content")

    def __init__(
        self,
        id: int,
        title: str,
        author: str,
        content: Iterable[str],
        raw_content: str,
    ):
        """
        Initialize document.

        Args:
            id: Document identifier (validated against the id range)
            title: Title, indexed as a whole string
            author: Author, indexed as a whole string
            content: Pre-computed n-gram tokens of the searchable text
            raw_content: Original content, kept for display
        """
        for name, value in (("title", title), ("author", author), ("raw_content", raw_content)):
            if not isinstance(value, str):
                raise InvalidDocumentError(
                    f"document {id!r}: field '{name}' must be a string, "
                    f"got {type(value).__name__}"
                )

        tokens = tuple(content)
        if not all(isinstance(token, str) for token in tokens):
            raise InvalidDocumentError(f"document {id!r}: content tokens must be strings")

        self.id = DocumentId(id)
        self.title = title
        self.author = author
        self.content = tokens
        self.raw_content = raw_content

    def preview(self, length: int = 25) -> str:
        """First ``length`` characters of the raw content."""
        return self.raw_content[:length]

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": int(self.id),
            "title": self.title,
            "author": self.author,
            "content": list(self.content),
            "raw_content": self.raw_content,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Document":
        """Create from dictionary."""
        try:
            return cls(
                id=data["id"],
                title=data["title"],
                author=data["author"],
                content=data["content"] or [],
                raw_content=data["raw_content"],
            )
        except KeyError as e:
            raise InvalidDocumentError(f"document record missing field {e}") from e

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash((int(self.id), self.title, self.author, self.content, self.raw_content))

    def __repr__(self) -> str:
        return f"Document(id={int(self.id)}, title={self.title!r}, author={self.author!r})"


class DocumentCollection:
    """
    Ordered collection of documents with unique identifiers.
    """

    def __init__(
        self,
        documents: Iterable[Document] = (),
        ngram_size: Optional[int] = None,
        include_final_window: Optional[bool] = None,
    ):
        """
        Initialize collection.

        Args:
            documents: Documents in ingestion order
            ngram_size: N-gram size the content was tokenized with, if known
            include_final_window: Window convention the content was tokenized
                with, if known

        Raises:
            InvalidDocumentError: If two documents share an identifier
            DocumentIdRangeError: If there are more documents than ids
        """
        self._documents: list[Document] = []
        self._by_id: dict[int, Document] = {}
        self.ngram_size = ngram_size
        self.include_final_window = include_final_window

        for document in documents:
            self.add(document)

    def add(self, document: Document) -> None:
        """Append a document, rejecting duplicate identifiers."""
        if not isinstance(document, Document):
            raise InvalidDocumentError(
                f"expected Document, got {type(document).__name__}"
            )
        if document.id in self._by_id:
            raise InvalidDocumentError(f"duplicate document id {int(document.id)}")

        check_collection_size(len(self._documents) + 1)

        self._documents.append(document)
        self._by_id[int(document.id)] = document

    def get(self, doc_id: int) -> Optional[Document]:
        """Look up a document by id, or None if absent."""
        return self._by_id.get(int(doc_id))

    def ids(self) -> list[int]:
        """Identifiers in ingestion order."""
        return [int(document.id) for document in self._documents]

    def select(self, doc_ids: Iterable[int]) -> list[Document]:
        """
        Resolve identifiers to documents, preserving the given order.

        Raises:
            KeyError: If an identifier is not part of the collection
        """
        return [self._by_id[int(doc_id)] for doc_id in doc_ids]

    def to_records(self) -> list[dict]:
        """Documents as plain dictionaries, in ingestion order."""
        return [document.to_dict() for document in self._documents]

    @classmethod
    def from_records(
        cls,
        records: Iterable[dict],
        ngram_size: Optional[int] = None,
        include_final_window: Optional[bool] = None,
    ) -> "DocumentCollection":
        """Build a collection from plain dictionaries."""
        collection = cls(
            (Document.from_dict(record) for record in records),
            ngram_size=ngram_size,
            include_final_window=include_final_window,
        )
        logger.debug(f"Loaded collection of {len(collection)} documents")
        return collection

    def __contains__(self, doc_id: object) -> bool:
        return isinstance(doc_id, int) and int(doc_id) in self._by_id

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DocumentCollection):
            return NotImplemented
        return self._documents == other._documents

    def __repr__(self) -> str:
        return f"DocumentCollection({len(self._documents)} documents)"
