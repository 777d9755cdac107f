"""
Document identifier type.

Document ids are small unsigned integers assigned at ingestion time. The
upper bound comes from ``IndexConfig.max_document_id`` (255 by default, the
range of one unsigned byte); values outside it are rejected instead of
wrapping around.
"""

from typing import Optional

from ngram_search.config import get_config
from ngram_search.errors import DocumentIdRangeError


def max_document_id() -> int:
    """Largest identifier allowed by the current configuration."""
    return get_config().index.max_document_id


class DocumentId(int):
    """
    Bounded, immutable document identifier.

    Behaves as a plain ``int`` once constructed. Construction fails with
    DocumentIdRangeError when the value is not an integer or lies outside
    ``0 ..= max_document_id``.

    Example:
        >>> DocumentId(7)
        DocumentId(7)
        >>> DocumentId(256)
        Traceback (most recent call last):
        ...
        ngram_search.errors.DocumentIdRangeError: document id 256 out of range [0, 255]
    """

    __slots__ = ()

    def __new__(cls, value, upper: Optional[int] = None) -> "DocumentId":
        if isinstance(value, DocumentId) and upper is None:
            return value

        # bool is an int subclass but never a meaningful identifier
        if isinstance(value, bool) or not isinstance(value, int):
            raise DocumentIdRangeError(
                f"document id must be an integer, got {type(value).__name__}: {value!r}"
            )

        limit = max_document_id() if upper is None else upper
        if value < 0 or value > limit:
            raise DocumentIdRangeError(
                f"document id {value} out of range [0, {limit}]"
            )
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return f"DocumentId({int(self)})"


def check_collection_size(count: int, upper: Optional[int] = None) -> None:
    """
    Ensure a collection of ``count`` documents fits the identifier range.

    Raises:
        DocumentIdRangeError: If more documents exist than distinct ids
    """
    limit = max_document_id() if upper is None else upper
    if count > limit + 1:
        raise DocumentIdRangeError(
            f"collection of {count} documents exceeds the id range "
            f"(at most {limit + 1} documents)"
        )
