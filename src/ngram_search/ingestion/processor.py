"""
Ingestion processor pipeline.

Turns raw document rows (id, title, author, content) into tokenized
Document records ready for indexing.
"""

import logging
from pathlib import Path
from typing import Optional

import polars as pl

from ngram_search.analysis import NGramTokenizer
from ngram_search.errors import InvalidDocumentError

from .documents import Document, DocumentCollection

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("id", "title", "author", "content")


class DocumentProcessor:
    """
    Process raw document rows through the tokenization pipeline.

    The searchable text of a document is its title, author and content
    concatenated without separator; its n-grams are computed once here and
    cached on the Document.
    """

    def __init__(self, tokenizer: Optional[NGramTokenizer] = None):
        """
        Initialize document processor.

        Args:
            tokenizer: Tokenizer instance (creates one from config if None)
        """
        self.tokenizer = tokenizer or NGramTokenizer()

    def process_record(self, row: dict) -> Document:
        """
        Tokenize a single raw record.

        Args:
            row: Mapping with id, title, author and content

        Returns:
            Tokenized Document

        Raises:
            InvalidDocumentError: If a field is missing or null
            DocumentIdRangeError: If the id is out of range
        """
        for column in REQUIRED_COLUMNS:
            if row.get(column) is None:
                raise InvalidDocumentError(
                    f"document record {row.get('id')!r} has no value for '{column}'"
                )

        title = str(row["title"])
        author = str(row["author"])
        content = str(row["content"])

        tokens = self.tokenizer.tokenize(f"{title}{author}{content}")

        return Document(
            id=row["id"],
            title=title,
            author=author,
            content=tokens,
            raw_content=content,
        )

    def process_frame(self, df: pl.DataFrame) -> DocumentCollection:
        """
        Process a DataFrame of raw documents.

        Input schema:
            - id: integer
            - title: string
            - author: string
            - content: string

        Args:
            df: Polars DataFrame with one row per document

        Returns:
            DocumentCollection in row order

        Raises:
            InvalidDocumentError: If columns are missing, a row is malformed,
                or ids repeat
        """
        missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
        if missing:
            raise InvalidDocumentError(f"missing required columns: {missing}")

        collection = DocumentCollection(
            ngram_size=self.tokenizer.n,
            include_final_window=self.tokenizer.include_final_window,
        )
        for row in df.select(REQUIRED_COLUMNS).iter_rows(named=True):
            collection.add(self.process_record(row))

        logger.info(
            f"Tokenized {len(collection)} documents (n={self.tokenizer.n})"
        )
        return collection

    def process_csv(self, path: Path) -> DocumentCollection:
        """
        Read and tokenize a CSV file with an id,title,author,content header.

        Args:
            path: CSV file path

        Returns:
            DocumentCollection in file order
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Document file not found: {path}")

        logger.info(f"Reading documents from {path}")

        try:
            df = pl.read_csv(
                path,
                schema_overrides={
                    "id": pl.Int64,
                    "title": pl.Utf8,
                    "author": pl.Utf8,
                    "content": pl.Utf8,
                },
            )
        except pl.exceptions.PolarsError as e:
            raise InvalidDocumentError(f"could not parse {path}: {e}") from e

        # Empty CSV cells are empty strings, not missing values
        text_columns = [c for c in ("title", "author", "content") if c in df.columns]
        if text_columns:
            df = df.with_columns(pl.col(text_columns).fill_null(""))

        return self.process_frame(df)
