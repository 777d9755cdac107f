"""
Parquet codec for document collections.

Schema:
- id: uint32
- title: string
- author: string
- content: list<string>    (cached n-gram tokens)
- raw_content: string

Schema metadata records the tokenizer settings of the content column
(`ngram_size`, `include_final_window`) when the collection knows them.
"""

import logging
from typing import Optional

import pyarrow as pa
import pyarrow.parquet as pq

from ngram_search.errors import CorpusIntegrityError
from ngram_search.ingestion import DocumentCollection

from .artifacts import ArtifactStore

logger = logging.getLogger(__name__)

DOCUMENT_SCHEMA = pa.schema(
    [
        pa.field("id", pa.uint32(), nullable=False),
        pa.field("title", pa.string(), nullable=False),
        pa.field("author", pa.string(), nullable=False),
        pa.field("content", pa.list_(pa.string()), nullable=False),
        pa.field("raw_content", pa.string(), nullable=False),
    ]
)


def documents_to_bytes(
    documents: DocumentCollection, compression: str = "zstd"
) -> bytes:
    """Encode a collection as a Parquet file in memory."""
    table = pa.Table.from_pylist(documents.to_records(), schema=DOCUMENT_SCHEMA)

    metadata = {}
    if documents.ngram_size is not None:
        metadata[b"ngram_size"] = str(documents.ngram_size).encode()
    if documents.include_final_window is not None:
        metadata[b"include_final_window"] = (
            b"true" if documents.include_final_window else b"false"
        )
    if metadata:
        table = table.replace_schema_metadata(metadata)

    sink = pa.BufferOutputStream()
    pq.write_table(table, sink, compression=compression)
    return sink.getvalue().to_pybytes()


def documents_from_bytes(data: bytes) -> DocumentCollection:
    """Decode a Parquet payload written by documents_to_bytes."""
    try:
        table = pq.read_table(pa.BufferReader(data))
    except (pa.ArrowInvalid, OSError) as e:
        raise CorpusIntegrityError(f"Invalid documents artifact: {e}") from e

    missing = set(DOCUMENT_SCHEMA.names) - set(table.column_names)
    if missing:
        raise CorpusIntegrityError(
            f"Invalid documents artifact: missing columns {sorted(missing)}"
        )

    metadata = table.schema.metadata or {}
    try:
        ngram_size = int(metadata[b"ngram_size"]) if b"ngram_size" in metadata else None
    except ValueError as e:
        raise CorpusIntegrityError(f"Invalid documents artifact: bad ngram_size: {e}") from e

    include_final_window = None
    if b"include_final_window" in metadata:
        include_final_window = metadata[b"include_final_window"] == b"true"

    return DocumentCollection.from_records(
        table.to_pylist(),
        ngram_size=ngram_size,
        include_final_window=include_final_window,
    )


class DocumentStore:
    """
    Save and load document collections through an artifact store.
    """

    def __init__(self, artifacts: ArtifactStore, compression: Optional[str] = "zstd"):
        """
        Initialize document store.

        Args:
            artifacts: Artifact store to read from and write to
            compression: Parquet compression codec
        """
        self.artifacts = artifacts
        self.compression = compression or "NONE"

    def save(self, documents: DocumentCollection, name: str) -> bytes:
        """
        Write a collection under ``name``.

        Returns:
            The bytes written (used for checksumming)
        """
        data = documents_to_bytes(documents, compression=self.compression)
        self.artifacts.write_bytes(name, data)
        logger.info(f"Saved {len(documents)} documents to {name} ({len(data):,} bytes)")
        return data

    def load(self, name: str) -> DocumentCollection:
        """Read a collection written by save."""
        documents = documents_from_bytes(self.artifacts.read_bytes(name))
        logger.info(f"Loaded {len(documents)} documents from {name}")
        return documents
