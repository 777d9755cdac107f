"""
Index builder.

Builds the posting store from a document collection and publishes corpus
versions:
1. Stage tokenized documents (output of the tokenize step)
2. Build postings from the staged collection
3. Write the document snapshot and postings for the version
4. Publish to manifest
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from ngram_search.analysis import NGramTokenizer
from ngram_search.config import get_config
from ngram_search.errors import InvalidDocumentError
from ngram_search.ingestion import DocumentCollection, check_collection_size
from ngram_search.storage import ArtifactStore, CorpusLayout, DocumentStore

from .corpus import Corpus
from .manifest import CorpusVersion, Manifest, checksum
from .postings import PostingStore

logger = logging.getLogger(__name__)


def build(documents: DocumentCollection) -> PostingStore:
    """
    Build a posting store from a complete document collection.

    Every document contributes its title and author as whole-string tokens
    and each of its pre-tokenized content n-grams.

    Args:
        documents: Collection to index

    Returns:
        Frozen PostingStore

    Raises:
        InvalidDocumentError: If the collection holds duplicate ids
        DocumentIdRangeError: If the collection is larger than the id range
    """
    check_collection_size(len(documents))

    seen: set[int] = set()
    store = PostingStore()

    for document in documents:
        doc_id = int(document.id)
        if doc_id in seen:
            raise InvalidDocumentError(f"duplicate document id {doc_id}")
        seen.add(doc_id)

        store.add(document.title, document.id)
        store.add(document.author, document.id)
        for token in document.content:
            store.add(token, document.id)

    logger.info(
        f"Built postings for {len(seen)} documents: {len(store)} distinct tokens"
    )
    return store.freeze()


def check_tokenizer(documents: DocumentCollection, tokenizer: NGramTokenizer) -> None:
    """
    Reject collections tokenized with other settings than ``tokenizer``.

    Uses the settings recorded on the collection when present and falls back
    to checking token lengths otherwise.

    Raises:
        InvalidDocumentError: If the n-gram size or window convention differs
    """
    if documents.ngram_size is not None and documents.ngram_size != tokenizer.n:
        raise InvalidDocumentError(
            f"documents were tokenized with n-gram size {documents.ngram_size}, "
            f"index uses {tokenizer.n}"
        )
    if (
        documents.include_final_window is not None
        and documents.include_final_window != tokenizer.include_final_window
    ):
        raise InvalidDocumentError(
            f"documents were tokenized with include_final_window="
            f"{documents.include_final_window}, index uses "
            f"{tokenizer.include_final_window}"
        )
    check_token_size(documents, tokenizer.n)


def check_token_size(documents: DocumentCollection, n: int) -> None:
    """
    Reject collections whose content was tokenized with another n-gram size.

    A document either has exactly n-code-point tokens or, when its text was
    not longer than n, a single shorter token.

    Raises:
        InvalidDocumentError: If a document's tokens do not fit size n
    """
    for document in documents:
        tokens = document.content
        if len(tokens) == 1 and len(tokens[0]) <= n:
            continue
        if any(len(token) != n for token in tokens):
            raise InvalidDocumentError(
                f"document {int(document.id)} was not tokenized with n-gram size {n}"
            )


class IndexBuilder:
    """
    Orchestrate building and publishing corpus versions.
    """

    def __init__(
        self,
        artifacts: ArtifactStore,
        tokenizer: Optional[NGramTokenizer] = None,
        compression_level: Optional[int] = None,
        layout: Optional[CorpusLayout] = None,
    ):
        """
        Initialize index builder.

        Args:
            artifacts: Artifact store for documents, postings and manifest
            tokenizer: Tokenizer the documents were tokenized with (config if None)
            compression_level: Zstd compression level (defaults to config)
            layout: Artifact naming scheme
        """
        config = get_config()

        self.artifacts = artifacts
        self.tokenizer = tokenizer or NGramTokenizer()
        self.compression_level = (
            compression_level
            if compression_level is not None
            else config.index.compression_level
        )
        self.layout = layout or CorpusLayout()

        self.document_store = DocumentStore(artifacts)
        self.manifest = Manifest(artifacts, self.layout)

    def build(self, documents: DocumentCollection) -> PostingStore:
        """Build a posting store for ``documents``."""
        return build(documents)

    def build_corpus(
        self, documents: DocumentCollection, version: str | None = None
    ) -> Corpus:
        """
        Build postings and pair them with their collection.

        Args:
            documents: Collection to index
            version: Version identifier to attach (optional)

        Returns:
            Verified Corpus
        """
        check_tokenizer(documents, self.tokenizer)

        corpus = Corpus(
            documents=documents,
            postings=self.build(documents),
            ngram_size=self.tokenizer.n,
            version=version,
            include_final_window=self.tokenizer.include_final_window,
        )
        corpus.verify()
        return corpus

    def stage_documents(self, documents: DocumentCollection) -> str:
        """
        Persist a tokenized collection for a later build.

        Returns:
            Artifact name of the staged collection
        """
        name = self.layout.STAGED_DOCUMENTS
        self.document_store.save(documents, name)
        return name

    def load_staged_documents(self) -> DocumentCollection:
        """Load the collection written by stage_documents."""
        return self.document_store.load(self.layout.STAGED_DOCUMENTS)

    def publish(self, corpus: Corpus) -> CorpusVersion:
        """
        Write a corpus' artifacts and make it the current version.

        Args:
            corpus: Corpus to publish (a timestamp version is used if it has none)

        Returns:
            The published CorpusVersion
        """
        version = corpus.version or datetime.now(timezone.utc).strftime(
            "%Y-%m-%dT%H:%M:%SZ"
        )

        documents_name = self.layout.documents(version)
        postings_name = self.layout.postings(version)

        documents_data = self.document_store.save(corpus.documents, documents_name)

        postings_data = corpus.postings.to_bytes(compression_level=self.compression_level)
        self.artifacts.write_bytes(postings_name, postings_data)
        logger.info(
            f"Saved postings to {postings_name}: {len(corpus.postings)} tokens, "
            f"{len(postings_data):,} bytes"
        )

        corpus_version = CorpusVersion(
            version=version,
            documents=documents_name,
            postings=postings_name,
            documents_checksum=checksum(documents_data),
            postings_checksum=checksum(postings_data),
            num_documents=len(corpus.documents),
            num_tokens=len(corpus.postings),
            ngram_size=corpus.ngram_size,
            include_final_window=corpus.include_final_window,
        )

        self.manifest.load()
        self.manifest.publish_version(corpus_version)
        return corpus_version

    def build_all(
        self,
        documents: DocumentCollection | None = None,
        version: str | None = None,
    ) -> str:
        """
        Build and publish a new corpus version.

        Args:
            documents: Collection to index (defaults to the staged collection)
            version: Version identifier (defaults to current timestamp)

        Returns:
            Version identifier of the published corpus
        """
        if version is None:
            version = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        CorpusLayout.validate_version(version)

        logger.info(f"Building corpus version {version}")

        logger.info("Step 1/3: Loading documents...")
        if documents is None:
            documents = self.load_staged_documents()

        logger.info("Step 2/3: Building postings...")
        corpus = self.build_corpus(documents, version=version)

        logger.info("Step 3/3: Publishing to manifest...")
        self.publish(corpus)

        logger.info(f"Successfully built corpus version {version}")
        return version

    def get_stats(self, version: str) -> dict:
        """
        Get statistics for a published version.

        Raises:
            ValueError: If the version is not in the manifest
        """
        self.manifest.load()
        corpus_version = self.manifest.get_version(version)
        if corpus_version is None:
            raise ValueError(f"Version {version} not found in manifest")

        postings = PostingStore.from_bytes(self.artifacts.read_bytes(corpus_version.postings))
        stats = {
            "version": version,
            "ngram_size": corpus_version.ngram_size,
            "num_documents": corpus_version.num_documents,
            **postings.stats(),
        }

        logger.info(f"Statistics for version {version}: {stats}")
        return stats
