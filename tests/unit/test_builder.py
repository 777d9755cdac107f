"""Tests for index building and publishing."""

import polars as pl
import pytest

from ngram_search.analysis import NGramTokenizer
from ngram_search.api import CorpusLoader
from ngram_search.errors import DocumentIdRangeError, InvalidDocumentError
from ngram_search.index import Corpus, IndexBuilder, PostingStore, build
from ngram_search.ingestion import Document, DocumentCollection, DocumentProcessor
from ngram_search.storage import CorpusLayout, LocalArtifactStore, MemoryArtifactStore


@pytest.fixture
def documents():
    """Two short documents tokenized with n=2."""
    processor = DocumentProcessor(tokenizer=NGramTokenizer(n=2))
    return DocumentCollection(
        [
            processor.process_record(
                {"id": 1, "title": "Cats", "author": "Ann", "content": "cat sat mat"}
            ),
            processor.process_record(
                {"id": 2, "title": "Dogs", "author": "Bob", "content": "cat ran far"}
            ),
        ]
    )


class TestBuild:
    """Test suite for build()."""

    def test_title_and_author_are_whole_tokens(self, documents):
        store = build(documents)

        assert store.lookup("Cats").to_list() == [1]
        assert store.lookup("Bob").to_list() == [2]

    def test_content_ngrams_indexed(self, documents):
        store = build(documents)

        assert store.lookup("ca").to_list() == [1, 2]
        assert store.lookup("sa").to_list() == [1]
        assert store.lookup("ra").to_list() == [2]

    def test_result_is_frozen(self, documents):
        assert build(documents).frozen

    def test_every_posted_id_is_a_document(self, documents):
        store = build(documents)

        assert set(store.document_ids()) == set(documents.ids())

    def test_rebuild_is_byte_identical(self, documents):
        assert build(documents).to_bytes() == build(documents).to_bytes()

    def test_empty_collection(self):
        assert len(build(DocumentCollection())) == 0

    def test_duplicate_ids_in_iterable(self):
        doc = Document(id=1, title="a", author="b", content=["cd"], raw_content="cd")

        with pytest.raises(InvalidDocumentError):
            build([doc, doc])

    def test_collection_larger_than_id_range(self):
        docs = [
            Document(id=i % 256, title="t", author="a", content=["xy"], raw_content="xy")
            for i in range(257)
        ]

        with pytest.raises(DocumentIdRangeError):
            build(docs)


class TestIndexBuilder:
    """Test suite for IndexBuilder."""

    @pytest.fixture
    def artifacts(self):
        return MemoryArtifactStore()

    @pytest.fixture
    def builder(self, artifacts):
        return IndexBuilder(artifacts, tokenizer=NGramTokenizer(n=2))

    def test_build_corpus(self, builder, documents):
        corpus = builder.build_corpus(documents, version="v1")

        assert isinstance(corpus, Corpus)
        assert corpus.version == "v1"
        assert corpus.ngram_size == 2
        assert corpus.documents is documents
        assert corpus.postings.lookup("ca").to_list() == [1, 2]

    def test_build_corpus_rejects_other_ngram_size(self, artifacts, documents):
        builder = IndexBuilder(artifacts, tokenizer=NGramTokenizer(n=3))

        with pytest.raises(InvalidDocumentError):
            builder.build_corpus(documents)

    def test_build_corpus_rejects_other_window(self, artifacts):
        df = pl.DataFrame({"id": [1], "title": ["T"], "author": ["A"], "content": ["xca"]})
        processor = DocumentProcessor(
            tokenizer=NGramTokenizer(n=2, include_final_window=False)
        )
        documents = processor.process_frame(df)
        builder = IndexBuilder(
            artifacts, tokenizer=NGramTokenizer(n=2, include_final_window=True)
        )

        with pytest.raises(InvalidDocumentError):
            builder.build_corpus(documents)

    def test_staged_window_convention_is_enforced(self, artifacts):
        df = pl.DataFrame({"id": [1], "title": ["T"], "author": ["A"], "content": ["xca"]})
        tokenizer = NGramTokenizer(n=2, include_final_window=False)
        IndexBuilder(artifacts, tokenizer=tokenizer).stage_documents(
            DocumentProcessor(tokenizer=tokenizer).process_frame(df)
        )

        other = IndexBuilder(artifacts, tokenizer=NGramTokenizer(n=2, include_final_window=True))
        with pytest.raises(InvalidDocumentError):
            other.build_all(version="v1")

        IndexBuilder(artifacts, tokenizer=tokenizer).build_all(version="v1")
        loader = CorpusLoader(artifacts)
        loader.load()
        assert loader.corpus.include_final_window is False
        assert loader.service.search_ids(["xca"]) == [1]

    def test_staged_documents_keep_tokenizer_settings(self, builder, artifacts):
        df = pl.DataFrame({"id": [1], "title": ["T"], "author": ["A"], "content": ["xca"]})
        tokenizer = NGramTokenizer(n=2, include_final_window=True)
        builder.stage_documents(DocumentProcessor(tokenizer=tokenizer).process_frame(df))

        staged = builder.load_staged_documents()

        assert staged.ngram_size == 2
        assert staged.include_final_window is True

    def test_publish_leaves_corpus_unchanged(self, builder, documents):
        corpus = builder.build_corpus(documents)

        published = builder.publish(corpus)

        assert corpus.version is None
        assert published.version.endswith("Z")

    def test_stage_and_load_documents(self, builder, artifacts, documents):
        name = builder.stage_documents(documents)

        assert name == CorpusLayout.STAGED_DOCUMENTS
        assert artifacts.exists(name)
        assert builder.load_staged_documents() == documents

    def test_build_all_from_staged(self, builder, artifacts, documents):
        builder.stage_documents(documents)

        version = builder.build_all(version="2025-01-01T00:00:00Z")

        layout = CorpusLayout()
        assert version == "2025-01-01T00:00:00Z"
        assert artifacts.exists(layout.documents(version))
        assert artifacts.exists(layout.postings(version))
        assert artifacts.exists(layout.manifest)

        builder.manifest.load()
        published = builder.manifest.get_current_version()
        assert published.version == version
        assert published.num_documents == 2
        assert published.ngram_size == 2

    def test_build_all_default_version(self, builder, documents):
        version = builder.build_all(documents=documents)

        assert version.endswith("Z")

    def test_build_all_rejects_unsafe_version(self, builder, documents):
        with pytest.raises(ValueError):
            builder.build_all(documents=documents, version="../escape")

    def test_published_postings_reload(self, builder, artifacts, documents):
        version = builder.build_all(documents=documents, version="v1")

        data = artifacts.read_bytes(CorpusLayout().postings(version))
        assert PostingStore.from_bytes(data) == build(documents)

    def test_two_builds_identical_postings(self, builder, artifacts, documents):
        builder.build_all(documents=documents, version="v1")
        builder.build_all(documents=documents, version="v2")

        layout = CorpusLayout()
        assert artifacts.read_bytes(layout.postings("v1")) == artifacts.read_bytes(
            layout.postings("v2")
        )
        builder.manifest.load()
        assert [v.version for v in builder.manifest.versions] == ["v1", "v2"]
        assert builder.manifest.current_version == "v2"

    def test_get_stats(self, builder, documents):
        builder.build_all(documents=documents, version="v1")

        stats = builder.get_stats("v1")

        assert stats["num_documents"] == 2
        assert stats["num_posted_documents"] == 2
        assert stats["num_tokens"] > 0

    def test_get_stats_unknown_version(self, builder):
        with pytest.raises(ValueError):
            builder.get_stats("missing")

    def test_local_artifacts(self, tmp_path, documents):
        builder = IndexBuilder(LocalArtifactStore(tmp_path), tokenizer=NGramTokenizer(n=2))

        version = builder.build_all(documents=documents, version="v1")

        assert (tmp_path / "corpus" / version / "postings.bin.zst").exists()
        assert (tmp_path / "corpus" / "manifest.json").exists()
