"""Tests for query resolution."""

import random

import pytest

from ngram_search.analysis import NGramTokenizer
from ngram_search.api import QueryResolver, SearchService, intersect_lanes, parse_query
from ngram_search.errors import CorpusIntegrityError
from ngram_search.index import Corpus, IndexBuilder, PostingList, PostingStore
from ngram_search.ingestion import Document, DocumentCollection
from ngram_search.storage import MemoryArtifactStore


def make_collection(contents, n=2, include_final_window=False):
    tokenizer = NGramTokenizer(n=n, include_final_window=include_final_window)
    return DocumentCollection(
        Document(
            id=doc_id,
            title=f"title{doc_id}",
            author=f"author{doc_id}",
            content=tokenizer.tokenize(text),
            raw_content=text,
        )
        for doc_id, text in contents.items()
    )


@pytest.fixture
def corpus():
    """The cat/sat/mat example corpus."""
    documents = make_collection({1: "cat sat mat", 2: "cat ran far"})
    builder = IndexBuilder(MemoryArtifactStore(), tokenizer=NGramTokenizer(n=2))
    return builder.build_corpus(documents, version="v1")


@pytest.fixture
def resolver(corpus):
    return QueryResolver(corpus.postings, NGramTokenizer(n=2))


class TestIntersectLanes:
    """Test suite for the lock-step lane intersection."""

    def lanes(self, *lists):
        return [PostingList(ids).lane() for ids in lists]

    def test_no_lanes(self):
        assert intersect_lanes([]) == []

    def test_single_lane(self):
        assert intersect_lanes(self.lanes([3, 1, 2])) == [1, 2, 3]

    def test_common_ids(self):
        assert intersect_lanes(self.lanes([1, 2, 4, 6], [2, 3, 4, 6], [0, 2, 6, 9])) == [2, 6]

    def test_lagging_lane_catches_up(self):
        """A lane far behind the others still reaches the common id."""
        assert intersect_lanes(self.lanes([1, 2, 3, 4, 5], [5])) == [5]
        assert intersect_lanes(self.lanes([5], [1, 2, 3, 4, 5])) == [5]

    def test_disjoint(self):
        assert intersect_lanes(self.lanes([1, 3, 5], [2, 4, 6])) == []

    def test_empty_lane(self):
        assert intersect_lanes(self.lanes([1, 2], [])) == []

    def test_identical_lanes(self):
        assert intersect_lanes(self.lanes([1, 2, 3], [1, 2, 3])) == [1, 2, 3]

    def test_lanes_are_private(self):
        posting_list = PostingList([1, 2, 3])

        intersect_lanes([posting_list.lane(), posting_list.lane()])

        assert posting_list.to_list() == [1, 2, 3]


class TestQueryResolver:
    """Test suite for QueryResolver."""

    def test_example_cat(self, resolver):
        assert resolver.search(["cat"]) == [1, 2]

    def test_example_unknown_token(self, resolver):
        result = resolver.search(["zz"])

        assert result == []
        assert len(result) == 0

    def test_empty_query(self, resolver):
        assert resolver.search([]) == []
        assert resolver.search("") == []
        assert resolver.search("   ") == []

    def test_multi_word_and(self, resolver):
        assert resolver.search(["sat", "mat"]) == [1]
        assert resolver.search(["cat", "ran"]) == [2]
        assert resolver.search(["sat", "ran"]) == []

    def test_multi_token_word(self, resolver):
        # "at sa" → "at", "t ", " s"
        assert resolver.search(["at sa"]) == [1]

    def test_any_unknown_token_empties_result(self, resolver):
        assert resolver.search(["cat", "zz"]) == []

    def test_string_query_is_split(self, resolver):
        assert resolver.search("sat mat") == resolver.search(["sat", "mat"])

    def test_whole_title_token(self, resolver):
        assert resolver.search(["title2"]) == []
        short = QueryResolver(_store({"ab": [4, 2]}), NGramTokenizer(n=2))
        assert short.search(["ab"]) == [2, 4]

    def test_single_token_equals_posting_list(self, corpus, resolver):
        for token in corpus.postings.tokens():
            if len(token) <= 2:
                assert resolver.search([token]) == corpus.postings.lookup(token).to_list()

    def test_final_window_convention(self):
        """With the final window included, 'cat' needs both 'ca' and 'at'."""
        tokenizer = NGramTokenizer(n=2, include_final_window=True)
        documents = make_collection(
            {1: "cat sat mat", 2: "cat ran far", 3: "cab"}, include_final_window=True
        )
        builder = IndexBuilder(MemoryArtifactStore(), tokenizer=tokenizer)
        corpus = builder.build_corpus(documents)

        resolver = QueryResolver(corpus.postings, tokenizer)

        assert resolver.search(["cat"]) == [1, 2]
        assert resolver.search(["far"]) == [2]

    def test_duplicate_adds_never_duplicate_results(self):
        store = PostingStore()
        for doc_id in (3, 1, 3, 1):
            store.add("ab", doc_id)
            store.add("cd", doc_id)

        resolver = QueryResolver(store, NGramTokenizer(n=2))

        assert resolver.search(["ab"]) == [1, 3]
        assert resolver.search(["ab", "cd"]) == [1, 3]

    def test_matches_set_intersection(self):
        """Randomized: result equals the intersection of the posting lists."""
        rng = random.Random(1234)
        tokens = [f"{a}{b}" for a in "abcd" for b in "wxyz"]

        for _ in range(200):
            postings = {
                token: rng.sample(range(60), rng.randint(1, 40)) for token in tokens
            }
            store = _store(postings)
            resolver = QueryResolver(store, NGramTokenizer(n=2))

            query = rng.sample(tokens, rng.randint(2, 5))
            expected = sorted(set.intersection(*(set(postings[t]) for t in query)))

            assert resolver.search(query) == expected

    def test_queries_do_not_mutate_store(self, corpus, resolver):
        before = corpus.postings.to_bytes()

        for query in (["cat"], ["sat", "mat"], ["cat", "far"]):
            resolver.search(query)

        assert corpus.postings.to_bytes() == before


class TestSearchService:
    """Test suite for SearchService."""

    def test_response(self, corpus):
        service = SearchService(corpus)

        response = service.search("cat")

        assert response.ids == [1, 2]
        assert response.count == 2
        assert response.version == "v1"
        assert response.query == ["cat"]
        assert [d.title for d in response.documents] == ["title1", "title2"]
        assert response.documents[0].preview == "cat sat mat"

    def test_no_results(self, corpus):
        response = SearchService(corpus).search(["zz"])

        assert response.ids == []
        assert response.count == 0
        assert response.documents == []

    def test_uses_corpus_ngram_size(self):
        documents = make_collection({1: "abcdef", 2: "xbcdy"}, n=3)
        corpus = IndexBuilder(
            MemoryArtifactStore(), tokenizer=NGramTokenizer(n=3)
        ).build_corpus(documents)

        assert SearchService(corpus).search_ids(["bcd"]) == [1, 2]

    def test_index_drift_is_integrity_error(self):
        """An id posted in the index but missing from the collection is surfaced."""
        documents = make_collection({1: "cat sat mat"})
        corpus = Corpus(documents=documents, postings=_store({"ca": [1, 9]}), ngram_size=2)

        with pytest.raises(CorpusIntegrityError):
            corpus.verify()
        with pytest.raises(CorpusIntegrityError):
            SearchService(corpus).search(["cat"])


def test_parse_query():
    assert parse_query("  cat  sat\tmat\n") == ["cat", "sat", "mat"]
    assert parse_query("") == []


def _store(postings):
    store = PostingStore()
    for token, ids in postings.items():
        for doc_id in ids:
            store.add(token, doc_id)
    return store.freeze()
