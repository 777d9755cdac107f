"""
Query resolution over a posting store.

A query is a list of words. Every word is tokenized with the index's
tokenizer and all resulting tokens are ANDed together: a document matches
only if it appears in the posting list of every token.
"""

import logging
from typing import Iterable, Optional, Union

from ngram_search.analysis import NGramTokenizer
from ngram_search.errors import CorpusIntegrityError
from ngram_search.index import Corpus, Lane, PostingStore

from .models import DocumentSummary, SearchResponse

logger = logging.getLogger(__name__)

QueryWords = Union[str, Iterable[str]]


def parse_query(text: str) -> list[str]:
    """Split raw query text into whitespace-separated words."""
    return text.split()


def intersect_lanes(lanes: list[Lane]) -> list[int]:
    """
    Intersect ascending posting lanes in lock step.

    Each lane holds one current candidate. In every round, lanes without a
    candidate pull their smallest remaining id, and lanes whose candidate
    equals the previous round's target (the smallest candidate) advance past
    it. When all candidates agree, that id is in every list and is emitted.
    The search stops as soon as any lane runs out.

    Every lane only moves forward, so the work is linear in the total
    length of the lanes.

    Args:
        lanes: One private cursor per query token (consumed)

    Returns:
        Ids present in every lane, ascending
    """
    if not lanes:
        return []

    result: list[int] = []
    candidates: list[Optional[int]] = [None] * len(lanes)
    target: Optional[int] = None

    while True:
        for i, lane in enumerate(lanes):
            if candidates[i] is None or candidates[i] == target:
                candidate = lane.pop_min()
                if candidate is None:
                    return result
                candidates[i] = candidate

        target = min(candidates)
        if all(candidate == target for candidate in candidates):
            result.append(target)


class QueryResolver:
    """
    Resolve multi-word queries to matching document ids.

    Reads the posting store only; every query works on its own lanes.
    """

    def __init__(self, postings: PostingStore, tokenizer: Optional[NGramTokenizer] = None):
        """
        Initialize resolver.

        Args:
            postings: Posting store to query
            tokenizer: Tokenizer used at indexing time (config if None)
        """
        self.postings = postings
        self.tokenizer = tokenizer or NGramTokenizer()

    def query_tokens(self, words: QueryWords) -> list[str]:
        """Tokens of a query, in word order. A plain string is split on whitespace."""
        if isinstance(words, str):
            words = parse_query(words)
        return self.tokenizer.tokenize_words(words)

    def search(self, words: QueryWords) -> list[int]:
        """
        Find documents containing every token of the query.

        Args:
            words: Query words (or a whitespace-separated string)

        Returns:
            Matching document ids, ascending. Empty for an empty query, an
            unknown token, or an empty intersection.
        """
        tokens = self.query_tokens(words)

        if not tokens:
            logger.debug("Empty query")
            return []

        if len(tokens) == 1:
            posting_list = self.postings.lookup(tokens[0])
            return posting_list.to_list() if posting_list is not None else []

        posting_lists = []
        for token in tokens:
            posting_list = self.postings.lookup(token)
            if posting_list is None:
                logger.debug(f"Token {token!r} not indexed, no matches")
                return []
            posting_lists.append(posting_list)

        result = intersect_lanes([posting_list.lane() for posting_list in posting_lists])

        logger.debug(f"Query {tokens} matched {len(result)} documents")
        return result


class SearchService:
    """
    Search a corpus and describe the matching documents.
    """

    def __init__(self, corpus: Corpus):
        """
        Initialize the search service.

        Args:
            corpus: Corpus snapshot to search
        """
        self.corpus = corpus
        self.resolver = QueryResolver(
            corpus.postings,
            NGramTokenizer(
                n=corpus.ngram_size,
                include_final_window=corpus.include_final_window,
            ),
        )

    def search_ids(self, words: QueryWords) -> list[int]:
        """Matching document ids, ascending."""
        return self.resolver.search(words)

    def search(self, words: QueryWords) -> SearchResponse:
        """
        Run a query and attach document summaries.

        Raises:
            CorpusIntegrityError: If a matching id is not in the collection
        """
        if isinstance(words, str):
            words = parse_query(words)
        words = list(words)

        ids = self.resolver.search(words)

        summaries = []
        for doc_id in ids:
            document = self.corpus.documents.get(doc_id)
            if document is None:
                raise CorpusIntegrityError(
                    f"Document {doc_id} is indexed in corpus {self.corpus.version} "
                    f"but missing from its collection"
                )
            summaries.append(
                DocumentSummary(
                    id=doc_id,
                    title=document.title,
                    author=document.author,
                    preview=document.preview(),
                )
            )

        return SearchResponse(
            query=words,
            version=self.corpus.version,
            ids=ids,
            count=len(ids),
            documents=summaries,
        )
