"""
Query layer.

Handles query resolution, corpus loading and search responses.
"""

from ngram_search.api.loader import CorpusLoader, get_loader, init_loader, reset_loader
from ngram_search.api.models import DocumentSummary, SearchResponse
from ngram_search.api.query import (
    QueryResolver,
    SearchService,
    intersect_lanes,
    parse_query,
)

__all__ = [
    "CorpusLoader",
    "get_loader",
    "init_loader",
    "reset_loader",
    "DocumentSummary",
    "SearchResponse",
    "QueryResolver",
    "SearchService",
    "intersect_lanes",
    "parse_query",
]
