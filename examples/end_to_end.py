"""
Example: End-to-End Search

Demonstrates the full ngram-search pipeline in memory:
1. Tokenize documents into n-grams
2. Build and publish a corpus version
3. Load the corpus and run queries

Run with:
```bash
uv run python examples/end_to_end.py
```
"""

import logging

import polars as pl

from ngram_search.analysis import NGramTokenizer
from ngram_search.api import CorpusLoader
from ngram_search.index import IndexBuilder
from ngram_search.ingestion import DocumentProcessor
from ngram_search.storage import MemoryArtifactStore

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


def example_1_tokenize():
    """Example 1: Tokenize text."""
    print("\n" + "=" * 80)
    print("Example 1: Tokenize")
    print("=" * 80 + "\n")

    for n in (2, 3):
        tokenizer = NGramTokenizer(n=n)
        print(f"n={n}: {tokenizer.tokenize('cat sat mat')}")

    print(f"short text: {NGramTokenizer(n=2).tokenize('ok')}")


def example_2_build_and_search():
    """Example 2: Build a corpus and query it."""
    print("\n" + "=" * 80)
    print("Example 2: Build and Search")
    print("=" * 80 + "\n")

    df = pl.DataFrame(
        {
            "id": [1, 2, 3],
            "title": ["Cats", "Dogs", "吾輩は猫である"],
            "author": ["Ann", "Bob", "夏目漱石"],
            "content": ["cat sat mat", "cat ran far", "吾輩は猫である。名前はまだ無い。"],
        }
    )

    tokenizer = NGramTokenizer(n=2)
    documents = DocumentProcessor(tokenizer=tokenizer).process_frame(df)

    artifacts = MemoryArtifactStore()
    builder = IndexBuilder(artifacts, tokenizer=tokenizer)
    version = builder.build_all(documents)

    stats = builder.get_stats(version)
    print(f"\nPublished version {version}")
    print(f"  Documents: {stats['num_documents']:,}")
    print(f"  Tokens: {stats['num_tokens']:,}")
    print(f"  Postings: {stats['num_postings']:,}")

    loader = CorpusLoader(artifacts)
    loader.load()

    for query in ("cat", "sat mat", "猫で", "zz"):
        response = loader.service.search(query)
        print(f"\nQuery {query!r}: {response.count} result(s)")
        for document in response.documents:
            print(f"  [{document.id}] {document.title} / {document.author}: {document.preview}")


def main():
    """Run all examples."""
    example_1_tokenize()
    example_2_build_and_search()


if __name__ == "__main__":
    main()
