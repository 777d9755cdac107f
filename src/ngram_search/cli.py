"""
Command line interface.

Three steps, run in order:
    ngram-search tokenize --input docs.csv   # CSV → tokenized documents
    ngram-search index                       # documents → published corpus
    ngram-search search [--query "w1 w2"]    # query the current corpus
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence, TextIO

from ngram_search.analysis import NGramTokenizer
from ngram_search.api import CorpusLoader, SearchResponse
from ngram_search.config import get_config
from ngram_search.errors import NgramSearchError
from ngram_search.index import IndexBuilder
from ngram_search.ingestion import DocumentProcessor
from ngram_search.storage import LocalArtifactStore

logger = logging.getLogger(__name__)

PROMPT = "Enter search words separated by spaces"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    config = get_config()
    parser = argparse.ArgumentParser(
        prog="ngram-search",
        description="Build and query an n-gram full-text index.",
    )
    parser.add_argument(
        "--base-path",
        type=Path,
        default=config.storage.base_path,
        help="Directory holding documents, postings and manifest (defaults to config).",
    )
    parser.add_argument(
        "--ngram-size",
        type=int,
        default=config.tokenizer.ngram_size,
        help="Characters per n-gram token (defaults to config).",
    )
    parser.add_argument(
        "--log-level",
        default=config.log_level,
        help="Logging level (defaults to config).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    tokenize_parser = subparsers.add_parser(
        "tokenize", help="Tokenize a CSV of documents (id,title,author,content)."
    )
    tokenize_parser.add_argument("--input", required=True, type=Path, help="CSV file.")

    index_parser = subparsers.add_parser(
        "index", help="Build and publish a corpus version from tokenized documents."
    )
    index_parser.add_argument(
        "--version", default=None, help="Version identifier (defaults to a timestamp)."
    )

    search_parser = subparsers.add_parser(
        "search", help="Search the current corpus (interactive without --query)."
    )
    search_parser.add_argument(
        "--query", default=None, help="Run a single query and exit."
    )
    search_parser.add_argument(
        "--version", default=None, help="Corpus version to search (defaults to current)."
    )

    return parser.parse_args(argv)


def render(response: SearchResponse, out: TextIO) -> None:
    """Print a search result in human-readable form."""
    print(f"{response.count} result(s) found", file=out)
    for document in response.documents:
        print(f"  id:      {document.id}", file=out)
        print(f"  title:   {document.title}", file=out)
        print(f"  author:  {document.author}", file=out)
        print(f"  content: {document.preview}...", file=out)
        print("----------", file=out)


def run_tokenize(args: argparse.Namespace) -> None:
    processor = DocumentProcessor(tokenizer=NGramTokenizer(n=args.ngram_size))
    documents = processor.process_csv(args.input)

    builder = IndexBuilder(LocalArtifactStore(args.base_path), tokenizer=processor.tokenizer)
    name = builder.stage_documents(documents)
    print(f"generated {args.base_path / name}")


def run_index(args: argparse.Namespace) -> None:
    builder = IndexBuilder(
        LocalArtifactStore(args.base_path), tokenizer=NGramTokenizer(n=args.ngram_size)
    )
    version = builder.build_all(version=args.version)
    print(f"published corpus version {version}")


def run_search(
    args: argparse.Namespace,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
) -> None:
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    loader = CorpusLoader(LocalArtifactStore(args.base_path))
    corpus = loader.load(version=args.version)
    if corpus.ngram_size != args.ngram_size:
        logger.warning(
            f"Corpus {corpus.version} was built with n={corpus.ngram_size}; "
            f"ignoring --ngram-size={args.ngram_size}"
        )
    service = loader.service

    if args.query is not None:
        render(service.search(args.query), stdout)
        return

    while True:
        print("", file=stdout)
        print(PROMPT, file=stdout)
        stdout.flush()
        line = stdin.readline()
        if not line:
            break
        render(service.search(line), stdout)


COMMANDS = {
    "tokenize": run_tokenize,
    "index": run_index,
    "search": run_search,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    try:
        COMMANDS[args.command](args)
    except (NgramSearchError, ValueError, FileNotFoundError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
