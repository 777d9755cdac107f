"""Shared fixtures."""

import pytest

from ngram_search.api import reset_loader
from ngram_search.config import reset_config


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Start every test from default configuration."""
    for name in (
        "TOKENIZER_NGRAM_SIZE",
        "TOKENIZER_INCLUDE_FINAL_WINDOW",
        "INDEX_MAX_DOCUMENT_ID",
        "INDEX_COMPRESSION_LEVEL",
        "STORAGE_BASE_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    reset_loader()
    yield
    reset_config()
    reset_loader()
