"""
Text analysis.

Turns raw text into the n-gram tokens used as index keys.
"""

from .tokenizer import NGramTokenizer, tokenize

__all__ = ["NGramTokenizer", "tokenize"]
