"""
Character n-gram tokenizer.

Texts are segmented on Unicode code points (Python ``str`` indexing), so
multi-byte scripts are split per character rather than per byte. No case
folding or other normalization is applied.
"""

from typing import Iterable, Optional

from ngram_search.config import get_config


def tokenize(n: int, text: str, include_final_window: bool = False) -> list[str]:
    """
    Split text into overlapping n-grams.

    Texts of at most ``n`` code points come back unchanged as a single token.
    Longer texts produce one token per start offset ``0 .. len(text) - n - 1``;
    the window starting at ``len(text) - n`` is only emitted when
    ``include_final_window`` is set.

    Args:
        n: Number of code points per token (must be positive)
        text: Text to tokenize
        include_final_window: Also emit the last full window

    Returns:
        Tokens in left-to-right order

    Example:
        >>> tokenize(2, "cats")
        ['ca', 'at']
        >>> tokenize(2, "cats", include_final_window=True)
        ['ca', 'at', 'ts']
        >>> tokenize(2, "猫")
        ['猫']
    """
    if isinstance(n, bool) or not isinstance(n, int) or n < 1:
        raise ValueError(f"n-gram size must be a positive integer, got {n!r}")

    length = len(text)
    if length <= n:
        return [text]

    stop = length - n + 1 if include_final_window else length - n
    return [text[i : i + n] for i in range(stop)]


class NGramTokenizer:
    """
    Tokenizer bound to a fixed n-gram size and window convention.

    The same instance (or an equally configured one) must be used for
    indexing and querying, otherwise query tokens never match index keys.
    """

    def __init__(
        self,
        n: Optional[int] = None,
        include_final_window: Optional[bool] = None,
    ):
        """
        Initialize tokenizer.

        Args:
            n: N-gram size (defaults to config)
            include_final_window: Window convention (defaults to config)
        """
        config = get_config().tokenizer
        self.n = n if n is not None else config.ngram_size
        self.include_final_window = (
            include_final_window
            if include_final_window is not None
            else config.include_final_window
        )
        if isinstance(self.n, bool) or not isinstance(self.n, int) or self.n < 1:
            raise ValueError(f"n-gram size must be a positive integer, got {self.n!r}")

    def tokenize(self, text: str) -> list[str]:
        """Tokenize a single text."""
        return tokenize(self.n, text, self.include_final_window)

    def tokenize_words(self, words: Iterable[str]) -> list[str]:
        """Tokenize each word and flatten the results, preserving order."""
        tokens: list[str] = []
        for word in words:
            tokens.extend(self.tokenize(word))
        return tokens

    def __repr__(self) -> str:
        return (
            f"NGramTokenizer(n={self.n}, "
            f"include_final_window={self.include_final_window})"
        )
