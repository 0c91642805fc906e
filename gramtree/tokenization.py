"""
Character n-gram tokenization.
"""
from typing import Iterator

from .errors import ConfigError


def validate_gram_bounds(min_gram: int, max_gram: int):
    """Reject gram bounds that are not integers with 1 <= min_gram <= max_gram."""
    for name, value in (('min_gram', min_gram), ('max_gram', max_gram)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"{name} must be an integer, got {value!r}")
        if value < 1:
            raise ConfigError(f"{name} must be >= 1, got {value}")
    if min_gram > max_gram:
        raise ConfigError(f"min_gram ({min_gram}) must not exceed max_gram ({max_gram})")


class NGramTokenizer:
    """
    Produces every substring of a text whose length lies between ``min_gram``
    and ``max_gram``.

    Grams are emitted shortest first: all grams of size ``min_gram`` from left
    to right, then all grams of size ``min_gram + 1``, and so on. Iterating
    again restarts from the beginning, so the same tokenizer can be consumed
    any number of times.
    """

    def __init__(self, text: str, min_gram: int, max_gram: int):
        validate_gram_bounds(min_gram, max_gram)
        self.text = text
        self.min_gram = min_gram
        self.max_gram = max_gram

    def __iter__(self) -> Iterator[str]:
        text = self.text
        length = len(text)
        window = self.min_gram
        while window <= self.max_gram and window <= length:
            for pos in range(length - window + 1):
                yield text[pos:pos + window]
            window += 1

    def __len__(self) -> int:
        length = len(self.text)
        return sum(max(0, length - window + 1)
                   for window in range(self.min_gram, self.max_gram + 1))

    def __repr__(self) -> str:
        return f"NGramTokenizer(len={len(self.text)}, min_gram={self.min_gram}, max_gram={self.max_gram})"
