"""
N-gram trees: the mutable trie used while learning a language and the compact,
read-only tree used for scoring.
"""
import logging
from bisect import bisect_left
from typing import Iterable, Iterator, List, Optional

import numpy as np

from .errors import ConfigError, FrequencyOverflowError, TreeBuiltError
from .tokenization import NGramTokenizer, validate_gram_bounds

logger = logging.getLogger(__name__)

# Largest frequency a node may reach (signed 32-bit counter range)
MAX_FREQUENCY = 2 ** 31 - 1

ROOT_CHARACTER = 0


def validate_truncation_threshold(threshold: float) -> float:
    """Return the threshold as a float, rejecting values outside [0.0, 1.0]."""
    try:
        value = float(threshold)
    except (TypeError, ValueError):
        raise ConfigError(f"Truncation threshold must be a number, got {threshold!r}") from None
    if not 0.0 <= value <= 1.0:
        raise ConfigError(f"Truncation threshold must be comprised between 0.0 and 1.0, got {threshold}")
    return value


class _BuilderNode:
    """Trie node whose children are kept sorted by code point."""

    __slots__ = ('character', 'frequency', 'keys', 'children')

    def __init__(self, character: int):
        self.character = character
        self.frequency = 0
        self.keys: List[int] = []
        self.children: List['_BuilderNode'] = []

    def child_or_create(self, character: int) -> '_BuilderNode':
        i = bisect_left(self.keys, character)
        if i < len(self.keys) and self.keys[i] == character:
            return self.children[i]
        node = _BuilderNode(character)
        self.keys.insert(i, character)
        self.children.insert(i, node)
        return node


class TrieBuilder:
    """
    Learns n-gram frequencies for one language.

    Every gram produced by the tokenizer is inserted character by character and
    the node where it ends has its frequency incremented. Once all the corpus
    has been learnt, ``build()`` prunes rare n-grams and returns an immutable
    ``GramTree``. A builder is meant to be fed by a single thread.
    """

    def __init__(self,
                 min_gram: int = 1,
                 max_gram: int = 3,
                 truncation_threshold: float = 1.0,
                 max_frequency: int = MAX_FREQUENCY):
        validate_gram_bounds(min_gram, max_gram)
        if isinstance(max_frequency, bool) or not isinstance(max_frequency, int) or not 1 <= max_frequency <= MAX_FREQUENCY:
            raise ConfigError(f"max_frequency must be an integer between 1 and {MAX_FREQUENCY}, got {max_frequency!r}")

        self.min_gram = min_gram
        self.max_gram = max_gram
        self.max_frequency = max_frequency
        self.truncation_threshold = validate_truncation_threshold(truncation_threshold)
        self.total_gram_count = 0

        self._root: Optional[_BuilderNode] = _BuilderNode(ROOT_CHARACTER)
        self._tree: Optional['GramTree'] = None

    @property
    def is_built(self) -> bool:
        return self._tree is not None

    def set_truncation_threshold(self, threshold: float):
        """
        Set the fraction of trie nodes, ordered by frequency, that survive
        pruning. 1.0 keeps everything; lower values discard rare n-grams.
        """
        self.truncation_threshold = validate_truncation_threshold(threshold)

    def learn(self, text: str):
        """Add the n-gram statistics of ``text`` to the trie."""
        if self._tree is not None:
            raise TreeBuiltError("N-gram tree has already been built")

        for gram in NGramTokenizer(text, self.min_gram, self.max_gram):
            self._add_gram(gram)

    def learn_lines(self, lines: Iterable[str]) -> int:
        """Learn every line of an iterable. Returns the number of lines learnt."""
        count = 0
        for line in lines:
            self.learn(line)
            count += 1
        return count

    def _add_gram(self, gram: str):
        node = self._root
        for ch in gram:
            node = node.child_or_create(ord(ch))

        if node.frequency >= self.max_frequency:
            raise FrequencyOverflowError(
                f"Maximum frequency ({self.max_frequency}) reached for n-gram {gram!r}. "
                "N-gram is too frequent in the corpus; try a smaller corpus.")
        node.frequency += 1
        self.total_gram_count += 1

    def _iter_nodes(self) -> Iterator[_BuilderNode]:
        stack = [self._root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(node.children)

    @property
    def node_count(self) -> int:
        """Number of nodes in the trie, root included (before pruning)."""
        if self._tree is not None:
            return self._tree.node_count
        return sum(1 for _ in self._iter_nodes())

    def minimum_frequency(self) -> int:
        """Frequency a node needs to survive pruning at the current threshold."""
        if self._tree is not None:
            raise TreeBuiltError("N-gram tree has already been built")
        frequencies = np.sort(np.fromiter((node.frequency for node in self._iter_nodes()), dtype=np.int64))
        index = int(len(frequencies) * (1.0 - self.truncation_threshold))
        # threshold 0.0 points one past the end; keep only the most frequent nodes
        index = min(index, len(frequencies) - 1)
        return int(frequencies[index])

    def build(self) -> 'GramTree':
        """
        Prune the trie and freeze it into a ``GramTree``.

        Nodes whose own frequency is below the quantile cutoff are dropped
        together with their subtree. The gram count is not reduced by
        pruning. Calling ``build()`` again returns the same tree.
        """
        if self._tree is not None:
            return self._tree

        cutoff = self.minimum_frequency()

        # breadth-first layout: the children of a node are a contiguous, sorted slice
        order = [self._root]
        first_child = []
        child_count = []
        i = 0
        while i < len(order):
            kept = [child for child in order[i].children if child.frequency >= cutoff]
            first_child.append(len(order))
            child_count.append(len(kept))
            order.extend(kept)
            i += 1

        self._tree = GramTree(
            chars=[node.character for node in order],
            frequencies=[node.frequency for node in order],
            first_child=first_child,
            child_count=child_count,
            min_gram=self.min_gram,
            max_gram=self.max_gram,
            total_gram_count=self.total_gram_count,
        )
        self._root = None

        logger.debug(f"Built n-gram tree: cutoff={cutoff}, nodes={self._tree.node_count}, "
                     f"grams={self.total_gram_count}")
        return self._tree


class GramTree:
    """
    Immutable n-gram tree able to score a text.

    Nodes are stored in four flat arrays in breadth-first order. Node 0 is the
    root and the children of node ``i`` occupy the slice
    ``first_child[i]:first_child[i] + child_count[i]``, sorted by character.
    Scoring never mutates the tree, so one instance can be shared by any
    number of threads.
    """

    def __init__(self,
                 chars,
                 frequencies,
                 first_child,
                 child_count,
                 min_gram: int,
                 max_gram: int,
                 total_gram_count: int):
        validate_gram_bounds(min_gram, max_gram)

        self._chars = self._freeze(chars)
        self._frequencies = self._freeze(frequencies)
        self._first_child = self._freeze(first_child)
        self._child_count = self._freeze(child_count)

        sizes = {len(self._chars), len(self._frequencies), len(self._first_child), len(self._child_count)}
        if len(sizes) != 1 or len(self._chars) == 0:
            raise ValueError("Node arrays must be non-empty and of equal length")

        self.min_gram = min_gram
        self.max_gram = max_gram
        self.total_gram_count = int(total_gram_count)

        # per-character lookups run on plain lists
        self._char_list = self._chars.tolist()
        self._frequency_list = self._frequencies.tolist()
        self._first_list = self._first_child.tolist()
        self._count_list = self._child_count.tolist()

    @staticmethod
    def _freeze(values) -> np.ndarray:
        array = np.array(values, dtype=np.uint32)
        array.setflags(write=False)
        return array

    @property
    def chars(self) -> np.ndarray:
        return self._chars

    @property
    def frequencies(self) -> np.ndarray:
        return self._frequencies

    @property
    def first_child(self) -> np.ndarray:
        return self._first_child

    @property
    def child_count(self) -> np.ndarray:
        return self._child_count

    @property
    def node_count(self) -> int:
        return len(self._char_list)

    def _find(self, gram: str) -> int:
        """Index of the node reached by ``gram``, or -1."""
        chars = self._char_list
        node = 0
        for ch in gram:
            lo = self._first_list[node]
            hi = lo + self._count_list[node]
            code = ord(ch)
            i = bisect_left(chars, code, lo, hi)
            if i == hi or chars[i] != code:
                return -1
            node = i
        return node

    def frequency(self, gram: str) -> int:
        """Number of times ``gram`` was learnt, 0 if it is unknown or was pruned."""
        node = self._find(gram)
        return self._frequency_list[node] if node >= 0 else 0

    def __contains__(self, gram: str) -> bool:
        return bool(gram) and self._find(gram) >= 0

    def score_text(self, text: str) -> float:
        """
        Score ``text`` against this tree.

        Each gram found with a positive frequency ``f`` adds ``ln(f)``; unknown
        grams add nothing. The sum is normalized by ``ln(total_gram_count)``.
        A tree that learnt at most one gram cannot be normalized and scores 0.
        """
        if self.total_gram_count <= 1:
            return 0.0

        found = []
        for gram in NGramTokenizer(text, self.min_gram, self.max_gram):
            f = self.frequency(gram)
            if f > 0:
                found.append(f)
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(f"{gram!r} scores {np.log(f) if f > 0 else 0.0}")

        if not found:
            return 0.0
        total = float(np.log(np.asarray(found, dtype=np.float64)).sum())
        return total / float(np.log(self.total_gram_count))

    def __eq__(self, other) -> bool:
        if not isinstance(other, GramTree):
            return NotImplemented
        return (self.min_gram == other.min_gram
                and self.max_gram == other.max_gram
                and self.total_gram_count == other.total_gram_count
                and np.array_equal(self._chars, other._chars)
                and np.array_equal(self._frequencies, other._frequencies)
                and np.array_equal(self._first_child, other._first_child)
                and np.array_equal(self._child_count, other._child_count))

    def __repr__(self) -> str:
        return (f"GramTree(min_gram={self.min_gram}, max_gram={self.max_gram}, "
                f"nodes={self.node_count}, total_gram_count={self.total_gram_count})")
