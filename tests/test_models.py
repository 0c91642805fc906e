import math
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from gramtree.errors import ConfigError, FrequencyOverflowError, TreeBuiltError
from gramtree.models import GramTree, TrieBuilder


def built(text, min_gram=1, max_gram=3, truncation_threshold=1.0):
    builder = TrieBuilder(min_gram, max_gram, truncation_threshold=truncation_threshold)
    builder.learn(text)
    return builder.build()


class TestTrieBuilder:
    def test_learn_counts_one_per_gram(self):
        builder = TrieBuilder(1, 3)
        builder.learn("abcd")
        assert builder.total_gram_count == 9

    def test_frequencies_end_on_last_node(self):
        tree = built("aaa", 1, 2)
        assert tree.frequency("a") == 3
        assert tree.frequency("aa") == 2
        assert tree.frequency("aaa") == 0
        assert tree.total_gram_count == 5

    def test_node_count_before_build(self):
        builder = TrieBuilder(1, 2)
        builder.learn("abc")
        # root, a, b, c, ab, bc
        assert builder.node_count == 6

    def test_learn_lines(self, english_lines):
        builder = TrieBuilder(1, 3)
        assert builder.learn_lines(english_lines) == len(english_lines)
        assert builder.total_gram_count > 0

    def test_overflow_is_reported(self):
        builder = TrieBuilder(1, 1, max_frequency=2)
        builder.learn("aa")
        with pytest.raises(FrequencyOverflowError):
            builder.learn("a")

    def test_overflow_is_an_overflow_error(self):
        builder = TrieBuilder(1, 1, max_frequency=1)
        with pytest.raises(OverflowError):
            builder.learn("aa")

    def test_learn_after_build_fails(self):
        builder = TrieBuilder(1, 2)
        builder.learn("text")
        builder.build()
        assert builder.is_built
        with pytest.raises(TreeBuiltError):
            builder.learn("more text")

    def test_build_is_idempotent(self):
        builder = TrieBuilder(1, 2)
        builder.learn("text")
        assert builder.build() is builder.build()

    def test_default_threshold_keeps_everything(self):
        builder = TrieBuilder(1, 2)
        builder.learn("abcabd")
        nodes = builder.node_count
        assert builder.truncation_threshold == 1.0
        assert builder.build().node_count == nodes

    @pytest.mark.parametrize("threshold", [-0.1, 1.5, float("nan"), "abc", None])
    def test_invalid_threshold(self, threshold):
        builder = TrieBuilder(1, 2)
        with pytest.raises(ConfigError):
            builder.set_truncation_threshold(threshold)
        with pytest.raises(ConfigError):
            TrieBuilder(1, 2, truncation_threshold=threshold)

    @pytest.mark.parametrize("min_gram,max_gram", [(0, 1), (2, 1)])
    def test_invalid_bounds(self, min_gram, max_gram):
        with pytest.raises(ConfigError):
            TrieBuilder(min_gram, max_gram)

    def test_invalid_max_frequency(self):
        with pytest.raises(ConfigError):
            TrieBuilder(1, 2, max_frequency=0)


class TestPruning:
    # "aaab" with unigrams only: root=0, a=3, b=1 -> sorted frequencies [0, 1, 3]
    @pytest.mark.parametrize("threshold,cutoff,nodes", [
        (1.0, 0, 3),
        (0.5, 1, 3),
        (0.3, 3, 2),
        (0.0, 3, 2),
    ])
    def test_quantile_cutoff(self, threshold, cutoff, nodes):
        builder = TrieBuilder(1, 1, truncation_threshold=threshold)
        builder.learn("aaab")
        assert builder.minimum_frequency() == cutoff
        tree = builder.build()
        assert tree.node_count == nodes
        assert tree.frequency("a") == 3

    def test_rare_grams_are_dropped(self):
        # a=2, b=2, ab=2, ba=1
        tree = built("abab", 1, 2, truncation_threshold=0.5)
        assert tree.frequency("ab") == 2
        assert tree.frequency("ba") == 0
        assert "ba" not in tree
        assert tree.node_count == 4

    def test_dropped_node_drops_its_subtree(self):
        # interior nodes a and b never end a gram, so they fall below the cutoff
        # and take ab (frequency 2) down with them
        tree = built("abab", 2, 3, truncation_threshold=0.5)
        assert tree.node_count == 1
        assert tree.frequency("ab") == 0

    def test_gram_count_not_reduced(self):
        full = built("abab", 2, 3)
        pruned = built("abab", 2, 3, truncation_threshold=0.5)
        assert full.total_gram_count == pruned.total_gram_count == 5

    def test_lower_threshold_never_keeps_more_nodes(self, english_lines):
        counts = []
        for threshold in (0.0, 0.1, 0.25, 0.5, 0.75, 0.9, 1.0):
            builder = TrieBuilder(1, 3, truncation_threshold=threshold)
            builder.learn_lines(english_lines)
            counts.append(builder.build().node_count)
        assert counts == sorted(counts)
        assert counts[0] < counts[-1]

    def test_children_sorted_and_unique(self, en_tree):
        chars = en_tree.chars.astype(np.int64)
        for first, count in zip(en_tree.first_child, en_tree.child_count):
            siblings = chars[first:first + count]
            assert np.all(np.diff(siblings) > 0)


class TestGramTree:
    def test_score_sums_log_frequencies(self):
        tree = built("aaa", 1, 2)
        # grams a, a, aa
        expected = (math.log(3) + math.log(3) + math.log(2)) / math.log(5)
        assert tree.score_text("aa") == pytest.approx(expected)

    def test_unknown_grams_score_zero(self):
        tree = built("aaa", 1, 2)
        assert tree.score_text("zz") == 0.0
        # grams a, z, az: only "a" is known
        assert tree.score_text("az") == pytest.approx(math.log(3) / math.log(5))

    def test_empty_text_scores_zero(self, en_tree):
        assert en_tree.score_text("") == 0.0

    def test_degenerate_gram_count_scores_zero(self):
        assert built("a", 1, 1).score_text("a") == 0.0
        assert TrieBuilder(1, 3).build().score_text("anything") == 0.0

    def test_interior_nodes_have_no_frequency(self):
        tree = built("abab", 2, 2)
        assert "a" in tree
        assert tree.frequency("a") == 0
        assert tree.frequency("ab") == 2
        assert tree.score_text("ab") == pytest.approx(math.log(2) / math.log(3))

    def test_empty_gram_not_contained(self, en_tree):
        assert "" not in en_tree

    def test_arrays_are_read_only(self, en_tree):
        with pytest.raises(ValueError):
            en_tree.frequencies[0] = 1

    def test_mismatched_arrays_rejected(self):
        with pytest.raises(ValueError):
            GramTree([0, 97], [0], [1, 2], [1, 0], 1, 1, 1)

    def test_equality(self, english_lines, en_tree, fr_tree):
        builder = TrieBuilder(1, 3)
        builder.learn_lines(english_lines)
        assert builder.build() == en_tree
        assert en_tree != fr_tree

    def test_concurrent_scoring_is_deterministic(self, en_tree):
        text = "a text in english, scored from many threads"
        with ThreadPoolExecutor(max_workers=8) as pool:
            scores = list(pool.map(en_tree.score_text, [text] * 64))
        assert len(set(scores)) == 1
        assert scores[0] == en_tree.score_text(text)
