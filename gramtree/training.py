"""
Parallel training of one n-gram tree per language.
"""
import concurrent.futures
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

from .errors import ConfigError, TrainingError
from .models import MAX_FREQUENCY, GramTree, TrieBuilder, validate_truncation_threshold
from .preprocessing import TextPreprocessor
from .serialization import save_tree
from .tokenization import validate_gram_bounds
from .utils import (
    DEFAULT_MAX_GRAM, DEFAULT_MIN_GRAM, DEFAULT_TRUNCATION_THRESHOLD,
    TRUNCATION_OVERRIDES, discover_languages, model_filename
)

logger = logging.getLogger(__name__)


@dataclass
class TrainingResult:
    """Trees of the languages that trained successfully, and the errors of those that did not."""
    trees: Dict[str, GramTree] = field(default_factory=dict)
    failures: Dict[str, BaseException] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    def raise_for_failures(self):
        if self.failures:
            raise TrainingError(self.failures)


class ParallelTrainer:
    """
    Trains one ``TrieBuilder`` per language on a fixed-size thread pool.

    Each task owns its builder from construction to ``build()``; the only
    shared state is the result collection, filled by the driver as tasks
    complete. Every language ends up either in ``trees`` or in ``failures``.
    """

    def __init__(self,
                 min_gram: int = DEFAULT_MIN_GRAM,
                 max_gram: int = DEFAULT_MAX_GRAM,
                 truncation_threshold: float = DEFAULT_TRUNCATION_THRESHOLD,
                 threshold_overrides: Optional[Mapping[str, float]] = None,
                 max_workers: Optional[int] = None,
                 max_frequency: int = MAX_FREQUENCY,
                 preprocessor: Optional[TextPreprocessor] = None):
        validate_gram_bounds(min_gram, max_gram)
        if max_workers is not None and max_workers < 1:
            raise ConfigError(f"max_workers must be >= 1, got {max_workers}")

        self.min_gram = min_gram
        self.max_gram = max_gram
        self.truncation_threshold = validate_truncation_threshold(truncation_threshold)
        if threshold_overrides is None:
            threshold_overrides = TRUNCATION_OVERRIDES
        self.threshold_overrides = {lang: validate_truncation_threshold(t)
                                    for lang, t in threshold_overrides.items()}
        self.max_workers = max_workers
        self.max_frequency = max_frequency
        self.preprocessor = preprocessor or TextPreprocessor()

    def threshold_for(self, language: str) -> float:
        return self.threshold_overrides.get(language, self.truncation_threshold)

    def train_language(self, language: str, lines: Iterable[str]) -> GramTree:
        """Learn every line of one language and return its pruned tree."""
        logger.info(f"Processing language {language}")
        builder = TrieBuilder(self.min_gram, self.max_gram,
                              truncation_threshold=self.threshold_for(language),
                              max_frequency=self.max_frequency)
        line_count = builder.learn_lines(lines)
        tree = builder.build()
        logger.info(f"Lang {language} complete: {line_count} lines, "
                    f"{builder.total_gram_count} grams, {tree.node_count} nodes kept")
        return tree

    def train(self, corpora: Mapping[str, Iterable[str]]) -> TrainingResult:
        """
        Train every language of ``corpora`` (language code -> lines of text)
        and wait for all of them to finish.
        """
        result = TrainingResult()
        if not corpora:
            return result

        workers = self.max_workers or min(len(corpora), os.cpu_count() or 1)
        logger.info(f"Parallel processing of {workers} languages over {len(corpora)}...")

        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {pool.submit(self.train_language, lang, lines): lang
                       for lang, lines in corpora.items()}
            for future in concurrent.futures.as_completed(futures):
                lang = futures[future]
                try:
                    result.trees[lang] = future.result()
                except Exception as e:
                    logger.error(f"Unable to train language {lang}: {e}")
                    result.failures[lang] = e

        return result

    def train_directory(self, corpus_dir: str, languages: Optional[List[str]] = None) -> TrainingResult:
        """
        Train from a directory holding one subdirectory of UTF-8 text files
        per language.
        """
        if languages is None:
            languages = discover_languages(corpus_dir)
        corpora = {lang: self.preprocessor.iter_corpus_lines(os.path.join(corpus_dir, lang))
                   for lang in languages}
        return self.train(corpora)


def save_trees(trees: Mapping[str, GramTree], model_dir: str,
               failures: Optional[Dict[str, BaseException]] = None) -> Dict[str, str]:
    """
    Write one ``<lang>_tree.bin`` file per tree. Returns the paths written.

    A language whose file cannot be written is logged and skipped; its error
    is stored in ``failures`` when given (e.g. ``TrainingResult.failures``).
    """
    paths = {}
    for lang, tree in sorted(trees.items()):
        path = os.path.join(model_dir, model_filename(lang))
        logger.info(f"Saving tree : {lang}")
        try:
            save_tree(tree, path)
        except OSError as e:
            logger.error(f"Unable to write {lang} tree to {path}: {e}")
            if failures is not None:
                failures[lang] = e
            continue
        paths[lang] = path
    return paths
