"""
Language detection against a registry of per-language n-gram trees.
"""
import functools
import logging
import os
import threading
from typing import Dict, Iterable, List, NamedTuple, Optional, Union

from .errors import FormatError, ResourceError, SealedRegistryError
from .models import GramTree
from .serialization import load_tree, loads
from .utils import MODEL_DIR_ENV, MODEL_FILE_SUFFIX, model_filename

logger = logging.getLogger(__name__)


class Score(NamedTuple):
    language: str
    score: float


class LanguageDetector:
    """
    Wraps several n-gram trees in order to detect languages.

    The detection algorithm is really simple: every registered tree scores the
    text and the language whose tree returns the best score wins. This works
    best when the training corpora of all languages look alike; parallel
    corpora are good candidates.

    A sealed detector refuses any further registration, which protects shared
    pre-trained instances from being modified by callers.
    """

    def __init__(self, trees: Optional[Dict[str, GramTree]] = None, sealed: bool = False):
        self._lock = threading.Lock()
        self._trees: Dict[str, GramTree] = {}
        self._sealed = False
        for language, tree in (trees or {}).items():
            self.register(language, tree)
        self._sealed = sealed

    @property
    def sealed(self) -> bool:
        return self._sealed

    def register(self, language: str, tree: Union[GramTree, bytes]):
        """
        Register (or replace) the n-gram tree of a language. ``tree`` may be a
        ``GramTree`` or a blob produced by ``serialization.dumps``.
        """
        if self._sealed:
            raise SealedRegistryError(f"Cannot add language {language!r} to a sealed detector")
        if isinstance(tree, (bytes, bytearray, memoryview)):
            tree = loads(tree)
        if not isinstance(tree, GramTree):
            raise TypeError(f"Expected a GramTree or bytes, got {type(tree).__name__}")

        with self._lock:
            self._trees[language] = tree
        logger.debug(f"Registered language {language}: {tree!r}")

    def sealed_copy(self) -> 'LanguageDetector':
        """Return a sealed detector sharing the trees of this one."""
        return LanguageDetector(self._snapshot(), sealed=True)

    def _snapshot(self) -> Dict[str, GramTree]:
        with self._lock:
            return dict(self._trees)

    @property
    def languages(self) -> List[str]:
        return sorted(self._snapshot())

    def get_tree(self, language: str) -> Optional[GramTree]:
        return self._snapshot().get(language)

    def __contains__(self, language: str) -> bool:
        return language in self._snapshot()

    def __len__(self) -> int:
        return len(self._snapshot())

    def _candidates(self, allowed: Optional[Iterable[str]]) -> List[tuple]:
        if isinstance(allowed, str):
            raise TypeError(f"allowed must be a collection of language codes, not the string {allowed!r}")
        trees = self._snapshot()
        if allowed is not None:
            allowed = set(allowed)
            trees = {lang: tree for lang, tree in trees.items() if lang in allowed}
        return sorted(trees.items())

    def detect(self, text: str, allowed: Optional[Iterable[str]] = None) -> Optional[str]:
        """
        Return the language whose tree scores ``text`` best, limited to
        ``allowed`` when given. Languages are tried in code order and only a
        strictly greater score replaces the current best, starting from 0.
        Returns None when no language scores above 0 (e.g. for empty text).
        """
        best = 0.0
        best_language = None
        for language, tree in self._candidates(allowed):
            score = tree.score_text(text)
            logger.debug(f"---------- result : {language} : {score} -------------")
            if score > best:
                best = score
                best_language = language
        return best_language

    def rank(self, text: str, allowed: Optional[Iterable[str]] = None) -> List[Score]:
        """
        Return the score of every candidate language, best first. Ties are
        ordered by language code. No minimum score is applied.
        """
        scores = [Score(language, tree.score_text(text))
                  for language, tree in self._candidates(allowed)]
        return sorted(scores, key=lambda s: (-s.score, s.language))

    def __repr__(self) -> str:
        return f"LanguageDetector(languages={self.languages}, sealed={self._sealed})"


def load_detector(model_dir: str,
                  languages: Optional[Iterable[str]] = None,
                  sealed: bool = False) -> LanguageDetector:
    """
    Build a detector from the ``<lang>_tree.bin`` files of ``model_dir``.

    When ``languages`` is omitted every model file of the directory is used.
    Languages whose model is missing or corrupt are skipped with a warning;
    the remaining languages stay usable.
    """
    if languages is None:
        languages = discover_models(model_dir)

    detector = LanguageDetector()
    for language in languages:
        path = os.path.join(model_dir, model_filename(language))
        try:
            detector.register(language, load_tree(path))
        except (ResourceError, FormatError) as e:
            logger.warning(f"Unable to load n-gram tree for language {language}: {e}")

    logger.info(f"Loaded {len(detector)} language model(s) from {model_dir}")
    return detector.sealed_copy() if sealed else detector


def discover_models(model_dir: str) -> List[str]:
    """Language codes of the model files found in ``model_dir``."""
    if not os.path.isdir(model_dir):
        logger.warning(f"Model directory not found: {model_dir}")
        return []
    return sorted(name[:-len(MODEL_FILE_SUFFIX)] for name in os.listdir(model_dir)
                  if name.endswith(MODEL_FILE_SUFFIX) and len(name) > len(MODEL_FILE_SUFFIX))


@functools.lru_cache(maxsize=None)
def get_default_detector() -> LanguageDetector:
    """
    Process-wide sealed detector built lazily from the directory named by the
    ``GRAMTREE_MODEL_DIR`` environment variable (``models`` by default).
    """
    model_dir = os.environ.get(MODEL_DIR_ENV, 'models')
    return load_detector(model_dir, sealed=True)
