"""
Character n-gram tree language identification.

Learns one n-gram tree per language from plain text corpora and detects the
language of a text by scoring it against every tree.
"""

from .errors import (
    ConfigError, FormatError, FrequencyOverflowError, GramTreeError, ResourceError,
    SealedRegistryError, TrainingError, TreeBuiltError
)
from .language_detector import LanguageDetector, Score, get_default_detector, load_detector
from .models import GramTree, TrieBuilder
from .tokenization import NGramTokenizer
from .training import ParallelTrainer, TrainingResult, save_trees

__version__ = "1.0.0"
