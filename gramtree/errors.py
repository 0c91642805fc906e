"""
Exception hierarchy for n-gram tree training, persistence and detection.
"""
from typing import Dict


class GramTreeError(Exception):
    """Base class for every error raised by gramtree."""


class ConfigError(GramTreeError, ValueError):
    """Invalid gram bounds or truncation threshold."""


class FrequencyOverflowError(GramTreeError, OverflowError):
    """A gram frequency counter would exceed its representable range."""


class TreeBuiltError(GramTreeError, RuntimeError):
    """Learning was attempted on a builder that has already been built."""


class SealedRegistryError(GramTreeError):
    """A language was registered into a sealed detector."""


class ResourceError(GramTreeError):
    """A persisted model could not be found or read."""


class FormatError(ResourceError):
    """A persisted model blob failed version or shape validation."""


class TrainingError(GramTreeError):
    """One or more languages failed to train."""

    def __init__(self, failures: Dict[str, BaseException]):
        self.failures = dict(failures)
        details = ', '.join(f"{lang} ({type(exc).__name__}: {exc})"
                            for lang, exc in sorted(self.failures.items()))
        super().__init__(f"Training failed for {len(self.failures)} language(s): {details}")
