"""
Utility functions and shared settings for the n-gram language detector.
"""
import json
import os
from typing import Any, Dict, List

import numpy as np


# Language codes and their full names: the Europarl languages plus the
# extra Project Gutenberg ones.
LANGUAGE_CODES = {
    'bg': 'Bulgarian',
    'cs': 'Czech',
    'da': 'Danish',
    'de': 'German',
    'el': 'Greek',
    'en': 'English',
    'es': 'Spanish',
    'et': 'Estonian',
    'fi': 'Finnish',
    'fr': 'French',
    'hu': 'Hungarian',
    'it': 'Italian',
    'ja': 'Japanese',
    'ko': 'Korean',
    'lt': 'Lithuanian',
    'lv': 'Latvian',
    'nl': 'Dutch',
    'pl': 'Polish',
    'pt': 'Portuguese',
    'ro': 'Romanian',
    'ru': 'Russian',
    'sk': 'Slovak',
    'sl': 'Slovene',
    'sv': 'Swedish',
    'zh': 'Chinese'
}

# Training defaults
DEFAULT_MIN_GRAM = 1
DEFAULT_MAX_GRAM = 3
DEFAULT_TRUNCATION_THRESHOLD = 0.1

# Per-language thresholds overriding DEFAULT_TRUNCATION_THRESHOLD
TRUNCATION_OVERRIDES = {
    'ru': 0.2
}

MODEL_FILE_SUFFIX = '_tree.bin'
MODEL_DIR_ENV = 'GRAMTREE_MODEL_DIR'


def model_filename(language: str) -> str:
    """File name of the persisted n-gram tree of a language."""
    return f"{language}{MODEL_FILE_SUFFIX}"


def discover_languages(corpus_dir: str) -> List[str]:
    """Language codes of a training corpus: one subdirectory per language."""
    return sorted(name for name in os.listdir(corpus_dir)
                  if os.path.isdir(os.path.join(corpus_dir, name)) and not name.startswith('.'))


def load_dataset(filepath: str) -> List[Dict]:
    """Load a labelled dataset (a JSON list of {"text", "lang"} objects)."""
    with open(filepath, 'r', encoding='utf-8') as f:
        return json.load(f)


def save_results(results: Any, filepath: str):
    """Save results to JSON file."""
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(results, f, indent=2, ensure_ascii=False)


def calculate_confidence_scores(scores: Dict[str, float]) -> Dict[str, float]:
    """Softmax-normalize raw language scores into confidences summing to 1."""
    if not scores:
        return {}

    max_score = max(scores.values())
    exp_scores = {lang: np.exp(score - max_score) for lang, score in scores.items()}
    sum_exp = sum(exp_scores.values())

    return {lang: float(score / sum_exp) for lang, score in exp_scores.items()}
