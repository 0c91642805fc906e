"""
Evaluation framework for language detection models.
"""
import logging
from collections import defaultdict
from typing import Dict, List, Optional

import numpy as np

from .language_detector import LanguageDetector
from .preprocessing import TextPreprocessor

logger = logging.getLogger(__name__)

# Confusion matrix column used when the detector returns no language
UNDETECTED = 'none'


class DetectionEvaluator:
    """Sentence-level evaluation of a detector against labelled samples."""

    def __init__(self, target_languages: Optional[List[str]] = None,
                 preprocessor: Optional[TextPreprocessor] = None):
        self.target_languages = target_languages
        self.preprocessor = preprocessor or TextPreprocessor()

    def evaluate(self, detector: LanguageDetector, samples: List[Dict],
                 allowed: Optional[List[str]] = None) -> Dict:
        """
        Detect the language of every sample and compare it to its label.

        Args:
            detector: the detector to evaluate
            samples: list of {'text': ..., 'lang': ...} dictionaries
            allowed: optional restriction passed to ``detector.detect``

        Returns:
            Evaluation metrics and the individual predictions
        """
        predicted = []
        true = []
        for i, sample in enumerate(samples):
            if i % 100 == 0 and i:
                logger.info(f"Processing sample {i + 1}/{len(samples)}")
            text = self.preprocessor.normalize_text(sample['text'])
            predicted.append(detector.detect(text, allowed))
            true.append(sample['lang'])

        return self.evaluate_predictions(predicted, true)

    def evaluate_predictions(self, predicted: List[Optional[str]], true: List[str]) -> Dict:
        """Compute metrics for already detected languages (None means no detection)."""
        if len(predicted) != len(true):
            raise ValueError("Number of predictions must match ground truth")

        languages = self.target_languages or sorted(set(true) | {p for p in predicted if p is not None})

        correct = sum(1 for p, t in zip(predicted, true) if p == t)
        total = len(true)
        per_language = self._calculate_per_language_metrics(predicted, true, languages)
        supported = [m['f1_score'] for m in per_language.values() if m['support'] > 0]

        return {
            'overall': {
                'accuracy': correct / total if total > 0 else 0.0,
                'macro_f1': float(np.mean(supported)) if supported else 0.0,
                'correct': correct,
                'total': total,
                'undetected': sum(1 for p in predicted if p is None)
            },
            'per_language': per_language,
            'confusion_matrix': self._calculate_confusion_matrix(predicted, true, languages),
            'predictions': [{'predicted': p, 'true': t} for p, t in zip(predicted, true)]
        }

    def _calculate_per_language_metrics(self, predicted: List[Optional[str]], true: List[str],
                                        languages: List[str]) -> Dict:
        """Calculate precision, recall, F1 for each language."""
        language_metrics = {}

        for lang in languages:
            tp = sum(1 for p, t in zip(predicted, true) if p == lang and t == lang)
            fp = sum(1 for p, t in zip(predicted, true) if p == lang and t != lang)
            fn = sum(1 for p, t in zip(predicted, true) if p != lang and t == lang)

            precision = tp / (tp + fp) if (tp + fp) > 0 else 0.0
            recall = tp / (tp + fn) if (tp + fn) > 0 else 0.0
            f1 = 2 * precision * recall / (precision + recall) if (precision + recall) > 0 else 0.0

            language_metrics[lang] = {
                'precision': precision,
                'recall': recall,
                'f1_score': f1,
                'support': tp + fn,
                'tp': tp,
                'fp': fp,
                'fn': fn
            }

        return language_metrics

    def _calculate_confusion_matrix(self, predicted: List[Optional[str]], true: List[str],
                                    languages: List[str]) -> Dict:
        """Rows are true languages, columns predicted languages plus UNDETECTED."""
        confusion = defaultdict(lambda: defaultdict(int))
        for p, t in zip(predicted, true):
            confusion[t][p if p is not None else UNDETECTED] += 1

        columns = list(languages) + [UNDETECTED]
        return {true_lang: {pred_lang: confusion[true_lang][pred_lang] for pred_lang in columns}
                for true_lang in languages}

    def print_evaluation_report(self, evaluation_results: Dict):
        """Print a human readable evaluation report."""
        print("=" * 60)
        print("LANGUAGE DETECTION EVALUATION REPORT")
        print("=" * 60)

        overall = evaluation_results['overall']
        print(f"\nOVERALL METRICS:")
        print(f"  Accuracy:          {overall['accuracy']:.4f}")
        print(f"  Macro F1:          {overall['macro_f1']:.4f}")
        print(f"  Samples:           {overall['total']}")
        print(f"  Undetected:        {overall['undetected']}")

        per_lang = evaluation_results['per_language']
        print(f"\nPER-LANGUAGE METRICS:")
        for lang in sorted(per_lang.keys()):
            metrics = per_lang[lang]
            print(f"  {lang.upper()}: P={metrics['precision']:.4f} R={metrics['recall']:.4f} "
                  f"F1={metrics['f1_score']:.4f} (support: {metrics['support']})")

        print("=" * 60)
