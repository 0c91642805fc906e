#!/usr/bin/env python3
"""
Evaluation script for the n-gram tree language detector.
"""
import os
import argparse
import logging

from gramtree.evaluation import DetectionEvaluator
from gramtree.language_detector import load_detector
from gramtree.utils import load_dataset, save_results

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def evaluate_model(args) -> dict:
    """Evaluate the models of ``args.model_dir`` on a labelled JSON dataset."""
    samples = load_dataset(args.data_path)
    logger.info(f"Evaluating {len(samples)} samples from {args.data_path}")

    if not os.path.isdir(args.model_dir):
        raise FileNotFoundError(f"Model directory not found: {args.model_dir}")
    detector = load_detector(args.model_dir, args.languages, sealed=True)
    logger.info(f"Candidate languages: {detector.languages}")

    evaluator = DetectionEvaluator(args.languages)
    results = evaluator.evaluate(detector, samples)
    evaluator.print_evaluation_report(results)

    if not args.save_predictions:
        del results['predictions']

    results_path = os.path.join(args.output_dir, 'evaluation_results.json')
    save_results(results, results_path)
    logger.info(f"Metrics written to {results_path}")
    return results


def main():
    parser = argparse.ArgumentParser(description='Evaluate n-gram tree language detection models')

    parser.add_argument('--data_path', type=str, required=True,
                       help='JSON list of {"text": ..., "lang": ...} samples')
    parser.add_argument('--model_dir', type=str, default='models',
                       help='Directory containing trained models')
    parser.add_argument('--languages', nargs='+',
                       help='Languages to load and evaluate (default: every model)')

    parser.add_argument('--output_dir', type=str, default='results',
                       help='Directory to save evaluation results')
    parser.add_argument('--save_predictions', action='store_true',
                       help='Save all detailed predictions')

    args = parser.parse_args()

    os.makedirs(args.output_dir, exist_ok=True)

    results = evaluate_model(args)

    overall = results['overall']
    logger.info("=" * 60)
    logger.info("EVALUATION SUMMARY")
    logger.info(f"  Accuracy: {overall['accuracy']:.4f}")
    logger.info(f"  Macro F1: {overall['macro_f1']:.4f}")
    logger.info("=" * 60)


if __name__ == '__main__':
    main()
