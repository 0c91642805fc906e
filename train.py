#!/usr/bin/env python3
"""
Training script for the n-gram tree language detector.

The corpus directory must contain one subdirectory per language code, each
holding plain UTF-8 text files. One <lang>_tree.bin file is written per
language to the model directory.
"""
import argparse
import logging
import os
import sys

from gramtree.language_detector import load_detector
from gramtree.training import ParallelTrainer, save_trees
from gramtree.utils import (
    DEFAULT_MAX_GRAM, DEFAULT_MIN_GRAM, DEFAULT_TRUNCATION_THRESHOLD, discover_languages
)

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def train_model(args) -> int:
    """Main training function. Returns the process exit code."""
    logger.info("Starting training process...")

    languages = args.languages or discover_languages(args.corpus_dir)
    if not languages:
        logger.error(f"No language directory found in {args.corpus_dir}")
        return 1
    logger.info(f"Languages: {languages}")

    trainer = ParallelTrainer(
        min_gram=args.min_gram,
        max_gram=args.max_gram,
        truncation_threshold=args.truncation,
        max_workers=args.workers
    )
    result = trainer.train_directory(args.corpus_dir, languages)

    paths = save_trees(result.trees, args.model_dir, result.failures)
    logger.info(f"{len(paths)} model(s) saved to {args.model_dir}")

    # every written model must load back
    detector = load_detector(args.model_dir, sorted(paths))
    if detector.languages != sorted(paths):
        logger.error(f"Only {detector.languages} could be reloaded from {args.model_dir}")
        return 1

    # Print final summary
    logger.info("=" * 60)
    logger.info("TRAINING SUMMARY")
    logger.info("=" * 60)
    for lang in sorted(paths):
        tree = result.trees[lang]
        logger.info(f"  {lang}: {tree.node_count} nodes, {tree.total_gram_count} grams -> {paths[lang]}")
    for lang, error in sorted(result.failures.items()):
        logger.error(f"  {lang}: FAILED ({type(error).__name__}: {error})")
    logger.info("=" * 60)

    return 0 if result.ok else 1


def main():
    parser = argparse.ArgumentParser(description='Train n-gram tree language models')

    parser.add_argument('corpus_dir', type=str,
                       help='Directory with one subdirectory of text files per language')
    parser.add_argument('model_dir', type=str,
                       help='Directory to write the trained models to')
    parser.add_argument('--languages', nargs='+',
                       help='Languages to train (default: every subdirectory)')

    # Model arguments
    parser.add_argument('--min_gram', type=int, default=DEFAULT_MIN_GRAM,
                       help='Minimal n-gram size')
    parser.add_argument('--max_gram', type=int, default=DEFAULT_MAX_GRAM,
                       help='Maximal n-gram size')
    parser.add_argument('--truncation', type=float, default=DEFAULT_TRUNCATION_THRESHOLD,
                       help='Fraction of trie nodes, by frequency, kept after pruning')

    parser.add_argument('--workers', type=int, default=None,
                       help='Number of worker threads (default: one per CPU)')

    args = parser.parse_args()

    if not os.path.isdir(args.corpus_dir):
        logger.error(f"Corpus directory not found: {args.corpus_dir}")
        sys.exit(1)

    sys.exit(train_model(args))


if __name__ == '__main__':
    main()
