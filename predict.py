#!/usr/bin/env python3
"""
Prediction script for the n-gram tree language detector.
Interactive interface for testing the models on new text.
"""
import os
import argparse
import logging
import sys
from typing import Dict, List, Optional

from gramtree.language_detector import LanguageDetector, load_detector
from gramtree.preprocessing import TextPreprocessor
from gramtree.utils import LANGUAGE_CODES, calculate_confidence_scores, load_dataset, save_results

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# queries are cleaned like training lines; batch files may start lines with "<"
preprocessor = TextPreprocessor(skip_markup=False)


def predict_text(detector: LanguageDetector, text: str,
                 allowed: Optional[List[str]] = None, top_k: int = 5) -> Dict:
    """Detect the language of a text and collect its best ranked scores."""
    text = preprocessor.normalize_text(text)
    ranking = detector.rank(text, allowed)
    confidences = calculate_confidence_scores({s.language: s.score for s in ranking})
    return {
        'text': text,
        'language': detector.detect(text, allowed),
        'scores': [{'language': s.language, 'score': s.score, 'confidence': confidences[s.language]}
                   for s in ranking[:top_k]]
    }


def format_prediction_output(prediction: Dict) -> str:
    """Format prediction output for display."""
    language = prediction['language']
    output = []
    output.append(f"Input Text: {prediction['text']}")
    if language:
        output.append(f"Language Detected: {language} ({LANGUAGE_CODES.get(language, 'unknown')})")
    else:
        output.append("Language Detected: none")
    output.append("")

    output.append("Scores:")
    for i, score in enumerate(prediction['scores']):
        confidence_bar = "█" * int(score['confidence'] * 10) + "░" * (10 - int(score['confidence'] * 10))
        output.append(f"  {i+1:2d}. {score['language'].upper():3} {score['score']:8.4f} ({score['confidence']:.3f}) {confidence_bar}")

    return "\n".join(output)


def interactive_mode(detector: LanguageDetector, allowed: Optional[List[str]], top_k: int):
    """Read texts from stdin until 'quit' or end of input and print their detection."""
    print("=" * 60)
    print(f"N-gram Language Detection - {len(detector)} languages: {', '.join(detector.languages)}")
    print("Type a text, or 'quit' to leave")
    print("=" * 60)

    while True:
        try:
            line = input("\n> ")
        except (KeyboardInterrupt, EOFError):
            print()
            break

        text = line.strip()
        if text.lower() in ('quit', 'exit'):
            break
        if text:
            print(format_prediction_output(predict_text(detector, text, allowed, top_k)))


def read_texts(input_file: str) -> List[str]:
    """Texts of a batch file: a JSON list (strings or {"text": ...} objects) or one text per line."""
    if input_file.endswith('.json'):
        items = load_dataset(input_file)
        if not isinstance(items, list):
            items = [items]
        return [item if isinstance(item, str) else item['text'] for item in items]

    return list(preprocessor.iter_file_lines(input_file))


def batch_mode(detector: LanguageDetector,
               input_file: str,
               output_file: Optional[str] = None,
               allowed: Optional[List[str]] = None,
               top_k: int = 5) -> List[Dict]:
    """Detect every text of ``input_file``; results go to ``output_file`` as JSON or to stdout."""
    texts = read_texts(input_file)
    logger.info(f"Detecting {len(texts)} texts from {input_file}")

    results = [{'id': i, **predict_text(detector, text, allowed, top_k)}
               for i, text in enumerate(texts)]

    if output_file:
        save_results(results, output_file)
        logger.info(f"Wrote {len(results)} predictions to {output_file}")
    else:
        for result in results:
            print(f"{result['language'] or '-'}\t{result['text']}")

    undetected = sum(1 for r in results if r['language'] is None)
    if undetected:
        logger.warning(f"No language detected for {undetected}/{len(results)} texts")

    return results


def main():
    parser = argparse.ArgumentParser(description='Detect the language of texts with trained n-gram trees')

    parser.add_argument('--model_dir', type=str, default='models',
                       help='Directory holding the <lang>_tree.bin models')
    parser.add_argument('--languages', nargs='+',
                       help='Candidate languages (default: every model found)')
    parser.add_argument('--top_k', type=int, default=5,
                       help='Number of ranked scores to display')

    # Input arguments
    parser.add_argument('--text', type=str,
                       help='Text to detect')
    parser.add_argument('--input_file', type=str,
                       help='Batch file: JSON list or one text per line')
    parser.add_argument('--interactive', action='store_true',
                       help='Read texts from the terminal')

    parser.add_argument('--output_file', type=str,
                       help='JSON file receiving batch results')

    args = parser.parse_args()

    if not os.path.isdir(args.model_dir):
        logger.error(f"Model directory not found: {args.model_dir} (train models with train.py)")
        sys.exit(1)

    detector = load_detector(args.model_dir, args.languages, sealed=True)
    if not len(detector):
        logger.error(f"No usable model in {args.model_dir}")
        sys.exit(1)

    if args.input_file:
        batch_mode(detector, args.input_file, args.output_file, top_k=args.top_k)
    elif args.text and not args.interactive:
        print(format_prediction_output(predict_text(detector, args.text, top_k=args.top_k)))
    else:
        interactive_mode(detector, None, args.top_k)


if __name__ == '__main__':
    main()
