import unicodedata

import pytest

from gramtree.evaluation import UNDETECTED, DetectionEvaluator


@pytest.fixture
def evaluator():
    return DetectionEvaluator()


class TestDetectionEvaluator:
    def test_metrics(self, evaluator):
        results = evaluator.evaluate_predictions(['en', 'fr', None, 'en'], ['en', 'fr', 'fr', 'fr'])

        overall = results['overall']
        assert overall['accuracy'] == 0.5
        assert overall['correct'] == 2
        assert overall['total'] == 4
        assert overall['undetected'] == 1

        en = results['per_language']['en']
        assert en['precision'] == 0.5
        assert en['recall'] == 1.0
        assert en['f1_score'] == pytest.approx(2 / 3)

        fr = results['per_language']['fr']
        assert fr['precision'] == 1.0
        assert fr['recall'] == pytest.approx(1 / 3)
        assert fr['f1_score'] == pytest.approx(0.5)
        assert fr['support'] == 3

        assert overall['macro_f1'] == pytest.approx((2 / 3 + 0.5) / 2)

    def test_confusion_matrix(self, evaluator):
        results = evaluator.evaluate_predictions(['en', 'fr', None, 'en'], ['en', 'fr', 'fr', 'fr'])
        assert results['confusion_matrix'] == {
            'en': {'en': 1, 'fr': 0, UNDETECTED: 0},
            'fr': {'en': 1, 'fr': 1, UNDETECTED: 1},
        }

    def test_target_languages(self):
        evaluator = DetectionEvaluator(target_languages=['en', 'fr', 'de'])
        results = evaluator.evaluate_predictions(['en'], ['en'])
        assert results['per_language']['de']['support'] == 0
        assert results['overall']['macro_f1'] == 1.0

    def test_length_mismatch(self, evaluator):
        with pytest.raises(ValueError):
            evaluator.evaluate_predictions(['en'], ['en', 'fr'])

    def test_empty(self, evaluator):
        results = evaluator.evaluate_predictions([], [])
        assert results['overall']['accuracy'] == 0.0
        assert results['overall']['macro_f1'] == 0.0

    def test_evaluate_detector(self, evaluator, detector):
        samples = [
            {'text': "the weather is cold and they are at home with their friends", 'lang': 'en'},
            {'text': "il fait froid et ils sont à la maison avec leurs amis", 'lang': 'fr'},
            {'text': "", 'lang': 'fr'},
        ]
        results = evaluator.evaluate(detector, samples)
        assert results['overall']['correct'] == 2
        assert results['overall']['undetected'] == 1
        assert results['predictions'][2] == {'predicted': None, 'true': 'fr'}

    def test_report(self, evaluator, capsys):
        evaluator.print_evaluation_report(evaluator.evaluate_predictions(['en'], ['en']))
        out = capsys.readouterr().out
        assert "Accuracy:" in out and "1.0000" in out
        assert "EN: P=1.0000" in out

    def test_samples_are_normalized_before_detection(self, evaluator, detector):
        composed = "il fait froid et ils sont à la maison avec leurs amis"
        decomposed = unicodedata.normalize('NFD', composed)
        samples = [{'text': composed, 'lang': 'fr'}, {'text': f"  {decomposed}\t", 'lang': 'fr'}]
        results = evaluator.evaluate(detector, samples)
        assert results['predictions'][0] == results['predictions'][1] == {'predicted': 'fr', 'true': 'fr'}
