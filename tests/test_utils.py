import json

import pytest

from gramtree.utils import (
    LANGUAGE_CODES, calculate_confidence_scores, discover_languages,
    load_dataset, model_filename, save_results
)


def test_model_filename():
    assert model_filename('en') == 'en_tree.bin'


def test_language_codes_include_extra_languages():
    assert {'ru', 'zh', 'ja', 'ko'} <= set(LANGUAGE_CODES)
    assert LANGUAGE_CODES['ru'] == 'Russian'


def test_discover_languages(tmp_path):
    for name in ('fr', 'en', '.cache'):
        (tmp_path / name).mkdir()
    (tmp_path / "notes.txt").write_text("")
    assert discover_languages(str(tmp_path)) == ['en', 'fr']


def test_confidence_scores():
    confidences = calculate_confidence_scores({'en': 2.0, 'fr': 1.0, 'de': 1.0})
    assert sum(confidences.values()) == pytest.approx(1.0)
    assert confidences['en'] > confidences['fr'] == pytest.approx(confidences['de'])
    assert calculate_confidence_scores({}) == {}


def test_results_round_trip(tmp_path):
    path = tmp_path / "out" / "results.json"
    samples = [{'text': "texte en français", 'lang': 'fr'}]
    save_results(samples, str(path))
    assert json.loads(path.read_text(encoding="utf-8")) == samples
    assert load_dataset(str(path)) == samples
