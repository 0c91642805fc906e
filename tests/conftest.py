import os

import pytest

from gramtree.language_detector import LanguageDetector
from gramtree.models import TrieBuilder


ENGLISH = [
    "This is a short text written in English for the test suite.",
    "The English language is spoken in many countries around the world.",
    "We wrote this text in plain English so that the model can learn it.",
    "A little longer text in English helps the detector a lot.",
    "She reads the newspaper every morning while drinking her coffee.",
    "The weather was cold and windy, so they stayed at home all day.",
    "Children were playing in the garden with their friends after school.",
    "He thinks that the English text is easier to read than the other one.",
    "Welcome to London, the capital city of England.",
    "Which of these books would you like to borrow this weekend?",
    "The government published a new report on health and education.",
    "Thank you very much for your help with this English translation.",
    "It is important to think about the things that matter the most.",
    "The train to the north leaves the station at eight in the morning.",
    "Matching on lexicons is one way to find the language of a text.",
    "They have finished their work and they are going home now.",
]

FRENCH = [
    "Ceci est un court texte écrit en français pour les tests.",
    "La langue française est parlée dans de nombreux pays du monde.",
    "Nous avons écrit ce texte en français pour que le modèle l'apprenne.",
    "Un texte un peu plus long en français aide beaucoup le détecteur.",
    "Elle lit le journal tous les matins en buvant son café.",
    "Il faisait froid et venteux, alors ils sont restés à la maison.",
    "Les enfants jouaient dans le jardin avec leurs amis après l'école.",
    "Il pense que ce texte en français est plus facile à lire que l'autre.",
    "Bienvenue à Paris, la capitale de la France.",
    "Lequel de ces livres voudrais-tu emprunter ce week-end ?",
    "Le gouvernement a publié un nouveau rapport sur la santé et l'éducation.",
    "Merci beaucoup pour ton aide avec cette traduction en français.",
    "Il est important de réfléchir aux choses qui comptent le plus.",
    "Le train pour le nord quitte la gare à huit heures du matin.",
    "Une première optimisation consiste à ne tester que les sous-chaînes compatibles avec le lexique.",
    "Ils ont terminé leur travail et ils rentrent maintenant chez eux.",
]


@pytest.fixture
def english_lines():
    return list(ENGLISH)


@pytest.fixture
def french_lines():
    return list(FRENCH)


def build_tree(lines, min_gram=1, max_gram=3, truncation_threshold=1.0):
    builder = TrieBuilder(min_gram, max_gram, truncation_threshold=truncation_threshold)
    builder.learn_lines(lines)
    return builder.build()


@pytest.fixture
def en_tree(english_lines):
    return build_tree(english_lines)


@pytest.fixture
def fr_tree(french_lines):
    return build_tree(french_lines)


@pytest.fixture
def detector(en_tree, fr_tree):
    return LanguageDetector({'en': en_tree, 'fr': fr_tree})


@pytest.fixture
def corpus_dir(tmp_path, english_lines, french_lines):
    """A training directory with one subdirectory of text files per language."""
    root = tmp_path / "corpus"
    for lang, lines in (('en', english_lines), ('fr', french_lines)):
        lang_dir = root / lang
        os.makedirs(lang_dir)
        half = len(lines) // 2
        (lang_dir / "part1.txt").write_text("<CHAPTER ID=1>\n" + "\n".join(lines[:half]) + "\n", encoding="utf-8")
        (lang_dir / "part2.txt").write_text("\n".join(lines[half:]) + "\n\n", encoding="utf-8")
    return root
