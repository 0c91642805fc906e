"""
Preprocessing utilities for training corpora.
"""
import logging
import os
import unicodedata
from typing import Iterator

import regex

logger = logging.getLogger(__name__)


class TextPreprocessor:
    """Cleans corpus lines before they are learnt."""

    def __init__(self, skip_markup: bool = True):
        self.skip_markup = skip_markup

        self.control_pattern = regex.compile(r'\p{Cc}')
        self.whitespace_pattern = regex.compile(r'\s+')
        # EPPPC/Europarl files interleave raw text with lines such as <CHAPTER ID=1>
        self.markup_pattern = regex.compile(r'^\s*<')

    def normalize_text(self, text: str) -> str:
        """Apply Unicode NFC normalization, blank out control characters and collapse whitespace."""
        text = unicodedata.normalize('NFC', text)
        text = self.control_pattern.sub(' ', text)
        return self.whitespace_pattern.sub(' ', text).strip()

    def is_markup_line(self, line: str) -> bool:
        return bool(self.markup_pattern.match(line))

    def iter_file_lines(self, path: str) -> Iterator[str]:
        """Yield the normalized, non-empty text lines of a UTF-8 file."""
        with open(path, 'r', encoding='utf-8') as f:
            for line in f:
                if self.skip_markup and self.is_markup_line(line):
                    continue
                line = self.normalize_text(line)
                if line:
                    yield line

    def iter_corpus_lines(self, language_dir: str) -> Iterator[str]:
        """Yield the lines of every file of a language directory, files in name order."""
        files = sorted(name for name in os.listdir(language_dir)
                       if os.path.isfile(os.path.join(language_dir, name)))
        language = os.path.basename(os.path.normpath(language_dir))

        for cpt, name in enumerate(files, start=1):
            yield from self.iter_file_lines(os.path.join(language_dir, name))
            if cpt % 20 == 0:
                logger.info(f"Processed {100 * cpt // len(files)}% of {language}")
