"""Locale-aware sentence segmentation backed by spaCy's rule-based sentencizer."""
from typing import Iterable, Iterator

import spacy
import structlog

from esrag import config

logger = structlog.get_logger()


class Sentences:
    """Sentences of one text, trimmed and non-empty, in source order.

    Iteration is lazy and can be repeated; each pass walks the parsed
    document again.
    """

    def __init__(self, doc):
        self._doc = doc

    def __iter__(self) -> Iterator[str]:
        for span in self._doc.sents:
            sentence = span.text.strip()
            if sentence:
                yield sentence


class SentenceSegmenter:
    """Splits raw text into sentences for a given language."""

    def __init__(self, language: str = None):
        """Initialize the segmenter.

        Args:
            language: spaCy language code (default from config.SENTENCE_LANGUAGE)
        """
        self.language = language or config.SENTENCE_LANGUAGE

        # Blank pipeline: language tokenizer exceptions plus the sentencizer,
        # no statistical model download needed
        self.nlp = spacy.blank(self.language)
        self.nlp.add_pipe("sentencizer")

        logger.debug("sentence_segmenter_initialized", language=self.language)

    def split_into_sentences(self, text: str) -> Iterable[str]:
        """Split text into sentences.

        Args:
            text: Text to split, may be None

        Returns:
            Iterable of trimmed, non-empty sentences (empty for blank input)
        """
        if text is None or not text.strip():
            return ()

        # Tokenizer and sentencizer only, so long texts are safe to parse whole
        if len(text) >= self.nlp.max_length:
            self.nlp.max_length = len(text) + 1

        return Sentences(self.nlp(text))


_segmenter_instance = None


def get_segmenter() -> SentenceSegmenter:
    """Get a shared segmenter for the configured language."""
    global _segmenter_instance
    if _segmenter_instance is None:
        _segmenter_instance = SentenceSegmenter()
    return _segmenter_instance
