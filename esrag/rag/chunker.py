"""Sentence-packing passage chunker.

Passages are built from whole sentences and bounded by a word count, so
every passage gets its own embedding without cutting a sentence in half.
"""
from typing import Iterable, List

import structlog

from esrag import config
from esrag.rag.segmenter import SentenceSegmenter, get_segmenter

logger = structlog.get_logger()


def count_words(text: str) -> int:
    """Number of whitespace-delimited tokens in text."""
    return len(text.split())


class PassageChunker:
    """Greedy word-bounded packer of consecutive sentences."""

    def __init__(
        self,
        max_words: int = None,
        segmenter: SentenceSegmenter = None,
    ):
        """Initialize the passage chunker.

        Args:
            max_words: Target maximum words per passage (default from config)
            segmenter: Sentence segmenter (default: shared instance for config language)

        Raises:
            ValueError: If max_words is not a positive integer
        """
        self.max_words = max_words if max_words is not None else config.MAX_WORDS_PER_PASSAGE
        self._segmenter = segmenter

        if (
            not isinstance(self.max_words, int)
            or isinstance(self.max_words, bool)
            or self.max_words <= 0
        ):
            raise ValueError(f"max_words must be a positive integer, got {self.max_words!r}")

    @property
    def segmenter(self) -> SentenceSegmenter:
        if self._segmenter is None:
            self._segmenter = get_segmenter()
        return self._segmenter

    def split_into_passages(self, text: str) -> List[str]:
        """Segment text into sentences and pack them into passages.

        Args:
            text: Text to split, may be None

        Returns:
            Ordered list of passages (empty for blank input)
        """
        if text is None or not text.strip():
            return []

        passages = self.combine_into_passages(self.segmenter.split_into_sentences(text))

        logger.debug(
            "text_split_into_passages",
            text_length=len(text),
            passage_count=len(passages),
            max_words=self.max_words,
        )

        return passages

    def combine_into_passages(self, sentences: Iterable[str]) -> List[str]:
        """Pack sentences, in order, into passages of at most max_words words.

        A sentence that alone exceeds max_words becomes its own passage.

        Args:
            sentences: Trimmed, non-empty sentences

        Returns:
            Ordered list of passages
        """
        passages = []
        current: List[str] = []
        current_word_count = 0

        for sentence in sentences:
            sentence_word_count = count_words(sentence)

            if current_word_count + sentence_word_count > self.max_words and current_word_count > 0:
                passages.append(" ".join(current))
                current = []
                current_word_count = 0

            current.append(sentence)
            current_word_count += sentence_word_count

        if current:
            passages.append(" ".join(current))

        return passages
