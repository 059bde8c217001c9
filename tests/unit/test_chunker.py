"""Tests for passage chunking."""
import pytest

from esrag.rag.chunker import PassageChunker, count_words


def make_sentence(words: int, tag: str = "w") -> str:
    return " ".join(f"{tag}{i}" for i in range(words - 1)) + " end."


def test_count_words_uses_whitespace_tokens():
    assert count_words("a  b\tc\n d") == 4
    assert count_words("single") == 1


@pytest.mark.parametrize("max_words", [0, -5, True, 2.5, "300"])
def test_rejects_invalid_max_words(max_words):
    with pytest.raises(ValueError):
        PassageChunker(max_words=max_words)


@pytest.mark.parametrize("text", [None, "", "   "])
def test_blank_text_gives_no_passages(segmenter, text):
    chunker = PassageChunker(max_words=300, segmenter=segmenter)

    assert chunker.split_into_passages(text) == []


def test_short_text_is_one_passage(segmenter):
    chunker = PassageChunker(max_words=300, segmenter=segmenter)
    text = "First sentence. Second sentence. Third sentence."

    passages = chunker.split_into_passages(text)

    assert passages == [text]


def test_four_hundred_ten_word_sentences(segmenter):
    sentences = [
        f"Sentence number {i} has exactly ten words in it today."
        for i in range(400)
    ]
    text = " ".join(sentences)
    chunker = PassageChunker(max_words=300, segmenter=segmenter)

    passages = chunker.split_into_passages(text)

    assert len(passages) == 14
    assert all(count_words(passage) <= 300 for passage in passages)
    assert " ".join(passages) == " ".join(sentences)
    # no sentence is split across passages
    for passage in passages:
        assert passage.startswith("Sentence number ")
        assert passage.endswith("today.")


def test_fills_exactly_to_the_limit():
    chunker = PassageChunker(max_words=30)
    sentences = [make_sentence(10, tag=t) for t in "abcd"]

    passages = chunker.combine_into_passages(sentences)

    assert passages == [" ".join(sentences[:3]), sentences[3]]


def test_oversized_sentence_becomes_its_own_passage():
    chunker = PassageChunker(max_words=10)
    small_before = make_sentence(4, tag="a")
    huge = make_sentence(25, tag="b")
    small_after = make_sentence(3, tag="c")

    passages = chunker.combine_into_passages([small_before, huge, small_after])

    assert passages == [small_before, huge, small_after]
    assert count_words(passages[1]) == 25


def test_oversized_first_sentence_is_not_preceded_by_empty_passage():
    chunker = PassageChunker(max_words=5)
    huge = make_sentence(12)

    assert chunker.combine_into_passages([huge]) == [huge]


def test_passages_reconstruct_sentences_in_order():
    chunker = PassageChunker(max_words=17)
    lengths = [3, 9, 1, 17, 4, 4, 4, 30, 2, 8, 8, 1, 16, 5]
    sentences = [make_sentence(n, tag=f"s{i}_") for i, n in enumerate(lengths)]

    passages = chunker.combine_into_passages(sentences)

    assert " ".join(passages) == " ".join(sentences)
    for passage in passages:
        if count_words(passage) > 17:
            assert passage in sentences


def test_empty_sentence_sequence():
    assert PassageChunker(max_words=10).combine_into_passages([]) == []


def test_very_long_single_sentence_is_one_passage(segmenter):
    chunker = PassageChunker(max_words=300, segmenter=segmenter)
    text = "Word " * 210_000 + "end."

    passages = chunker.split_into_passages(text)

    assert len(text) > 1_000_000
    assert len(passages) == 1
    assert count_words(passages[0]) == 210_001
