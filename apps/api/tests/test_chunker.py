import pytest

from ecoalas.services.rag.chunker import chunk_text

TUCAN_SENTENCE = "El tucán pico iris habita los bosques húmedos de Colombia y se alimenta de frutos."


def _paragraph(word: str, length: int) -> str:
    text = " ".join([word] * (length // (len(word) + 1) + 1))
    return text[:length].strip()


def test_chunk_text_short_input_returns_single_cleaned_passage() -> None:
    text = "  La garza real\t\tvive en humedales.  "

    assert chunk_text(text) == ["La garza real vive en humedales."]


def test_chunk_text_empty_input_returns_nothing() -> None:
    assert chunk_text("") == []
    assert chunk_text("   \n  ") == []


def test_chunk_text_rejects_invalid_arguments() -> None:
    with pytest.raises(ValueError, match="chunk_size"):
        chunk_text("texto", chunk_size=0)
    with pytest.raises(ValueError, match="chunk_overlap"):
        chunk_text("texto", chunk_overlap=-1)


def test_chunk_text_single_long_paragraph_splits_by_sentence_with_overlap() -> None:
    text = " ".join([TUCAN_SENTENCE] * 18)
    assert len(text) > 1000

    passages = chunk_text(text, chunk_size=1000, chunk_overlap=200)

    assert len(passages) == 2
    assert all(len(passage) >= 500 for passage in passages)
    assert all(len(passage) <= 1000 for passage in passages)
    # last 20 words of the first passage open the second one
    tail = " ".join(passages[0].split(" ")[-20:])
    assert passages[1].startswith(tail)


def test_chunk_text_without_overlap_starts_next_passage_at_sentence() -> None:
    text = " ".join([TUCAN_SENTENCE] * 18)

    passages = chunk_text(text, chunk_size=1000, chunk_overlap=0)

    assert len(passages) == 2
    assert passages[1].startswith(TUCAN_SENTENCE)
    assert len(passages[0]) + len(passages[1]) + 1 == len(text)


def test_chunk_text_groups_paragraphs_in_order() -> None:
    paragraphs = [_paragraph(word, 400) for word in ("garza", "colibri", "tucan", "condor")]
    text = "\n\n".join(paragraphs)

    passages = chunk_text(text, chunk_size=1000, chunk_overlap=200)

    assert passages == [
        f"{paragraphs[0]}\n\n{paragraphs[1]}",
        f"{paragraphs[2]}\n\n{paragraphs[3]}",
    ]


def test_chunk_text_replaces_undersized_running_chunk() -> None:
    small = _paragraph("pato", 100)
    large = _paragraph("gavilan", 950)

    passages = chunk_text(f"{small}\n\n{large}", chunk_size=1000, chunk_overlap=200)

    assert passages == [large]


def test_chunk_text_never_emits_short_passages() -> None:
    paragraphs = [_paragraph("loro", 120), _paragraph("pava", 60), _paragraph("buho", 700)] * 3
    text = "\n\n".join(paragraphs)

    passages = chunk_text(text, chunk_size=300, chunk_overlap=50)

    assert passages
    assert all(len(passage) > 50 for passage in passages)
