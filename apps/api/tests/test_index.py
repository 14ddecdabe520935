from ecoalas.services.rag.index import build_corpus, build_snapshot
from ecoalas.services.rag.normalizer import tokenize
from ecoalas.services.rag.types import PassageSet, Posting

CORPUS = {
    "aves.pdf": (
        "La garza real se alimenta de peces en los humedales de la sabana.",
        "El cóndor andino planea sobre los páramos aprovechando corrientes térmicas.",
    ),
    "Tucan.txt": (
        "El tucán pico iris habita los bosques húmedos y se alimenta de frutos maduros.",
    ),
}


def test_build_snapshot_indexes_every_term_of_every_passage() -> None:
    snapshot = build_snapshot(CORPUS)

    for document, passages in CORPUS.items():
        for chunk_index, passage in enumerate(passages):
            for term in tokenize(passage):
                assert Posting(document=document, chunk_index=chunk_index) in snapshot.index[term]


def test_build_snapshot_postings_reference_existing_passages() -> None:
    snapshot = build_snapshot(CORPUS)

    for postings in snapshot.index.values():
        for posting in postings:
            assert snapshot.passage(posting.document, posting.chunk_index) is not None


def test_build_snapshot_shares_terms_across_documents() -> None:
    snapshot = build_snapshot(CORPUS)

    assert snapshot.index["alimenta"] == (
        Posting(document="aves.pdf", chunk_index=0),
        Posting(document="Tucan.txt", chunk_index=0),
    )
    assert snapshot.document_count == 2
    assert snapshot.passage_count == 3


def test_build_corpus_uses_original_name_and_filters_short_passages() -> None:
    passage_set = PassageSet(
        original_name="Guía.pdf",
        passages=("corto", CORPUS["aves.pdf"][0]),
        method="pdf-text-layer",
        total_characters=100,
        processed_at="2026-10-16T12:00:00+00:00",
    )
    empty = PassageSet(
        original_name="vacio.txt",
        passages=("x" * 10,),
        method="directo",
        total_characters=10,
        processed_at="2026-10-16T12:00:00+00:00",
    )

    corpus = build_corpus([passage_set, empty])

    assert corpus == {"Guía.pdf": (CORPUS["aves.pdf"][0],)}


def test_empty_snapshot_has_no_index() -> None:
    snapshot = build_snapshot({})

    assert snapshot.passage_count == 0
    assert dict(snapshot.index) == {}
