from pathlib import Path

from fastapi.testclient import TestClient

from conftest import make_service
from ecoalas.main import app, get_rag_service
from ecoalas.services.rag.index import build_snapshot
from ecoalas.services.rag.passage_store import persist_passage_set
from ecoalas.services.rag.query import search_snapshot
from ecoalas.services.rag.types import PassageSet

AVES_PASSAGES = (
    "La garza real se alimenta de peces en los humedales de la sabana de Bogotá.",
    "El cóndor andino planea sobre los páramos aprovechando corrientes térmicas.",
    "La pava caucana es endémica de Colombia y vive en bosques secundarios.",
    "El colibrí de cola larga visita flores tubulares en los jardines de Manizales.",
)
TUCAN_PASSAGES = (
    "El tucán pico iris habita los bosques húmedos y se alimenta de frutos maduros.",
    "Los tucanes anidan en cavidades de árboles viejos del bosque andino húmedo.",
)


def _snapshot():
    return build_snapshot({"aves.pdf": AVES_PASSAGES, "Tucan.txt": TUCAN_PASSAGES})


def test_search_returns_only_passage_containing_term() -> None:
    matches = search_snapshot(_snapshot(), "colibrí")

    assert len(matches) == 1
    assert (matches[0].document, matches[0].chunk_index) == ("aves.pdf", 3)
    assert matches[0].matched_terms == ["colibri"]
    assert matches[0].score == 11


def test_search_ranks_passages_matching_more_terms_first() -> None:
    matches = search_snapshot(_snapshot(), "¿Tucán en bosques húmedos comiendo frutos?")

    assert [(match.document, match.chunk_index, match.score) for match in matches] == [
        ("Tucan.txt", 0, 44),
        ("aves.pdf", 2, 11),
    ]
    assert set(matches[0].matched_terms) == {"tucan", "bosques", "humedos", "frutos"}


def test_search_caps_results_at_limit() -> None:
    matches = search_snapshot(_snapshot(), "los bosques andino colombia", limit=2)

    assert len(matches) == 2
    assert matches[0].score >= matches[1].score


def test_search_without_indexable_terms_returns_nothing() -> None:
    assert search_snapshot(_snapshot(), "el de la ¿? 12") == []
    assert search_snapshot(_snapshot(), "") == []


def test_search_on_empty_index_returns_nothing() -> None:
    assert search_snapshot(build_snapshot({}), "colibrí") == []


def test_search_truncates_passage_text() -> None:
    long_passage = "colibrí " * 300
    snapshot = build_snapshot({"largo.txt": (long_passage,)})

    matches = search_snapshot(snapshot, "colibri")

    assert len(matches[0].text) == 1200


def test_rag_search_endpoint_returns_matches(client: TestClient, tmp_path: Path) -> None:
    service = make_service(tmp_path / "svc")
    persist_passage_set(
        tmp_path / "svc" / "documentos_chunks",
        PassageSet(
            original_name="aves.pdf",
            passages=AVES_PASSAGES,
            method="pdf-text-layer",
            total_characters=sum(len(passage) for passage in AVES_PASSAGES),
            processed_at="2026-10-16T12:00:00+00:00",
        ),
    )
    service.load()
    app.dependency_overrides[get_rag_service] = lambda: service

    response = client.get("/rag/search", params={"q": "colibrí", "k": 3})

    assert response.status_code == 200
    payload = response.json()
    assert len(payload) == 1
    assert payload[0]["document"] == "aves.pdf"
    assert payload[0]["chunk_index"] == 3
    assert {"document", "chunk_index", "score", "matched_terms", "text"} == set(payload[0].keys())


def test_rag_search_endpoint_rejects_blank_query(client: TestClient) -> None:
    response = client.get("/rag/search", params={"q": "   "})

    assert response.status_code == 400
    assert response.json()["detail"] == "q must not be empty"
