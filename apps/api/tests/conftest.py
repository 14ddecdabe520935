from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from ecoalas.config import get_settings
from ecoalas.main import app
from ecoalas.services.rag import AnswerCache, AnswerComposer, RagService


class FakeLLMClient:
    def __init__(self, answer: str = "El colibrí es un ave pequeña que se alimenta del néctar de las flores.") -> None:
        self.answer = answer
        self.calls: list[dict[str, object]] = []

    def complete(
        self,
        *,
        messages: list[dict[str, str]],
        model: str,
        temperature: float,
        max_tokens: int,
        top_p: float,
    ) -> str:
        self.calls.append(
            {
                "messages": messages,
                "model": model,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "top_p": top_p,
            }
        )
        return self.answer


def make_service(
    tmp_path: Path,
    *,
    llm_client: FakeLLMClient | None = None,
    chunk_size: int = 1000,
    chunk_overlap: int = 200,
) -> RagService:
    cache = AnswerCache(max_entries=32)
    composer = AnswerComposer(
        llm_client=llm_client,
        model="llama3-70b-8192",
        cache=cache,
    )
    return RagService(
        source_dir=tmp_path / "documentos",
        chunks_dir=tmp_path / "documentos_chunks",
        composer=composer,
        cache=cache,
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
    )


@pytest.fixture(autouse=True)
def reset_settings_cache(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[TestClient]:
    monkeypatch.setenv("RAG_SOURCE_DIR", str(tmp_path / "documentos"))
    monkeypatch.setenv("RAG_CHUNKS_DIR", str(tmp_path / "documentos_chunks"))
    monkeypatch.setenv("RAG_INGEST_PAUSE_SECONDS", "0")

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
