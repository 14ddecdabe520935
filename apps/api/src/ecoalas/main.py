from pathlib import Path
from typing import Annotated, Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ecoalas.config import Settings, configure_logging, get_settings
from ecoalas.llm import LLMClient, build_llm_client
from ecoalas.services.rag import AnswerCache, AnswerComposer, IngestionOutcome, RagService, SearchMatch

app = FastAPI(title="EcoAlas Chatbot API", version="0.1.0")


class AskRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    question: str = Field(min_length=1)
    strict: bool | None = None
    k: int | None = Field(default=None, ge=1, le=20)


def build_rag_service(settings: Settings, llm_client: LLMClient | None) -> RagService:
    cache = AnswerCache(max_entries=settings.rag_answer_cache_size)
    composer = AnswerComposer(
        llm_client=llm_client,
        model=settings.groq_model,
        cache=cache,
        max_tokens=settings.chat_max_tokens,
    )
    return RagService(
        source_dir=Path(settings.rag_source_dir),
        chunks_dir=Path(settings.rag_chunks_dir),
        composer=composer,
        cache=cache,
        chunk_size=settings.rag_chunk_size,
        chunk_overlap=settings.rag_chunk_overlap,
        pause_seconds=settings.rag_ingest_pause_seconds,
    )


@app.on_event("startup")
def startup() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    llm_client = build_llm_client(
        api_key=settings.groq_api_key,
        base_url=settings.groq_base_url,
        model=settings.groq_model,
        timeout_seconds=settings.groq_timeout_seconds,
    )
    service = build_rag_service(settings, llm_client)
    service.initialize()
    app.state.rag_service = service


def get_rag_service(request: Request) -> RagService:
    service = getattr(request.app.state, "rag_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="RAG service is not initialized")
    return service


def _match_payload(match: SearchMatch) -> dict[str, Any]:
    return {
        "document": match.document,
        "chunk_index": match.chunk_index,
        "score": match.score,
        "matched_terms": match.matched_terms,
        "text": match.text,
    }


def _status_payload(service: RagService) -> dict[str, Any]:
    status = service.status()
    settings = get_settings()
    return {
        "total_chunks": status.total_chunks,
        "documents": status.documents,
        "processing": status.processing,
        "last_update": status.last_update,
        "model": settings.groq_model,
        "chunk_size": settings.rag_chunk_size,
        "chunk_overlap": settings.rag_chunk_overlap,
    }


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/rag/status")
def rag_status(service: Annotated[RagService, Depends(get_rag_service)]) -> dict[str, Any]:
    return _status_payload(service)


@app.post("/rag/reindex")
def rag_reindex(service: Annotated[RagService, Depends(get_rag_service)]) -> JSONResponse:
    outcome = service.start_ingestion()
    if outcome is IngestionOutcome.BUSY:
        return JSONResponse(
            status_code=409,
            content={"detail": "ingestion already running"},
        )

    return JSONResponse(
        status_code=200,
        content={"success": outcome is IngestionOutcome.SUCCEEDED, **_status_payload(service)},
    )


@app.get("/rag/search")
def rag_search(
    q: str,
    service: Annotated[RagService, Depends(get_rag_service)],
    k: int | None = None,
) -> list[dict[str, Any]]:
    if not q.strip():
        raise HTTPException(status_code=400, detail="q must not be empty")

    requested = get_settings().rag_search_limit if k is None else k
    limit = max(1, min(requested, 20))
    return [_match_payload(match) for match in service.search(q, limit=limit)]


@app.post("/ask")
def ask(
    request: AskRequest,
    service: Annotated[RagService, Depends(get_rag_service)],
) -> dict[str, Any]:
    question = request.question.strip()
    if not question:
        raise HTTPException(status_code=400, detail="question must not be empty")

    settings = get_settings()
    strict = settings.chat_strict_default if request.strict is None else request.strict
    retrieval_k = settings.rag_search_limit if request.k is None else request.k
    matches = service.search(question, limit=retrieval_k)
    context = "\n\n".join(
        f"[{match.document}#{match.chunk_index}]\n{match.text}"
        for match in matches
    )

    answer = service.answer(question, context, strict=strict)

    return {
        "answer": answer,
        "sources": [_match_payload(match) for match in matches],
        "meta": {
            "model": settings.groq_model,
            "strict": strict,
            "retrieval_k": retrieval_k,
            "retrieved_count": len(matches),
        },
    }


def run() -> None:
    import uvicorn

    uvicorn.run("ecoalas.main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    run()
