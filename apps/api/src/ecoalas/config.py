from dataclasses import dataclass
from functools import lru_cache
import logging
import os

logger = logging.getLogger(__name__)


def _to_bool(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_int(value: str | None, *, default: int, minimum: int) -> int:
    if value is None:
        return default
    parsed = int(value)
    return max(minimum, parsed)


def _to_float(value: str | None, *, default: float, minimum: float) -> float:
    if value is None:
        return default
    parsed = float(value)
    return max(minimum, parsed)


@dataclass(frozen=True)
class Settings:
    rag_source_dir: str
    rag_chunks_dir: str
    rag_chunk_size: int
    rag_chunk_overlap: int
    rag_search_limit: int
    rag_ingest_pause_seconds: float
    rag_answer_cache_size: int
    chat_strict_default: bool
    chat_max_tokens: int
    groq_api_key: str | None
    groq_base_url: str
    groq_model: str
    groq_timeout_seconds: float
    log_level: str


@lru_cache
def get_settings() -> Settings:
    chunk_size = _to_int(os.getenv("RAG_CHUNK_SIZE"), default=1000, minimum=100)
    chunk_overlap = _to_int(os.getenv("RAG_CHUNK_OVERLAP"), default=200, minimum=0)
    if chunk_overlap >= chunk_size:
        logger.warning(
            "RAG_CHUNK_OVERLAP=%d must be smaller than RAG_CHUNK_SIZE=%d; using %d",
            chunk_overlap,
            chunk_size,
            chunk_size - 1,
        )
        chunk_overlap = chunk_size - 1

    return Settings(
        rag_source_dir=os.getenv("RAG_SOURCE_DIR", "documentos"),
        rag_chunks_dir=os.getenv("RAG_CHUNKS_DIR", "documentos_chunks"),
        rag_chunk_size=chunk_size,
        rag_chunk_overlap=chunk_overlap,
        rag_search_limit=_to_int(os.getenv("RAG_SEARCH_LIMIT"), default=8, minimum=1),
        rag_ingest_pause_seconds=_to_float(
            os.getenv("RAG_INGEST_PAUSE_SECONDS"), default=0.1, minimum=0.0
        ),
        rag_answer_cache_size=_to_int(os.getenv("RAG_ANSWER_CACHE_SIZE"), default=512, minimum=1),
        chat_strict_default=_to_bool(os.getenv("CHAT_STRICT_DEFAULT"), default=True),
        chat_max_tokens=_to_int(os.getenv("CHAT_MAX_TOKENS"), default=1200, minimum=1),
        groq_api_key=os.getenv("GROQ_API_KEY") or None,
        groq_base_url=os.getenv("GROQ_BASE_URL", "https://api.groq.com/openai/v1"),
        groq_model=os.getenv("GROQ_MODEL", "llama3-70b-8192"),
        groq_timeout_seconds=_to_float(os.getenv("GROQ_TIMEOUT_SECONDS"), default=30.0, minimum=1.0),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
