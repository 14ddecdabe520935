from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
import logging
from pathlib import Path
from threading import Lock

from ecoalas.services.rag.answer import AnswerCache, AnswerComposer
from ecoalas.services.rag.index import CorpusSnapshot, build_corpus, build_snapshot
from ecoalas.services.rag.ingest import ingest_documents
from ecoalas.services.rag.passage_store import load_passage_sets
from ecoalas.services.rag.query import search_snapshot
from ecoalas.services.rag.types import SearchMatch

logger = logging.getLogger(__name__)


class IngestionOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    NOTHING_INGESTED = "nothing_ingested"
    NO_DOCUMENTS = "no_documents"
    FAILED = "failed"
    BUSY = "busy"


@dataclass(frozen=True)
class RagStatus:
    total_chunks: int
    documents: int
    processing: bool
    last_update: str | None


class RagService:
    """Owns the active corpus snapshot, the answer cache and the ingestion guard.

    Readers take ``self._snapshot`` once per call; ingestion builds a new
    snapshot and replaces the reference, so a reader never sees a corpus and
    an index from different passes.
    """

    def __init__(
        self,
        *,
        source_dir: Path,
        chunks_dir: Path,
        composer: AnswerComposer,
        cache: AnswerCache,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        pause_seconds: float = 0.0,
    ) -> None:
        self._source_dir = source_dir
        self._chunks_dir = chunks_dir
        self._composer = composer
        self._cache = cache
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._pause_seconds = pause_seconds
        self._snapshot = CorpusSnapshot()
        self._ingestion_lock = Lock()
        self._last_update: datetime | None = None

    @property
    def snapshot(self) -> CorpusSnapshot:
        return self._snapshot

    @property
    def is_processing(self) -> bool:
        return self._ingestion_lock.locked()

    def initialize(self) -> int:
        self._source_dir.mkdir(parents=True, exist_ok=True)
        self._chunks_dir.mkdir(parents=True, exist_ok=True)
        total = self.load()
        if total > 0:
            logger.info("Using %d previously processed passages", total)
        else:
            logger.info("No processed passages yet; run an ingestion pass to index %s", self._source_dir)
        return total

    def load(self) -> int:
        corpus = build_corpus(load_passage_sets(self._chunks_dir))
        snapshot = build_snapshot(corpus)
        self._snapshot = snapshot
        logger.info(
            "Loaded %d documents with %d passages",
            snapshot.document_count,
            snapshot.passage_count,
        )
        return snapshot.passage_count

    def rebuild_index(self) -> None:
        self._snapshot = build_snapshot(self._snapshot.passages)

    def search(self, query_text: str, limit: int = 8) -> list[SearchMatch]:
        return search_snapshot(self._snapshot, query_text, limit=limit)

    def answer(self, question: str, context: str = "", *, strict: bool = True) -> str:
        return self._composer.answer(question, context, strict=strict)

    def run_ingestion(self) -> bool:
        return self.start_ingestion() is IngestionOutcome.SUCCEEDED

    def start_ingestion(self) -> IngestionOutcome:
        """Run one ingestion pass unless another one already holds the guard."""
        if not self._ingestion_lock.acquire(blocking=False):
            logger.info("Ingestion already in progress")
            return IngestionOutcome.BUSY

        try:
            logger.info("Starting ingestion pass from %s", self._source_dir)
            summary = ingest_documents(
                source_dir=self._source_dir,
                chunks_dir=self._chunks_dir,
                chunk_size=self._chunk_size,
                chunk_overlap=self._chunk_overlap,
                pause_seconds=self._pause_seconds,
            )
            if summary.discovered == 0:
                logger.info("No documents found; place files in %s", self._source_dir)
                return IngestionOutcome.NO_DOCUMENTS

            self.load()
            self._cache.clear()
            self._last_update = datetime.now(timezone.utc)
            logger.info(
                "Ingestion completed: %d/%d documents, %d passages",
                summary.succeeded,
                summary.discovered,
                summary.chunk_count,
            )
            if summary.succeeded == 0:
                return IngestionOutcome.NOTHING_INGESTED
            return IngestionOutcome.SUCCEEDED
        except Exception:
            logger.exception("Ingestion pass failed")
            return IngestionOutcome.FAILED
        finally:
            self._ingestion_lock.release()

    def status(self) -> RagStatus:
        snapshot = self._snapshot
        return RagStatus(
            total_chunks=snapshot.passage_count,
            documents=snapshot.document_count,
            processing=self.is_processing,
            last_update=self._last_update.isoformat() if self._last_update else None,
        )
