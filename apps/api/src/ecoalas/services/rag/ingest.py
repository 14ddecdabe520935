from __future__ import annotations

from datetime import datetime, timezone
import logging
from pathlib import Path
from time import sleep

from ecoalas.services.rag.chunker import chunk_text
from ecoalas.services.rag.extractors import ExtractionError, extract_document
from ecoalas.services.rag.loader import discover_documents
from ecoalas.services.rag.normalizer import clean_text
from ecoalas.services.rag.passage_store import persist_passage_set
from ecoalas.services.rag.types import IngestionSummary, PassageSet, SourceDocument

logger = logging.getLogger(__name__)

MIN_DOCUMENT_LENGTH = 100


def process_document(
    document: SourceDocument,
    *,
    chunks_dir: Path,
    chunk_size: int,
    chunk_overlap: int,
) -> int:
    """Extract, chunk and persist one document; return the passage count (0 when skipped).

    Any failure is confined to this document so the rest of the batch keeps going.
    """
    logger.info("Processing %s", document.name)
    try:
        extracted = extract_document(document.path)

        cleaned = clean_text(extracted.text)
        if len(cleaned) < MIN_DOCUMENT_LENGTH:
            logger.warning("Skipping %s: text too short (%d chars)", document.name, len(cleaned))
            return 0

        passages = chunk_text(cleaned, chunk_size=chunk_size, chunk_overlap=chunk_overlap)
        if not passages:
            logger.warning("Skipping %s: no valid passages produced", document.name)
            return 0

        passage_set = PassageSet(
            original_name=document.name,
            passages=tuple(passages),
            method=extracted.method,
            total_characters=len(cleaned),
            processed_at=datetime.now(timezone.utc).isoformat(),
        )
        output_file = persist_passage_set(chunks_dir, passage_set)
    except ExtractionError as exc:
        logger.warning("Skipping %s: %s", document.name, exc)
        return 0
    except Exception:
        logger.exception("Skipping %s: processing failed", document.name)
        return 0

    logger.info("%s -> %d passages saved to %s", document.name, len(passages), output_file.name)
    return len(passages)


def ingest_documents(
    *,
    source_dir: Path,
    chunks_dir: Path,
    chunk_size: int,
    chunk_overlap: int,
    pause_seconds: float = 0.0,
) -> IngestionSummary:
    if chunk_overlap >= chunk_size:
        raise ValueError("chunk_overlap must be smaller than chunk_size")

    source_dir.mkdir(parents=True, exist_ok=True)
    chunks_dir.mkdir(parents=True, exist_ok=True)

    documents = discover_documents(source_dir)
    logger.info("Found %d source documents in %s", len(documents), source_dir)

    succeeded = 0
    chunk_count = 0
    for position, document in enumerate(documents):
        produced = process_document(
            document,
            chunks_dir=chunks_dir,
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
        )
        if produced > 0:
            succeeded += 1
            chunk_count += produced
        if pause_seconds > 0 and position < len(documents) - 1:
            sleep(pause_seconds)

    return IngestionSummary(
        discovered=len(documents),
        succeeded=succeeded,
        chunk_count=chunk_count,
        chunks_dir=str(chunks_dir),
    )
