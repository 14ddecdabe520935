from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from ecoalas.services.rag.types import PassageSet

logger = logging.getLogger(__name__)

RECORD_SUFFIX = "_chunks.json"


def record_path(chunks_dir: Path, original_name: str) -> Path:
    return chunks_dir / f"{Path(original_name).stem}{RECORD_SUFFIX}"


def persist_passage_set(chunks_dir: Path, passage_set: PassageSet) -> Path:
    chunks_dir.mkdir(parents=True, exist_ok=True)

    payload = {
        "metadata": {
            "original_name": passage_set.original_name,
            "processed_at": passage_set.processed_at,
            "total_chunks": passage_set.total_chunks,
            "total_characters": passage_set.total_characters,
            "method": passage_set.method,
        },
        "chunks": list(passage_set.passages),
    }

    output_file = record_path(chunks_dir, passage_set.original_name)
    tmp_file = output_file.with_suffix(f"{output_file.suffix}.tmp")
    try:
        tmp_file.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        os.replace(tmp_file, output_file)
    finally:
        if tmp_file.exists():
            tmp_file.unlink()

    return output_file


def _parse_record(payload: object, record_file: Path) -> PassageSet:
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid passage record in {record_file}: expected an object")

    metadata = payload.get("metadata")
    chunks = payload.get("chunks")
    if not isinstance(metadata, dict):
        raise ValueError(f"Invalid passage record in {record_file}: 'metadata' must be an object")
    if not isinstance(chunks, list):
        raise ValueError(f"Invalid passage record in {record_file}: 'chunks' must be a list")

    original_name = metadata.get("original_name")
    if not isinstance(original_name, str) or not original_name:
        raise ValueError(f"Invalid passage record in {record_file}: missing original_name")

    passages = tuple(chunk for chunk in chunks if isinstance(chunk, str))
    return PassageSet(
        original_name=original_name,
        passages=passages,
        method=str(metadata.get("method", "")),
        total_characters=int(metadata.get("total_characters") or 0),
        processed_at=str(metadata.get("processed_at", "")),
    )


def load_passage_sets(chunks_dir: Path) -> list[PassageSet]:
    if not chunks_dir.is_dir():
        return []

    passage_sets: list[PassageSet] = []
    for record_file in sorted(chunks_dir.glob(f"*{RECORD_SUFFIX}")):
        try:
            payload = json.loads(record_file.read_text(encoding="utf-8"))
            passage_sets.append(_parse_record(payload, record_file))
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to load passage record %s: %s", record_file.name, exc)

    return passage_sets
