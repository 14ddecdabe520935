from __future__ import annotations

import argparse
from pathlib import Path
import sys

from ecoalas.config import configure_logging, get_settings
from ecoalas.services.rag.ingest import ingest_documents


def _build_parser() -> argparse.ArgumentParser:
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="rag-ingest",
        description="Extract, chunk and persist passages for every source document",
    )
    parser.add_argument(
        "--source-dir",
        default=settings.rag_source_dir,
        help="Source directory containing .pdf/.txt/.json documents",
    )
    parser.add_argument(
        "--chunks-dir",
        default=settings.rag_chunks_dir,
        help="Output directory for persisted *_chunks.json records",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=settings.rag_chunk_size,
        help="Target passage size in characters",
    )
    parser.add_argument(
        "--chunk-overlap",
        type=int,
        default=settings.rag_chunk_overlap,
        help="Overlap budget in characters (one word carried per 10 characters)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging()

    try:
        summary = ingest_documents(
            source_dir=Path(args.source_dir),
            chunks_dir=Path(args.chunks_dir),
            chunk_size=args.chunk_size,
            chunk_overlap=args.chunk_overlap,
            pause_seconds=get_settings().rag_ingest_pause_seconds,
        )
    except Exception as exc:
        print(f"[rag-ingest] failed: {exc}", file=sys.stderr, flush=True)
        raise SystemExit(1) from exc

    print(
        "[rag-ingest] completed "
        f"documents={summary.succeeded}/{summary.discovered} "
        f"chunks={summary.chunk_count} "
        f"chunks_dir={summary.chunks_dir}",
        flush=True,
    )
    if summary.succeeded == 0:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
