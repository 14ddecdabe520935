from __future__ import annotations

from pathlib import Path

from ecoalas.services.rag.extractors import SUPPORTED_EXTENSIONS
from ecoalas.services.rag.types import SourceDocument


def discover_documents(
    source_dir: Path,
    supported_extensions: set[str] | None = None,
) -> list[SourceDocument]:
    if not source_dir.exists():
        raise FileNotFoundError(f"Source directory not found: {source_dir}")
    if not source_dir.is_dir():
        raise NotADirectoryError(f"Source path is not a directory: {source_dir}")

    extensions = supported_extensions or SUPPORTED_EXTENSIONS
    files = sorted(
        path
        for path in source_dir.iterdir()
        if path.is_file() and path.suffix.lower() in extensions
    )

    return [
        SourceDocument(name=path.name, path=path)
        for path in files
    ]
