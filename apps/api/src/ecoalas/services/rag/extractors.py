"""Text extraction for source documents.

PDFs go through an ordered chain of strategies; the first one that accepts
its own output wins. Plain text and JSON files are read directly.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
import re
from typing import Protocol

from pypdf import PdfReader

from ecoalas.services.rag.normalizer import clean_text, strip_disallowed
from ecoalas.services.rag.types import ExtractedText

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".pdf", ".txt", ".json"}
DIRECT_METHOD = "directo"
MIN_PDF_TEXT_LENGTH = 100

_PDF_SYNTAX_TOKENS = ("stream", "endstream", "obj", "endobj", "xref", "trailer")
_LATIN_LETTER = re.compile(r"[a-zA-ZáéíóúÁÉÍÓÚñÑ]")
_ASCII_LETTER = re.compile(r"[a-zA-Z]")
_PARENTHESISED = re.compile(r"\(([^)]+)\)")
_ANGLE_BRACKETED = re.compile(r"<([^>]+)>")


class ExtractionError(Exception):
    pass


class ExtractionEmpty(ExtractionError):
    pass


class UnsupportedDocumentError(ExtractionError):
    pass


class PdfExtractionStrategy(Protocol):
    name: str

    def extract(self, path: Path) -> str | None:
        """Return cleaned text, or None when the output is not acceptable."""
        ...


class TextLayerStrategy:
    name = "pdf-text-layer"

    def extract(self, path: Path) -> str | None:
        reader = PdfReader(path)
        pages = [page.extract_text() or "" for page in reader.pages]
        cleaned = clean_text("\n\n".join(pages))
        if len(cleaned) <= MIN_PDF_TEXT_LENGTH:
            return None
        return cleaned


class RawLineStrategy:
    name = "pdf-raw-lines"
    min_lines = 5

    @staticmethod
    def _looks_like_prose(line: str) -> bool:
        return (
            len(line) > 10
            and not line.startswith("%")
            and not any(token in line for token in _PDF_SYNTAX_TOKENS)
            and _LATIN_LETTER.search(line) is not None
            and len(line.split(" ")) > 2
        )

    def extract(self, path: Path) -> str | None:
        decoded = path.read_bytes().decode("utf-8", errors="replace")
        lines = [
            strip_disallowed(line)
            for line in (raw.strip() for raw in decoded.split("\n"))
            if self._looks_like_prose(line)
        ]
        lines = [line for line in lines if line]
        if len(lines) <= self.min_lines:
            return None
        return clean_text("\n".join(lines))


class BracketScrapeStrategy:
    name = "pdf-bracket-scrape"

    def extract(self, path: Path) -> str | None:
        decoded = path.read_bytes().decode("utf-8", errors="replace")
        fragments = _PARENTHESISED.findall(decoded) + _ANGLE_BRACKETED.findall(decoded)
        kept = [
            fragment
            for fragment in fragments
            if len(fragment) > 10 and _ASCII_LETTER.search(fragment) is not None
        ]
        if not kept:
            return None
        return clean_text(" ".join(kept))


DEFAULT_PDF_STRATEGIES: tuple[PdfExtractionStrategy, ...] = (
    TextLayerStrategy(),
    RawLineStrategy(),
    BracketScrapeStrategy(),
)


def extract_pdf(
    path: Path,
    strategies: tuple[PdfExtractionStrategy, ...] = DEFAULT_PDF_STRATEGIES,
) -> ExtractedText:
    for strategy in strategies:
        try:
            text = strategy.extract(path)
        except Exception as exc:
            logger.warning("PDF strategy %s failed for %s: %s", strategy.name, path.name, exc)
            continue

        if text:
            logger.info("PDF %s extracted with %s: %d characters", path.name, strategy.name, len(text))
            return ExtractedText(text=text, method=strategy.name)
        logger.debug("PDF strategy %s produced no usable text for %s", strategy.name, path.name)

    raise ExtractionEmpty(f"No usable text could be extracted from {path.name}")


def _extract_json(path: Path) -> str:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, (dict, list)):
        return json.dumps(data, ensure_ascii=False, indent=2)
    if data is None:
        return "null"
    if isinstance(data, bool):
        return "true" if data else "false"
    return str(data)


def extract_document(path: Path) -> ExtractedText:
    extension = path.suffix.lower()

    if extension == ".txt":
        return ExtractedText(text=path.read_text(encoding="utf-8"), method=DIRECT_METHOD)
    if extension == ".json":
        return ExtractedText(text=_extract_json(path), method=DIRECT_METHOD)
    if extension == ".pdf":
        extracted = extract_pdf(path)
        if len(extracted.text) < MIN_PDF_TEXT_LENGTH:
            raise ExtractionEmpty(
                f"Extracted PDF text too short for {path.name} ({len(extracted.text)} chars)"
            )
        return extracted

    raise UnsupportedDocumentError(f"Unsupported document format: {path.name}")
