from __future__ import annotations

import logging
import re

from ecoalas.services.rag.normalizer import clean_text

logger = logging.getLogger(__name__)

MIN_PASSAGE_LENGTH = 50
RETAIN_RATIO = 0.3

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")


def _overlap_tail(chunk: str, chunk_overlap: int) -> str:
    word_count = chunk_overlap // 10
    if word_count <= 0:
        return ""
    return " ".join(chunk.split(" ")[-word_count:])


def chunk_text(text: str, *, chunk_size: int = 1000, chunk_overlap: int = 200) -> list[str]:
    """Split text into passages along paragraph, then sentence, boundaries.

    Running chunks that never reach ``RETAIN_RATIO`` of ``chunk_size`` are
    replaced rather than emitted, and the result never contains passages of
    ``MIN_PASSAGE_LENGTH`` characters or fewer.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")
    if chunk_overlap < 0:
        raise ValueError("chunk_overlap must be >= 0")

    if not text or not text.strip():
        return []

    cleaned = clean_text(text)
    if len(cleaned) <= chunk_size:
        return [cleaned]

    threshold = chunk_size * RETAIN_RATIO
    chunks: list[str] = []
    current = ""

    paragraphs = [part.strip() for part in _PARAGRAPH_BREAK.split(cleaned) if part.strip()]
    for paragraph in paragraphs:
        if len(paragraph) > chunk_size:
            sentences = [sentence for sentence in _SENTENCE_BREAK.split(paragraph) if sentence]
            for sentence in sentences:
                if len(f"{current} {sentence}") <= chunk_size:
                    current = f"{current} {sentence}" if current else sentence
                elif len(current) >= threshold:
                    chunks.append(current)
                    tail = _overlap_tail(current, chunk_overlap)
                    current = f"{tail} {sentence}" if tail else sentence
                else:
                    current = sentence
            continue

        if len(f"{current}\n\n{paragraph}") <= chunk_size:
            current = f"{current}\n\n{paragraph}" if current else paragraph
        else:
            # An undersized running chunk is dropped in favour of the new paragraph.
            if len(current) >= threshold:
                chunks.append(current)
            current = paragraph

    if len(current) >= threshold:
        chunks.append(current)

    passages = [chunk for chunk in chunks if len(chunk) > MIN_PASSAGE_LENGTH]
    logger.debug("Generated %d passages from %d characters", len(passages), len(cleaned))
    return passages
