from __future__ import annotations

import logging

from ecoalas.services.rag.index import CorpusSnapshot
from ecoalas.services.rag.normalizer import clean_text, tokenize
from ecoalas.services.rag.types import SearchMatch

logger = logging.getLogger(__name__)

MAX_MATCH_TEXT = 1200


def search_snapshot(snapshot: CorpusSnapshot, query_text: str, *, limit: int = 8) -> list[SearchMatch]:
    terms = tokenize(clean_text(query_text))
    if not terms or not snapshot.index:
        return []

    logger.debug("Searching %r with terms %s", query_text, sorted(terms))

    hits: dict[tuple[str, int], list[str]] = {}
    for term in sorted(terms):
        for posting in snapshot.index.get(term, ()):
            hits.setdefault((posting.document, posting.chunk_index), []).append(term)

    matches: list[SearchMatch] = []
    for (document, chunk_index), matched in hits.items():
        text = snapshot.passage(document, chunk_index)
        if text is None:
            continue
        hit_count = len(matched)
        matches.append(
            SearchMatch(
                document=document,
                chunk_index=chunk_index,
                text=text[:MAX_MATCH_TEXT],
                score=hit_count * 10 + len(matched),
                matched_terms=list(dict.fromkeys(matched)),
            )
        )

    matches.sort(key=lambda match: match.score, reverse=True)
    return matches[: max(0, limit)]
