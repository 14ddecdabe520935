from __future__ import annotations

from dataclasses import dataclass, field
import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from ecoalas.services.rag.chunker import MIN_PASSAGE_LENGTH
from ecoalas.services.rag.normalizer import tokenize
from ecoalas.services.rag.types import PassageSet, Posting

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CorpusSnapshot:
    """Corpus and inverted index built together and never mutated afterwards."""

    passages: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: MappingProxyType({}))
    index: Mapping[str, tuple[Posting, ...]] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def document_count(self) -> int:
        return len(self.passages)

    @property
    def passage_count(self) -> int:
        return sum(len(passages) for passages in self.passages.values())

    def passage(self, document: str, chunk_index: int) -> str | None:
        passages = self.passages.get(document)
        if passages is None or not 0 <= chunk_index < len(passages):
            return None
        return passages[chunk_index]


def build_inverted_index(corpus: Mapping[str, tuple[str, ...]]) -> dict[str, tuple[Posting, ...]]:
    postings: dict[str, list[Posting]] = {}
    for document, passages in corpus.items():
        for chunk_index, passage in enumerate(passages):
            for term in tokenize(passage):
                postings.setdefault(term, []).append(Posting(document=document, chunk_index=chunk_index))

    return {term: tuple(entries) for term, entries in postings.items()}


def build_corpus(passage_sets: Iterable[PassageSet]) -> dict[str, tuple[str, ...]]:
    corpus: dict[str, tuple[str, ...]] = {}
    for passage_set in passage_sets:
        valid = tuple(passage for passage in passage_set.passages if len(passage) > MIN_PASSAGE_LENGTH)
        if not valid:
            continue
        corpus[passage_set.original_name] = valid
        logger.info("Loaded %s: %d passages", passage_set.original_name, len(valid))
    return corpus


def build_snapshot(corpus: Mapping[str, tuple[str, ...]]) -> CorpusSnapshot:
    frozen_corpus = dict(corpus)
    index = build_inverted_index(frozen_corpus) if frozen_corpus else {}
    logger.info("Inverted index built with %d terms", len(index))
    return CorpusSnapshot(
        passages=MappingProxyType(frozen_corpus),
        index=MappingProxyType(index),
    )
