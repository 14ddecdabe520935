from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class SourceDocument:
    name: str
    path: Path


@dataclass(frozen=True)
class ExtractedText:
    text: str
    method: str


@dataclass(frozen=True)
class PassageSet:
    original_name: str
    passages: tuple[str, ...]
    method: str
    total_characters: int
    processed_at: str

    @property
    def total_chunks(self) -> int:
        return len(self.passages)


@dataclass(frozen=True)
class Posting:
    document: str
    chunk_index: int


@dataclass(frozen=True)
class SearchMatch:
    document: str
    chunk_index: int
    text: str
    score: int
    matched_terms: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class IngestionSummary:
    discovered: int
    succeeded: int
    chunk_count: int
    chunks_dir: str
