from ecoalas.services.rag.answer import AnswerCache, AnswerComposer
from ecoalas.services.rag.query import search_snapshot
from ecoalas.services.rag.service import IngestionOutcome, RagService, RagStatus
from ecoalas.services.rag.types import IngestionSummary, SearchMatch

__all__ = [
    "AnswerCache",
    "AnswerComposer",
    "IngestionOutcome",
    "IngestionSummary",
    "RagService",
    "RagStatus",
    "SearchMatch",
    "search_snapshot",
]
