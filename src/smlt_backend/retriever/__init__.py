"""Retrieval-fusion building blocks."""

from .candidates import (
    CandidateRetriever,
    LexicalCandidateRetriever,
    RetrievalContext,
    VectorCandidateRetriever,
)
from .filters import build_combined_filter
from .fusion import fuse_scores, normalize_scores
from .projection import project_results
from .ranking import rank_candidates

__all__ = [
    "CandidateRetriever",
    "LexicalCandidateRetriever",
    "RetrievalContext",
    "VectorCandidateRetriever",
    "build_combined_filter",
    "fuse_scores",
    "normalize_scores",
    "project_results",
    "rank_candidates",
]
