"""Per-signal candidate retrieval.

Both signals share one interface so the pipeline can run a fixed list of
retrievers whatever the fusion mode.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

from ..index.base import DocumentIndex
from ..index.filters import MetadataFilter
from ..models import DocumentRef, FusionMode, RequestConfig, ScoreMap
from ..observer import PipelineObserver


@dataclass(frozen=True)
class RetrievalContext:
    """Everything a retriever needs for one request."""

    index: DocumentIndex
    config: RequestConfig
    source: DocumentRef
    filter: Optional[MetadataFilter]
    observer: PipelineObserver


class CandidateRetriever(ABC):
    """One similarity signal."""

    signal: str = ""

    @abstractmethod
    def applies_to(self, mode: FusionMode) -> bool:
        pass

    @abstractmethod
    def retrieve(self, context: RetrievalContext) -> ScoreMap:
        """Raw scores keyed by internal id; never contains the source document."""
        pass


class VectorCandidateRetriever(CandidateRetriever):
    """Nearest neighbours of the source document's stored vector."""

    signal = "vector"

    def applies_to(self, mode: FusionMode) -> bool:
        return mode.uses_vector

    def retrieve(self, context: RetrievalContext) -> ScoreMap:
        config = context.config
        vector = context.index.read_vector(context.source.internal_id, config.vector_field)
        if vector is None or len(vector) == 0:
            context.observer.vector_missing(context.source, config.vector_field)
            return {}

        hits = context.index.vector_query(
            config.vector_field,
            vector,
            config.candidate_count,
            context.filter,
        )
        scores: Dict[int, float] = {}
        for internal_id, score in hits:
            if internal_id != context.source.internal_id:
                scores[internal_id] = float(score)
        return scores


class LexicalCandidateRetriever(CandidateRetriever):
    """Documents sharing terms with the source document ("more like this")."""

    signal = "lexical"

    def applies_to(self, mode: FusionMode) -> bool:
        return mode.uses_lexical

    def retrieve(self, context: RetrievalContext) -> ScoreMap:
        config = context.config
        hits = context.index.lexical_query(
            context.source.internal_id,
            config.lexical_fields,
            context.source.external_id,
            context.filter,
            config.candidate_count,
        )
        return {
            internal_id: float(score)
            for internal_id, score in hits
            if internal_id != context.source.internal_id
        }


DEFAULT_RETRIEVERS = (VectorCandidateRetriever(), LexicalCandidateRetriever())
