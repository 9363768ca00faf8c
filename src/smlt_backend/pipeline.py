"""Semantic More Like This: hybrid vector + lexical similar-document retrieval."""

from __future__ import annotations

from typing import Dict, Optional, Sequence

from .index.base import DocumentIndex
from .models import DocumentRef, RequestConfig, ScoreMap, SmltResult
from .observer import PipelineObserver
from .retriever.candidates import DEFAULT_RETRIEVERS, CandidateRetriever, RetrievalContext
from .retriever.filters import build_combined_filter
from .retriever.fusion import fuse_scores, normalize_scores
from .retriever.projection import project_results
from .retriever.ranking import rank_candidates
from .telemetry import metrics


class SemanticMoreLikeThis:
    """Runs one similar-documents request against a single index snapshot.

    resolve source -> build filter -> retrieve per signal -> normalise ->
    fuse -> rank -> project. Index failures propagate to the caller.
    """

    def __init__(
        self,
        index: DocumentIndex,
        *,
        observer: Optional[PipelineObserver] = None,
        retrievers: Sequence[CandidateRetriever] = DEFAULT_RETRIEVERS,
    ) -> None:
        self.index = index
        self.observer = observer or PipelineObserver()
        self.retrievers = tuple(retrievers)

    def run(self, config: RequestConfig) -> SmltResult:
        with metrics.timer("smlt.request", mode=config.mode.value):
            result = self._run(config)
        self.observer.request_completed(config, result)
        return result

    def _run(self, config: RequestConfig) -> SmltResult:
        internal_id = self.index.resolve_document(config.source_id)
        if internal_id is None:
            self.observer.source_not_found(config)
            return SmltResult.empty(config.source_id, config.mode)
        source = DocumentRef(external_id=config.source_id, internal_id=internal_id)

        combined_filter = build_combined_filter(
            config.filter_queries, self.index.parse_filter, self.observer
        )
        context = RetrievalContext(
            index=self.index,
            config=config,
            source=source,
            filter=combined_filter,
            observer=self.observer,
        )

        signals: Dict[str, ScoreMap] = {}
        for retriever in self.retrievers:
            if not retriever.applies_to(config.mode):
                continue
            raw_scores = retriever.retrieve(context)
            self.observer.signal_retrieved(config, retriever.signal, len(raw_scores))
            signals[retriever.signal] = normalize_scores(raw_scores)

        vector_weight, lexical_weight = config.mode.effective_weights(
            config.vector_weight, config.lexical_weight
        )
        fused = fuse_scores(
            signals.get("vector"),
            signals.get("lexical"),
            vector_weight,
            lexical_weight,
        )
        ranked = rank_candidates(fused, source_internal_id=internal_id, count=config.count)
        return project_results(
            self.index,
            ranked,
            source_id=config.source_id,
            mode=config.mode,
            return_fields=config.return_fields,
        )


def find_similar(
    index: DocumentIndex,
    config: RequestConfig,
    observer: Optional[PipelineObserver] = None,
) -> SmltResult:
    """Convenience wrapper for a single request."""
    return SemanticMoreLikeThis(index, observer=observer).run(config)
