"""Score normalisation and weighted fusion of the vector and lexical signals."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional

from ..models import ScoredCandidate


def normalize_scores(scores: Mapping[int, float]) -> Dict[int, float]:
    """Max-scales a score map into [0, 1].

    An empty map stays empty and a map whose maximum is not positive is
    returned unchanged; otherwise the best candidate ends up at exactly 1.0.
    """
    if not scores:
        return {}
    max_score = max(scores.values())
    if max_score <= 0:
        return dict(scores)
    return {item_id: score / max_score for item_id, score in scores.items()}


def fuse_scores(
    vector_scores: Optional[Mapping[int, float]],
    lexical_scores: Optional[Mapping[int, float]],
    vector_weight: float,
    lexical_weight: float,
) -> List[ScoredCandidate]:
    """Weighted sum over the union of both signals; a missing signal counts as 0.0."""
    vector_scores = vector_scores or {}
    lexical_scores = lexical_scores or {}

    fused: List[ScoredCandidate] = []
    for item_id in set(vector_scores) | set(lexical_scores):
        vector_component = float(vector_scores.get(item_id, 0.0))
        lexical_component = float(lexical_scores.get(item_id, 0.0))
        fused.append(
            ScoredCandidate(
                internal_id=item_id,
                score=vector_weight * vector_component + lexical_weight * lexical_component,
                vector_score=vector_component,
                lexical_score=lexical_component,
            )
        )
    return fused
