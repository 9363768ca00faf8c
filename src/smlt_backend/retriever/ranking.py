"""Final ordering and truncation of fused candidates."""

from __future__ import annotations

from typing import Iterable, List

from ..models import ScoredCandidate


def rank_candidates(
    candidates: Iterable[ScoredCandidate],
    *,
    source_internal_id: int,
    count: int,
) -> List[ScoredCandidate]:
    """Drops the source document, sorts by fused score and keeps the top ``count``.

    Equal scores are ordered by ascending internal id so identical input
    always produces identical output.
    """
    if count <= 0:
        return []
    remaining = [candidate for candidate in candidates if candidate.internal_id != source_internal_id]
    remaining.sort(key=lambda candidate: (-candidate.score, candidate.internal_id))
    return remaining[:count]
