"""Maps ranked candidates to the records returned to callers."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from ..index.base import DocumentIndex
from ..models import FusionMode, ScoredCandidate, SmltResult


def _project_value(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        items = [item for item in value if item is not None]
        if not items:
            return None
        return items[0] if len(items) == 1 else items
    return value


def project_document(
    index: DocumentIndex,
    candidate: ScoredCandidate,
    return_fields: Sequence[str],
) -> Dict[str, Any]:
    stored = index.fetch_stored_fields(candidate.internal_id, return_fields)
    document: Dict[str, Any] = {}
    for name in return_fields:
        value = _project_value(stored.get(name))
        if value is not None:
            document[name] = value
    document["score"] = candidate.score
    document["vectorScore"] = candidate.vector_score
    document["lexicalScore"] = candidate.lexical_score
    return document


def project_results(
    index: DocumentIndex,
    ranked: Sequence[ScoredCandidate],
    *,
    source_id: str,
    mode: FusionMode,
    return_fields: Sequence[str],
) -> SmltResult:
    docs: List[Dict[str, Any]] = [
        project_document(index, candidate, return_fields) for candidate in ranked
    ]
    return SmltResult(sourceId=source_id, mode=mode.value, numFound=len(docs), docs=docs)
