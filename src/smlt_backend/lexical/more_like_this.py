"""Selects the "interesting" terms of a source document for a more-like-this query."""

from __future__ import annotations

import math
from collections import Counter
from typing import Callable, Dict, List, Mapping, Sequence, Tuple


class InterestingTermSelector:
    """Scores source terms by tf * idf and keeps the best ``max_query_terms``.

    Terms are picked across all fields together, so a field with many
    distinctive terms can take more of the query than a short one.
    """

    def __init__(
        self,
        *,
        min_term_freq: int = 1,
        min_doc_freq: int = 1,
        max_query_terms: int = 25,
    ) -> None:
        self.min_term_freq = max(1, min_term_freq)
        self.min_doc_freq = max(1, min_doc_freq)
        self.max_query_terms = max(1, max_query_terms)

    def select(
        self,
        field_tokens: Mapping[str, Sequence[str]],
        doc_freq: Callable[[str, str], int],
        num_docs: int,
    ) -> Dict[str, List[str]]:
        """Return field -> selected terms, each list ordered best first."""

        scored: List[Tuple[float, str, str]] = []
        for field_name, tokens in field_tokens.items():
            term_freqs = Counter(token for token in tokens if token)
            for term, tf in term_freqs.items():
                if tf < self.min_term_freq:
                    continue
                df = doc_freq(field_name, term)
                if df < self.min_doc_freq:
                    continue
                scored.append((tf * self.idf(df, num_docs), field_name, term))

        scored.sort(key=lambda item: (-item[0], item[1], item[2]))

        selected: Dict[str, List[str]] = {}
        for _, field_name, term in scored[: self.max_query_terms]:
            selected.setdefault(field_name, []).append(term)
        return selected

    @staticmethod
    def idf(doc_freq: int, num_docs: int) -> float:
        return math.log(max(num_docs, 1) / (doc_freq + 1)) + 1.0
