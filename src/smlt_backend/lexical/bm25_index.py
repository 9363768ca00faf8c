"""Field-level BM25 index over one snapshot's documents."""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional, Sequence, Tuple

from rank_bm25 import BM25Okapi


logger = logging.getLogger(__name__)


class PositiveIdfBM25(BM25Okapi):
    """BM25Okapi with Lucene's IDF, ``log(1 + (N - n + 0.5) / (n + 0.5))``.

    The Okapi IDF drops to zero or below once a term is held by half the
    corpus; this one stays positive, so every shared term raises a score and
    a document without any query term still scores exactly 0.
    """

    def _calc_idf(self, nd):
        for word, freq in nd.items():
            self.idf[word] = math.log(1.0 + (self.corpus_size - freq + 0.5) / (freq + 0.5))


class BM25Index:
    """BM25 wrapper returning raw scores keyed by internal document id."""

    def __init__(self) -> None:
        self._doc_ids: List[int] = []
        self._bm25: PositiveIdfBM25 | None = None

    def build(self, corpus_tokens: Iterable[Iterable[str]], doc_ids: Optional[Iterable[int]] = None) -> None:
        corpus = [list(tokens) for tokens in corpus_tokens]
        if doc_ids is not None:
            ids_list = list(doc_ids)
            if len(ids_list) != len(corpus):
                raise ValueError("doc_ids length must match corpus size")
            self._doc_ids = ids_list
        else:
            self._doc_ids = list(range(len(corpus)))

        # BM25 divides by the average document length.
        self._bm25 = PositiveIdfBM25(corpus) if any(corpus) else None
        logger.debug("BM25 index built with %d documents", len(corpus))

    def scores(self, query_tokens: Sequence[str]) -> List[float]:
        """Raw BM25 score of every document, aligned with the build order."""
        if self._bm25 is None or not query_tokens:
            return [0.0] * len(self._doc_ids)
        return [float(score) for score in self._bm25.get_scores(list(query_tokens))]

    def query(self, query_tokens: Sequence[str]) -> List[Tuple[int, float]]:
        """Return (doc_id, score) pairs for documents holding a query term, best first."""
        scored = [
            (doc_id, score)
            for doc_id, score in zip(self._doc_ids, self.scores(query_tokens))
            if score > 0
        ]
        return sorted(scored, key=lambda item: (-item[1], item[0]))
