"""In-memory index snapshot: stored fields, vectors and lexical statistics."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from ..config import LexicalSettings
from ..lexical import Analyzer, BM25Index, InterestingTermSelector
from .base import DocumentIndex, Hit
from .filters import MetadataFilter


logger = logging.getLogger(__name__)

VECTORS_KEY = "vectors"


class FieldStats(NamedTuple):
    """Lexical statistics of one stored field across the snapshot."""

    tokens: List[List[str]]
    doc_freqs: Counter
    bm25: BM25Index


def build_lexical_components(lexical: LexicalSettings) -> Tuple[Analyzer, InterestingTermSelector]:
    analyzer = Analyzer(
        stopwords_language=lexical.stopwords_language,
        min_token_length=lexical.min_token_length,
    )
    selector = InterestingTermSelector(
        min_term_freq=lexical.min_term_freq,
        min_doc_freq=lexical.min_doc_freq,
        max_query_terms=lexical.max_query_terms,
    )
    return analyzer, selector


class IndexSnapshot(DocumentIndex):
    """Immutable view over a fixed set of documents.

    Each record is a mapping of stored fields plus an optional ``vectors``
    mapping (vector field -> list of floats). Internal ids are assigned in
    record order and are only meaningful for this snapshot.
    """

    def __init__(
        self,
        records: Iterable[Mapping[str, Any]],
        *,
        id_field: str = "id",
        analyzer: Optional[Analyzer] = None,
        term_selector: Optional[InterestingTermSelector] = None,
    ) -> None:
        self.id_field = id_field
        self._analyzer = analyzer or Analyzer()
        self._term_selector = term_selector or InterestingTermSelector()

        self._documents: List[Dict[str, Any]] = []
        self._vectors: Dict[str, Dict[int, np.ndarray]] = {}
        self._id_lookup: Dict[str, int] = {}

        for record in records:
            stored = {key: value for key, value in record.items() if key != VECTORS_KEY}
            external_id = stored.get(id_field)
            if external_id is None or str(external_id) == "":
                raise ValueError(f"record is missing identifier field '{id_field}'")
            internal_id = len(self._documents)
            self._documents.append(stored)
            # The identifier is expected to be unique; the first document wins.
            self._id_lookup.setdefault(str(external_id), internal_id)

            for field_name, vector in (record.get(VECTORS_KEY) or {}).items():
                if vector is None or len(vector) == 0:
                    continue
                self._vectors.setdefault(field_name, {})[internal_id] = np.asarray(vector, dtype=np.float64)

        # Filled once per field; requests on other threads share this snapshot.
        self._field_stats: Dict[str, FieldStats] = {}
        self._stats_lock = threading.Lock()
        logger.debug(
            "Index snapshot holds %d documents and %d vector fields",
            len(self._documents),
            len(self._vectors),
        )

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        *,
        id_field: str = "id",
        lexical: Optional[LexicalSettings] = None,
    ) -> "IndexSnapshot":
        analyzer, selector = build_lexical_components(lexical or LexicalSettings())
        return cls(records, id_field=id_field, analyzer=analyzer, term_selector=selector)

    # ------------------------------------------------------------------
    # DocumentIndex
    # ------------------------------------------------------------------

    @property
    def document_count(self) -> int:
        return len(self._documents)

    def resolve_document(self, external_id: str) -> Optional[int]:
        return self._id_lookup.get(str(external_id))

    def stored_id(self, internal_id: int) -> str:
        return str(self._documents[internal_id][self.id_field])

    def read_vector(self, internal_id: int, field: str) -> Optional[List[float]]:
        vector = self._vectors.get(field, {}).get(internal_id)
        return vector.tolist() if vector is not None else None

    def vector_query(
        self,
        field: str,
        query_vector: Sequence[float],
        k: int,
        filter: Optional[MetadataFilter],
    ) -> List[Hit]:
        rows = self._vectors.get(field)
        if k <= 0 or not rows:
            return []
        query = np.asarray(query_vector, dtype=np.float64)
        query_norm = float(np.linalg.norm(query))
        if query_norm == 0:
            return []

        hits: List[Hit] = []
        for internal_id, vector in rows.items():
            if vector.shape != query.shape:
                continue
            if filter is not None and not filter.matches(self._documents[internal_id]):
                continue
            norm = float(np.linalg.norm(vector))
            if norm == 0:
                continue
            cosine = float(np.dot(query, vector)) / (query_norm * norm)
            # Same mapping Lucene applies to cosine similarity: [-1, 1] -> [0, 1].
            hits.append((internal_id, (1.0 + cosine) / 2.0))

        hits.sort(key=lambda item: (-item[1], item[0]))
        return hits[:k]

    def lexical_query(
        self,
        source_internal_id: int,
        fields: Sequence[str],
        exclude_external_id: str,
        filter: Optional[MetadataFilter],
        k: int,
    ) -> List[Hit]:
        if k <= 0 or not fields:
            return []

        stats = {field_name: self._stats(field_name) for field_name in fields}
        source_tokens = {
            field_name: field_stats.tokens[source_internal_id] for field_name, field_stats in stats.items()
        }
        query_terms = self._term_selector.select(
            source_tokens,
            lambda field_name, term: stats[field_name].doc_freqs.get(term, 0),
            self.document_count,
        )
        if not query_terms:
            return []

        totals: Dict[int, float] = {}
        for field_name, terms in query_terms.items():
            for internal_id, score in stats[field_name].bm25.query(terms):
                totals[internal_id] = totals.get(internal_id, 0.0) + score

        hits = [
            (internal_id, score)
            for internal_id, score in totals.items()
            if self.stored_id(internal_id) != exclude_external_id
            and (filter is None or filter.matches(self._documents[internal_id]))
        ]
        hits.sort(key=lambda item: (-item[1], item[0]))
        return hits[:k]

    def fetch_stored_fields(self, internal_id: int, field_names: Sequence[str]) -> Dict[str, Any]:
        document = self._documents[internal_id]
        values: Dict[str, Any] = {}
        for name in field_names:
            value = document.get(name)
            if value is None:
                continue
            values[name] = list(value) if isinstance(value, (list, tuple)) else value
        return values

    # ------------------------------------------------------------------
    # Lexical statistics, built per field on first use
    # ------------------------------------------------------------------

    def _stats(self, field_name: str) -> FieldStats:
        stats = self._field_stats.get(field_name)
        if stats is not None:
            return stats
        with self._stats_lock:
            stats = self._field_stats.get(field_name)
            if stats is None:
                stats = self._build_field_stats(field_name)
                self._field_stats[field_name] = stats
            return stats

    def _build_field_stats(self, field_name: str) -> FieldStats:
        tokens = self._analyzer.tokenize_all(doc.get(field_name) for doc in self._documents)
        doc_freqs: Counter = Counter()
        for document_tokens in tokens:
            doc_freqs.update(set(document_tokens))
        bm25 = BM25Index()
        bm25.build(tokens)
        return FieldStats(tokens=tokens, doc_freqs=doc_freqs, bm25=bm25)
