"""Index snapshot loaded from ChromaDB collections."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from ..config import ChromaSettings, LexicalSettings, SmltDefaults
from ..dense import ChromaCollectionManager
from ..errors import IndexAccessError
from .base import Hit
from .filters import MetadataFilter
from .provider import SnapshotProvider
from .snapshot import VECTORS_KEY, IndexSnapshot, build_lexical_components


logger = logging.getLogger(__name__)

CONTENT_FIELD = "content"
MULTIVALUED_KEY = "_multivalued"
MULTIVALUE_SEPARATOR = " | "


def joined_fields(metadata: Optional[Mapping[str, Any]]) -> List[str]:
    """Names of the fields this record stores as one joined string."""
    if not metadata:
        return []
    listed = metadata.get(MULTIVALUED_KEY) or ""
    return [name.strip() for name in str(listed).split(",") if name.strip()]


def restore_metadata(metadata: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Undo the flattening Chroma metadata needs: split joined multi-valued fields."""
    if not metadata:
        return {}
    restored = {key: value for key, value in metadata.items() if key != MULTIVALUED_KEY}
    for key in joined_fields(metadata):
        value = restored.get(key)
        if isinstance(value, str):
            restored[key] = [item for item in value.split(MULTIVALUE_SEPARATOR) if item != ""]
    return restored


class ChromaIndexSnapshot(IndexSnapshot):
    """Snapshot whose vector signal is answered by Chroma's ANN index.

    Stored fields, lexical statistics and the source vectors are read once at
    load time. Neighbours Chroma returns that are not part of the loaded
    snapshot are ignored, so one request never mixes two index states.

    Chroma only sees the joined string of a multi-valued field, so filters on
    such fields are answered from the loaded snapshot instead.
    """

    def __init__(
        self,
        records: Sequence[Mapping[str, Any]],
        *,
        vector_managers: Mapping[str, ChromaCollectionManager],
        content_field: str = CONTENT_FIELD,
        multivalued_fields: Iterable[str] = (),
        **kwargs: Any,
    ) -> None:
        super().__init__(records, **kwargs)
        self._vector_managers = dict(vector_managers)
        self._content_field = content_field
        self._multivalued_fields = frozenset(multivalued_fields)

    @classmethod
    def load(
        cls,
        primary: ChromaCollectionManager,
        vector_managers: Mapping[str, ChromaCollectionManager],
        *,
        id_field: str = "id",
        content_field: str = CONTENT_FIELD,
        lexical: Optional[LexicalSettings] = None,
    ) -> "ChromaIndexSnapshot":
        try:
            stored = primary.get_all(include=["documents", "metadatas"])
            records: List[Dict[str, Any]] = []
            positions: Dict[str, int] = {}
            multivalued: Set[str] = set()
            for record_id, text, metadata in zip(stored["ids"], stored["documents"], stored["metadatas"]):
                record = restore_metadata(metadata)
                multivalued.update(joined_fields(metadata))
                record[id_field] = record_id
                if text is not None:
                    record[content_field] = text
                positions.setdefault(record_id, len(records))
                records.append(record)

            for field_name, manager in vector_managers.items():
                embedded = manager.get_all(include=["embeddings"])
                for record_id, embedding in zip(embedded["ids"], embedded["embeddings"]):
                    position = positions.get(record_id)
                    if position is None or embedding is None:
                        continue
                    records[position].setdefault(VECTORS_KEY, {})[field_name] = list(embedding)
        except Exception as exc:
            raise IndexAccessError(f"Failed to load snapshot from Chroma: {exc}") from exc

        analyzer, selector = build_lexical_components(lexical or LexicalSettings())
        return cls(
            records,
            vector_managers=vector_managers,
            content_field=content_field,
            multivalued_fields=multivalued,
            id_field=id_field,
            analyzer=analyzer,
            term_selector=selector,
        )

    def vector_query(
        self,
        field: str,
        query_vector: Sequence[float],
        k: int,
        filter: Optional[MetadataFilter],
    ) -> List[Hit]:
        manager = self._vector_managers.get(field)
        if manager is None or k <= 0:
            return super().vector_query(field, query_vector, k, filter)

        where: Optional[Dict[str, Any]] = None
        if filter is not None:
            where = filter.to_where()
            not_in_metadata = {self.id_field, self._content_field} | self._multivalued_fields
            if where is None or not_in_metadata.intersection(filter.fields()):
                # Chroma cannot evaluate this filter; rank the loaded vectors exactly instead.
                logger.debug("Filter %r not expressible in Chroma; using exact vector search", filter)
                return super().vector_query(field, query_vector, k, filter)

        try:
            result = manager.query(
                query_embeddings=[query_vector],
                n_results=k,
                where=where,
                include=["distances"],
            )
        except Exception as exc:
            raise IndexAccessError(f"Chroma vector query on '{field}' failed: {exc}") from exc

        ids = (result.get("ids") or [[]])[0]
        distances = (result.get("distances") or [[]])[0]
        hits: List[Hit] = []
        for record_id, distance in zip(ids, distances):
            internal_id = self.resolve_document(record_id)
            if internal_id is None or distance is None:
                continue
            # Bounded similarity regardless of the collection's distance metric.
            hits.append((internal_id, 1.0 / (1.0 + float(distance))))
        hits.sort(key=lambda item: (-item[1], item[0]))
        return hits[:k]


class ChromaSnapshotProvider(SnapshotProvider):
    """Loads :class:`ChromaIndexSnapshot` instances from a Chroma server."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        chroma: ChromaSettings,
        defaults: SmltDefaults,
        lexical: LexicalSettings,
    ) -> None:
        super().__init__()
        self._host = host
        self._port = port
        self._chroma = chroma
        self._defaults = defaults
        self._lexical = lexical
        self._managers: Dict[str, ChromaCollectionManager] = {}

    def _manager(self, collection_name: str) -> ChromaCollectionManager:
        manager = self._managers.get(collection_name)
        if manager is None:
            manager = ChromaCollectionManager(
                host=self._host,
                port=self._port,
                collection_name=collection_name,
                max_retries=self._chroma.max_retries,
                retry_delay=self._chroma.retry_delay,
            )
            self._managers[collection_name] = manager
        return manager

    def _load(self) -> ChromaIndexSnapshot:
        primary = self._manager(self._chroma.collection_name)
        vector_managers = {
            field_name: self._manager(collection_name)
            for field_name, collection_name in self._chroma.vector_collections.items()
        }
        return ChromaIndexSnapshot.load(
            primary,
            vector_managers,
            id_field=self._defaults.id_field,
            lexical=self._lexical,
        )
