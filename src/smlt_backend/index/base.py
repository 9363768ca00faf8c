"""
Interface the SMLT pipeline consumes from the search index / document store.
One instance stands for a single immutable index snapshot.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .filters import MetadataFilter, parse_filter_expression

Hit = Tuple[int, float]  # (internal id, raw score), larger is more similar


class DocumentIndex(ABC):
    """Abstract base class for index snapshots the pipeline can search."""

    @abstractmethod
    def resolve_document(self, external_id: str) -> Optional[int]:
        """Return the internal id of the document with this identifier, or None."""
        pass

    @abstractmethod
    def stored_id(self, internal_id: int) -> str:
        """Return the external identifier stored for an internal id."""
        pass

    @abstractmethod
    def read_vector(self, internal_id: int, field: str) -> Optional[Sequence[float]]:
        """Return the document's vector for ``field``, or None if it has none."""
        pass

    @abstractmethod
    def vector_query(
        self,
        field: str,
        query_vector: Sequence[float],
        k: int,
        filter: Optional[MetadataFilter],
    ) -> List[Hit]:
        """Nearest neighbours of ``query_vector`` in ``field``, best first."""
        pass

    @abstractmethod
    def lexical_query(
        self,
        source_internal_id: int,
        fields: Sequence[str],
        exclude_external_id: str,
        filter: Optional[MetadataFilter],
        k: int,
    ) -> List[Hit]:
        """
        Documents sharing terms with the source document in ``fields``,
        excluding ``exclude_external_id``, best first.
        """
        pass

    @abstractmethod
    def fetch_stored_fields(self, internal_id: int, field_names: Sequence[str]) -> Dict[str, Any]:
        """
        Stored values for the requested fields. Multi-valued fields come back
        as lists; fields the document does not have are left out.
        """
        pass

    def parse_filter(self, expression: str) -> MetadataFilter:
        """Parse a caller filter expression; raises FilterParseError."""
        return parse_filter_expression(expression)

    @property
    @abstractmethod
    def document_count(self) -> int:
        pass
