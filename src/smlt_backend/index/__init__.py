"""Index snapshots the SMLT pipeline searches (external collaborators)."""

from .base import DocumentIndex, Hit
from .filters import MetadataFilter, parse_filter_expression
from .provider import SnapshotProvider, StaticSnapshotProvider
from .snapshot import IndexSnapshot

__all__ = [
    "DocumentIndex",
    "Hit",
    "IndexSnapshot",
    "MetadataFilter",
    "SnapshotProvider",
    "StaticSnapshotProvider",
    "parse_filter_expression",
]
