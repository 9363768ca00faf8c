"""Holders for the index snapshot requests run against."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Optional

from ..telemetry.metrics import metrics
from .base import DocumentIndex


logger = logging.getLogger(__name__)


class SnapshotProvider(ABC):
    """Loads a snapshot lazily and swaps it atomically on refresh.

    A request must call ``current()`` once and use the returned snapshot for
    every step, so a concurrent refresh never mixes two snapshots.
    """

    def __init__(self) -> None:
        self._snapshot: Optional[DocumentIndex] = None
        self._lock = threading.Lock()

    def current(self) -> DocumentIndex:
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot
        with self._lock:
            if self._snapshot is None:
                self._snapshot = self._timed_load()
            return self._snapshot

    def refresh(self) -> DocumentIndex:
        with self._lock:
            self._snapshot = self._timed_load()
            return self._snapshot

    def _timed_load(self) -> DocumentIndex:
        with metrics.timer("smlt.snapshot.load"):
            snapshot = self._load()
        logger.info("Loaded index snapshot with %d documents", snapshot.document_count)
        return snapshot

    @abstractmethod
    def _load(self) -> DocumentIndex:
        pass


class StaticSnapshotProvider(SnapshotProvider):
    """Serves a snapshot that was built up front (in-process corpora, tests)."""

    def __init__(self, snapshot: DocumentIndex) -> None:
        super().__init__()
        self._static = snapshot

    def _load(self) -> DocumentIndex:
        return self._static
