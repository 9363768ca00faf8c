"""ChromaDB client wrapper with connection management and retries."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Sequence

import chromadb
from chromadb.api.models.Collection import Collection


logger = logging.getLogger(__name__)

GET_PAGE_SIZE = 1000


class ChromaCollectionManager:
    """Thin wrapper around the read side of one ChromaDB collection."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        collection_name: str,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        self._host = host
        self._port = port
        self._collection_name = collection_name
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay

        self._client: Optional[chromadb.HttpClient] = None
        self._collection: Optional[Collection] = None
        self._connect()

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._collection_name

    @property
    def collection(self) -> Collection:
        if not self._collection:
            raise RuntimeError("Chroma collection not initialised")
        return self._collection

    def ensure_connection(self) -> None:
        """Make sure the client/collection are alive and reconnect when needed."""
        try:
            if self._client and self._collection:
                self._client.heartbeat()
                self._collection.count()
                return
        except Exception as exc:  # pragma: no cover - network path
            logger.warning("Chroma heartbeat failed (%s); reconnecting", exc)

        self._connect()

    def query(
        self,
        *,
        query_embeddings: Iterable[Sequence[float]],
        n_results: int,
        where: Optional[Dict[str, Any]] = None,
        include: Sequence[str] = ("distances",),
    ) -> Dict[str, Any]:
        self.ensure_connection()
        query_args: Dict[str, Any] = {
            "query_embeddings": [list(vector) for vector in query_embeddings],
            "n_results": n_results,
            "include": list(include),
        }
        if where:
            query_args["where"] = where
        try:
            return self.collection.query(**query_args)
        except Exception as exc:
            logger.error("Chroma query on '%s' failed: %s", self._collection_name, exc)
            self.ensure_connection()
            return self.collection.query(**query_args)

    def get_all(self, *, include: Sequence[str]) -> Dict[str, List[Any]]:
        """Page through the whole collection; returns ids plus the included columns."""
        self.ensure_connection()
        total = self.collection.count()
        merged: Dict[str, List[Any]] = {"ids": []}
        for column in include:
            merged[column] = []

        for offset in range(0, total, GET_PAGE_SIZE):
            page = self.collection.get(limit=GET_PAGE_SIZE, offset=offset, include=list(include))
            merged["ids"].extend(page.get("ids") or [])
            for column in include:
                values = page.get(column)
                if values is None:
                    values = [None] * len(page.get("ids") or [])
                merged[column].extend(list(values))

        logger.debug("Fetched %d records from Chroma collection '%s'", len(merged["ids"]), self._collection_name)
        return merged

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _connect(self) -> None:
        delay = self._retry_delay
        for attempt in range(1, self._max_retries + 1):
            try:
                self._client = chromadb.HttpClient(host=self._host, port=self._port)
                self._client.heartbeat()
                self._collection = self._client.get_or_create_collection(name=self._collection_name)
                logger.info(
                    "ChromaDB collection '%s' connected on attempt %d/%d",
                    self._collection_name,
                    attempt,
                    self._max_retries,
                )
                return
            except Exception as exc:  # pragma: no cover - network path
                logger.warning(
                    "Chroma connection attempt %d/%d failed: %s",
                    attempt,
                    self._max_retries,
                    exc,
                )
                if attempt == self._max_retries:
                    logger.error("Unable to connect to ChromaDB after %d attempts", attempt)
                    raise
                time.sleep(delay)
                delay *= 2
