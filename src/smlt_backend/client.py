"""HTTP client for the ``/smlt`` endpoint with an empty-result fallback."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence, Tuple

import requests

from .models import FusionMode
from .telemetry.metrics import metrics

logger = logging.getLogger(__name__)

RESPONSE_KEY = "semanticMoreLikeThis"


def empty_response(document_id: str, mode: str) -> Dict[str, Any]:
    return {"sourceId": document_id, "mode": mode, "numFound": 0, "docs": []}


class SmltClient:
    """Fetches related documents for page rendering.

    Related content is decoration: any transport failure or unexpected
    response is logged and turned into an empty result.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        auth: Optional[Tuple[str, str]] = None,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._auth = auth
        self._session = session or requests.Session()

    def find_similar(
        self,
        document_id: str,
        count: int = 5,
        mode: str = FusionMode.HYBRID.value,
        vector_weight: float = 0.7,
        lexical_weight: float = 0.3,
        filter_queries: Sequence[str] = (),
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "smlt": "true",
            "smlt.id": document_id,
            "smlt.count": count,
            "smlt.mode": mode,
            "smlt.vectorWeight": vector_weight,
            "smlt.lexicalWeight": lexical_weight,
        }
        if filter_queries:
            params["fq"] = list(filter_queries)

        url = f"{self.base_url}/smlt"
        try:
            response = self._session.get(url, params=params, timeout=self.timeout, auth=self._auth)
        except requests.RequestException as exc:
            logger.error("SMLT request failed for document %s: %s", document_id, exc)
            metrics.increment("smlt.client.errors")
            return empty_response(document_id, mode)

        if response.status_code != 200:
            logger.warning(
                "SMLT request returned HTTP %d for document %s",
                response.status_code,
                document_id,
            )
            metrics.increment("smlt.client.http_errors", status=response.status_code)
            return empty_response(document_id, mode)

        try:
            body = response.json()
        except ValueError:
            logger.warning("SMLT response for document %s is not valid JSON", document_id)
            return empty_response(document_id, mode)

        if not isinstance(body, dict) or not isinstance(body.get(RESPONSE_KEY), dict):
            return empty_response(document_id, mode)
        return body[RESPONSE_KEY]
