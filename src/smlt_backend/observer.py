"""Pipeline event hooks.

The retrieval and fusion code never logs directly; it reports to an observer
so the pure parts stay easy to test and hosts choose what to record.
"""

from __future__ import annotations

import logging

from .errors import FilterParseError
from .models import DocumentRef, RequestConfig, SmltResult
from .telemetry import metrics, sanitize_text


class PipelineObserver:
    """No-op observer; subclasses override the events they care about."""

    def source_not_found(self, config: RequestConfig) -> None:
        pass

    def filter_rejected(self, expression: str, error: FilterParseError) -> None:
        pass

    def vector_missing(self, source: DocumentRef, field: str) -> None:
        pass

    def signal_retrieved(self, config: RequestConfig, signal: str, candidates: int) -> None:
        pass

    def request_completed(self, config: RequestConfig, result: SmltResult) -> None:
        pass


class LoggingObserver(PipelineObserver):
    """Reports pipeline events through logging and the metrics emitter."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("smlt_backend.pipeline")

    def source_not_found(self, config: RequestConfig) -> None:
        self._logger.info("Source document '%s' not found; returning empty result", sanitize_text(config.source_id))
        metrics.increment("smlt.source.missing")

    def filter_rejected(self, expression: str, error: FilterParseError) -> None:
        self._logger.warning("Ignoring filter '%s': %s", sanitize_text(expression), error.reason)
        metrics.increment("smlt.filter.rejected")

    def vector_missing(self, source: DocumentRef, field: str) -> None:
        self._logger.info(
            "Source document '%s' has no vector in field '%s'; vector signal is empty",
            sanitize_text(source.external_id),
            field,
        )
        metrics.increment("smlt.vector.missing", field=field)

    def signal_retrieved(self, config: RequestConfig, signal: str, candidates: int) -> None:
        self._logger.debug("%s signal returned %d candidates", signal, candidates)
        metrics.observe("smlt.signal.candidates", candidates, signal=signal, mode=config.mode.value)

    def request_completed(self, config: RequestConfig, result: SmltResult) -> None:
        self._logger.debug(
            "SMLT for '%s' (%s) returned %d documents",
            sanitize_text(config.source_id),
            config.mode.value,
            result.num_found,
        )
        metrics.observe("smlt.results", result.num_found, mode=config.mode.value)
