"""Structured-log metrics for SMLT requests and snapshot loads."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict


class MetricsEmitter:
    """Writes ``metric.<kind>`` log records carrying a ``metric_payload`` extra.

    Disabled until :meth:`configure` turns it on from the telemetry config.
    """

    def __init__(self, logger_name: str = "smlt.metrics") -> None:
        self._logger = logging.getLogger(logger_name)
        self._enabled = False

    def configure(self, *, enabled: bool) -> None:
        self._enabled = enabled

    def _emit(self, kind: str, payload: Dict[str, Any]) -> None:
        if self._enabled:
            self._logger.info("metric.%s", kind, extra={"metric_payload": payload})

    def increment(self, name: str, value: float = 1.0, **labels: Any) -> None:
        self._emit("increment", {"metric": name, "value": value, "labels": labels})

    def observe(self, name: str, value: float, **labels: Any) -> None:
        """Point-in-time value, e.g. candidates per signal or results per request."""
        self._emit("observe", {"metric": name, "value": value, "labels": labels})

    @contextmanager
    def timer(self, name: str, **labels: Any):
        start = time.perf_counter()
        try:
            yield
        finally:
            self._emit(
                "timer",
                {"metric": name, "duration": time.perf_counter() - start, "labels": labels},
            )


metrics = MetricsEmitter()

__all__ = ["metrics", "MetricsEmitter"]
