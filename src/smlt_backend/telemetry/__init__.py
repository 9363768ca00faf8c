"""Telemetry utilities (logging + metrics helpers)."""

from .logger import setup_logging, sanitize_text
from .metrics import metrics

__all__ = ["setup_logging", "sanitize_text", "metrics"]
